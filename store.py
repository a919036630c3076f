from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, time
from typing import Iterable, Iterator, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import session_scope
from models import BudgetRow, CategoryRow, TransactionRow
from periods import DateLike, Period, as_day, month_start
from records import (
    DEFAULT_CATEGORIES,
    UNKNOWN_CATEGORY,
    Budget,
    Category,
    Transaction,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def get_all_transactions(self) -> list[Transaction]: ...

    def get_transactions_by_date_range(
        self, start: DateLike, end: DateLike
    ) -> list[Transaction]: ...

    def get_transactions_by_month(self, month: DateLike) -> list[Transaction]: ...

    def get_all_budgets_for_month(self, month: DateLike) -> list[Budget]: ...

    def get_category_by_id(self, category_id: str) -> Category: ...

    def get_all_categories(self) -> list[Category]: ...


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class InMemoryRecordStore:
    """Dictionary-backed store, handy for fixtures and previews."""

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        categories: Iterable[Category] = (),
        budgets: Iterable[Budget] = (),
    ) -> None:
        self._transactions: dict[str, Transaction] = {t.id: t for t in transactions}
        self._categories: dict[str, Category] = {c.id: c for c in categories}
        self._budgets: dict[str, Budget] = {}
        for budget in budgets:
            self.set_budget(budget)

    # reads

    def get_all_transactions(self) -> list[Transaction]:
        return _newest_first(self._transactions.values())

    def get_transactions_by_date_range(
        self, start: DateLike, end: DateLike
    ) -> list[Transaction]:
        period = Period.between(start, end)
        return _newest_first(
            t for t in self._transactions.values() if period.contains(t.date)
        )

    def get_transactions_by_month(self, month: DateLike) -> list[Transaction]:
        period = Period.for_month(month)
        return self.get_transactions_by_date_range(period.start, period.end)

    def get_transaction_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def search_transactions(self, query: str) -> list[Transaction]:
        if not query:
            return self.get_all_transactions()
        return _newest_first(
            t for t in self._transactions.values() if t.matches_search(query)
        )

    def get_category_by_id(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            logger.debug(f"unknown_category: id={category_id!r}")
            return UNKNOWN_CATEGORY
        return category

    def get_all_categories(self) -> list[Category]:
        active = [c for c in self._categories.values() if c.is_active]
        return sorted(active, key=lambda c: c.sort_order)

    def get_all_budgets_for_month(self, month: DateLike) -> list[Budget]:
        first = month_start(month)
        budgets = [
            b for b in self._budgets.values() if b.month == first and b.is_active
        ]
        return sorted(
            budgets, key=lambda b: self.get_category_by_id(b.category_id).sort_order
        )

    def get_budget_for_category(
        self, category_id: str, month: DateLike
    ) -> Optional[Budget]:
        first = month_start(month)
        for budget in self._budgets.values():
            if budget.category_id == category_id and budget.month == first:
                return budget if budget.is_active else None
        return None

    # writes

    def add_transaction(self, txn: Transaction) -> Transaction:
        if txn.id in self._transactions:
            raise ValueError("Transaction already exists")
        self._transactions[txn.id] = txn
        return txn

    def replace_transaction(self, txn: Transaction) -> Transaction:
        if txn.id not in self._transactions:
            raise ValueError("Transaction not found")
        self._transactions[txn.id] = txn
        return txn

    def delete_transaction(self, transaction_id: str) -> None:
        if self._transactions.pop(transaction_id, None) is None:
            raise ValueError("Transaction not found")

    def add_category(self, category: Category) -> Category:
        if category.id in self._categories:
            raise ValueError("Category already exists")
        self._categories[category.id] = category
        return category

    def replace_category(self, category: Category) -> Category:
        if category.id not in self._categories:
            raise ValueError("Category not found")
        self._categories[category.id] = category
        return category

    def deactivate_category(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise ValueError("Category not found")
        return self.replace_category(category.with_changes(is_active=False))

    def delete_category(self, category_id: str) -> None:
        category = self._categories.get(category_id)
        if category is None:
            raise ValueError("Category not found")
        if category.is_default:
            raise ValueError("Default categories cannot be deleted")
        del self._categories[category_id]

    def seed_default_categories(self) -> int:
        seeded = 0
        for category in DEFAULT_CATEGORIES:
            if category.id not in self._categories:
                self._categories[category.id] = category
                seeded += 1
        if seeded:
            logger.info(f"categories_seeded: count={seeded}")
        return seeded

    def set_budget(self, budget: Budget) -> Budget:
        for existing in list(self._budgets.values()):
            if (
                existing.category_id == budget.category_id
                and existing.month == budget.month
            ):
                del self._budgets[existing.id]
                logger.info(
                    f"budget_replaced: category={budget.category_id} "
                    f"month={budget.month.isoformat()} previous={existing.id}"
                )
        self._budgets[budget.id] = budget
        return budget

    def delete_budget(self, budget_id: str) -> None:
        if self._budgets.pop(budget_id, None) is None:
            raise ValueError("Budget not found")


class SqlRecordStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    # reads

    def get_all_transactions(self) -> list[Transaction]:
        stmt = select(TransactionRow).order_by(TransactionRow.occurred_at.desc())
        return [row.to_record() for row in self.session.scalars(stmt)]

    def get_transactions_by_date_range(
        self, start: DateLike, end: DateLike
    ) -> list[Transaction]:
        lower = datetime.combine(as_day(start), time.min)
        upper = datetime.combine(as_day(end), time.max)
        stmt = (
            select(TransactionRow)
            .where(TransactionRow.occurred_at.between(lower, upper))
            .order_by(TransactionRow.occurred_at.desc())
        )
        return [row.to_record() for row in self.session.scalars(stmt)]

    def get_transactions_by_month(self, month: DateLike) -> list[Transaction]:
        period = Period.for_month(month)
        return self.get_transactions_by_date_range(period.start, period.end)

    def get_transaction_by_id(self, transaction_id: str) -> Optional[Transaction]:
        row = self.session.get(TransactionRow, transaction_id)
        return row.to_record() if row else None

    def search_transactions(self, query: str) -> list[Transaction]:
        return [t for t in self.get_all_transactions() if not query or t.matches_search(query)]

    def get_category_by_id(self, category_id: str) -> Category:
        row = self.session.get(CategoryRow, category_id)
        if row is None:
            logger.debug(f"unknown_category: id={category_id!r}")
            return UNKNOWN_CATEGORY
        return row.to_record()

    def get_all_categories(self) -> list[Category]:
        stmt = (
            select(CategoryRow)
            .where(CategoryRow.is_active.is_(True))
            .order_by(CategoryRow.sort_order, CategoryRow.id)
        )
        return [row.to_record() for row in self.session.scalars(stmt)]

    def get_all_budgets_for_month(self, month: DateLike) -> list[Budget]:
        stmt = (
            select(BudgetRow)
            .outerjoin(CategoryRow, CategoryRow.id == BudgetRow.category_id)
            .where(
                BudgetRow.month == month_start(month),
                BudgetRow.is_active.is_(True),
            )
            .order_by(func.coalesce(CategoryRow.sort_order, 0), BudgetRow.id)
        )
        return [row.to_record() for row in self.session.scalars(stmt)]

    def get_budget_for_category(
        self, category_id: str, month: DateLike
    ) -> Optional[Budget]:
        row = self._budget_row_for(category_id, month_start(month))
        if row is None or not row.is_active:
            return None
        return row.to_record()

    def _budget_row_for(self, category_id: str, month: DateLike) -> Optional[BudgetRow]:
        return self.session.scalar(
            select(BudgetRow).where(
                BudgetRow.category_id == category_id,
                BudgetRow.month == month,
            )
        )

    # writes

    def add_transaction(self, txn: Transaction) -> Transaction:
        if self.session.get(TransactionRow, txn.id):
            raise ValueError("Transaction already exists")
        self.session.add(TransactionRow.from_record(txn))
        self.session.commit()
        return txn

    def replace_transaction(self, txn: Transaction) -> Transaction:
        row = self.session.get(TransactionRow, txn.id)
        if not row:
            raise ValueError("Transaction not found")
        row.apply(txn)
        self.session.commit()
        return txn

    def delete_transaction(self, transaction_id: str) -> None:
        row = self.session.get(TransactionRow, transaction_id)
        if not row:
            raise ValueError("Transaction not found")
        self.session.delete(row)
        self.session.commit()

    def add_category(self, category: Category) -> Category:
        if self.session.get(CategoryRow, category.id):
            raise ValueError("Category already exists")
        self.session.add(CategoryRow.from_record(category))
        self.session.commit()
        return category

    def replace_category(self, category: Category) -> Category:
        row = self.session.get(CategoryRow, category.id)
        if not row:
            raise ValueError("Category not found")
        row.apply(category)
        self.session.commit()
        return category

    def deactivate_category(self, category_id: str) -> Category:
        row = self.session.get(CategoryRow, category_id)
        if not row:
            raise ValueError("Category not found")
        row.is_active = False
        self.session.commit()
        return row.to_record()

    def delete_category(self, category_id: str) -> None:
        row = self.session.get(CategoryRow, category_id)
        if not row:
            raise ValueError("Category not found")
        if row.is_default:
            raise ValueError("Default categories cannot be deleted")
        self.session.delete(row)
        self.session.commit()

    def seed_default_categories(self) -> int:
        existing = set(self.session.scalars(select(CategoryRow.id)))
        missing = [c for c in DEFAULT_CATEGORIES if c.id not in existing]
        for category in missing:
            self.session.add(CategoryRow.from_record(category))
        self.session.commit()
        if missing:
            logger.info(f"categories_seeded: count={len(missing)}")
        return len(missing)

    def set_budget(self, budget: Budget) -> Budget:
        existing = self._budget_row_for(budget.category_id, budget.month)
        if existing:
            logger.info(
                f"budget_replaced: category={budget.category_id} "
                f"month={budget.month.isoformat()} previous={existing.id}"
            )
            self.session.delete(existing)
            self.session.flush()
        self.session.add(BudgetRow.from_record(budget))
        self.session.commit()
        return budget

    def delete_budget(self, budget_id: str) -> None:
        row = self.session.get(BudgetRow, budget_id)
        if not row:
            raise ValueError("Budget not found")
        self.session.delete(row)
        self.session.commit()


@contextmanager
def sql_store_scope() -> Iterator[SqlRecordStore]:
    with session_scope() as session:
        yield SqlRecordStore(session)
