import logging
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from records import (
    UNKNOWN_CATEGORY,
    Budget,
    Category,
    Transaction,
    TransactionType,
)
from services import AnalyticsService
from store import InMemoryRecordStore, SqlRecordStore

MARCH = date(2026, 3, 1)


def _expense(tid, amount, when, category_id="expense_food", **fields) -> Transaction:
    return Transaction(
        id=tid,
        amount=Decimal(amount),
        category_id=category_id,
        type=TransactionType.expense,
        date=when,
        **fields,
    )


def test_sql_transaction_round_trip() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        store = SqlRecordStore(session)
        txn = _expense(
            "1001",
            "12.34",
            datetime(2026, 3, 4, 18, 30),
            note="Dinner",
            cashback_earned=Decimal("0.37"),
            tags=frozenset({"friends", "weekend"}),
            payment_method="card",
        )
        store.add_transaction(txn)

        assert store.get_transaction_by_id("1001") == txn
        assert store.get_transaction_by_id("missing") is None

        with pytest.raises(ValueError):
            store.add_transaction(txn)

        store.replace_transaction(txn.with_changes(note="Dinner out"))
        assert store.get_transaction_by_id("1001").note == "Dinner out"
        assert [t.id for t in store.search_transactions("weekend")] == ["1001"]

        store.delete_transaction("1001")
        assert store.get_all_transactions() == []
        with pytest.raises(ValueError, match="not found"):
            store.delete_transaction("1001")


def test_sql_date_range_includes_whole_end_day_newest_first() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        store = SqlRecordStore(session)
        store.add_transaction(_expense("a", "10", datetime(2026, 2, 28, 23, 59, 59)))
        store.add_transaction(_expense("b", "20", datetime(2026, 3, 1, 0, 0)))
        store.add_transaction(_expense("c", "30", datetime(2026, 3, 31, 23, 59, 59)))
        store.add_transaction(_expense("d", "40", datetime(2026, 4, 1, 0, 0)))

        march = store.get_transactions_by_date_range(date(2026, 3, 1), date(2026, 3, 31))
        assert [t.id for t in march] == ["c", "b"]
        assert [t.id for t in store.get_transactions_by_month(MARCH)] == ["c", "b"]
        assert [t.id for t in store.get_all_transactions()] == ["d", "c", "b", "a"]


def test_sql_categories_seed_once_and_protect_defaults() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        store = SqlRecordStore(session)
        assert store.seed_default_categories() == 16
        assert store.seed_default_categories() == 0

        categories = store.get_all_categories()
        assert [c.sort_order for c in categories] == list(range(16))
        food = store.get_category_by_id("expense_food")
        assert food.cashback_rate == Decimal("0.03")
        assert food.is_default

        with pytest.raises(ValueError, match="Default categories"):
            store.delete_category("expense_food")

        pets = Category(id="custom_1", name="Pets", sort_order=20)
        store.add_category(pets)
        store.replace_category(pets.with_changes(budget_limit=Decimal("80")))
        assert store.get_category_by_id("custom_1").budget_limit == Decimal("80")

        store.deactivate_category("custom_1")
        assert "custom_1" not in {c.id for c in store.get_all_categories()}
        store.delete_category("custom_1")
        assert store.get_category_by_id("custom_1") is UNKNOWN_CATEGORY


def test_sql_set_budget_replaces_same_category_and_month() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        store = SqlRecordStore(session)
        store.seed_default_categories()
        store.set_budget(
            Budget(id="b1", category_id="expense_bills", amount=Decimal("300"), month=MARCH)
        )
        store.set_budget(
            Budget(
                id="b2",
                category_id="expense_food",
                amount=Decimal("200"),
                month=MARCH,
                alert_threshold=Decimal("0.75"),
            )
        )
        store.set_budget(
            Budget(id="b3", category_id="expense_bills", amount=Decimal("350"), month=MARCH)
        )

        budgets = store.get_all_budgets_for_month(date(2026, 3, 20))
        assert [b.id for b in budgets] == ["b2", "b3"]
        assert budgets[0].alert_threshold == Decimal("0.75")
        assert store.get_budget_for_category("expense_bills", MARCH).amount == Decimal("350")
        assert store.get_budget_for_category("expense_bills", date(2026, 4, 1)) is None

        store.delete_budget("b2")
        assert [b.id for b in store.get_all_budgets_for_month(MARCH)] == ["b3"]
        with pytest.raises(ValueError):
            store.delete_budget("b2")


def test_analytics_over_sql_store() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        store = SqlRecordStore(session)
        store.seed_default_categories()
        store.add_transaction(_expense("1", "40", datetime(2026, 3, 2, 10, 0)))
        store.add_transaction(
            _expense("2", "60", datetime(2026, 3, 31, 22, 0), category_id="expense_bills")
        )
        store.set_budget(
            Budget(id="b1", category_id="expense_bills", amount=Decimal("50"), month=MARCH)
        )

        analytics = AnalyticsService(store, today=date(2026, 3, 31))
        breakdown = analytics.spending_breakdown()
        assert breakdown.total_expenses == Decimal("100")
        assert [s.category.id for s in breakdown.category_spending] == [
            "expense_bills",
            "expense_food",
        ]
        assert analytics.budget_performance().exceeded_count == 1


def test_in_memory_store_mirrors_sql_behaviour(caplog) -> None:
    store = InMemoryRecordStore(
        transactions=[
            _expense("a", "10", datetime(2026, 3, 1, 8, 0)),
            _expense("b", "20", datetime(2026, 3, 31, 23, 59, 59)),
        ]
    )
    assert store.get_category_by_id("expense_food") is UNKNOWN_CATEGORY
    assert store.seed_default_categories() == 16
    assert store.seed_default_categories() == 0
    assert store.get_category_by_id("expense_food").name == "Food & Dining"
    assert [t.id for t in store.get_transactions_by_month(MARCH)] == ["b", "a"]

    with caplog.at_level(logging.INFO, logger="store"):
        store.set_budget(
            Budget(id="b1", category_id="expense_food", amount=Decimal("100"), month=MARCH)
        )
        store.set_budget(
            Budget(id="b2", category_id="expense_food", amount=Decimal("150"), month=MARCH)
        )
    assert "budget_replaced" in caplog.text
    assert [b.id for b in store.get_all_budgets_for_month(MARCH)] == ["b2"]

    with pytest.raises(ValueError):
        store.delete_category("income_salary")
    with pytest.raises(ValueError):
        store.replace_transaction(_expense("zzz", "1", datetime(2026, 3, 1)))


def test_store_scope_persists_between_sessions(monkeypatch, tmp_path) -> None:
    from config import get_settings
    from database import get_engine, init_db
    from store import sql_store_scope

    monkeypatch.setenv("FINANCE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FINANCE_DATABASE_URL", f"sqlite:///{tmp_path / 'scope.db'}")
    get_settings.cache_clear()
    get_engine.cache_clear()
    try:
        init_db()
        with sql_store_scope() as store:
            store.seed_default_categories()
            store.add_transaction(_expense("1", "25", datetime(2026, 3, 3, 9, 0)))

        with sql_store_scope() as store:
            assert [t.id for t in store.get_all_transactions()] == ["1"]
            assert len(store.get_all_categories()) == 16
    finally:
        get_engine().dispose()
        get_settings.cache_clear()
        get_engine.cache_clear()
