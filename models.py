import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base
from records import Budget, Category, Transaction, TransactionType, to_decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def amount_to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1")))


def cents_to_amount(cents: int) -> Decimal:
    return Decimal(cents) / 100


def _optional_cents(amount: Optional[Decimal]) -> Optional[int]:
    return None if amount is None else amount_to_cents(amount)


def _optional_amount(cents: Optional[int]) -> Optional[Decimal]:
    return None if cents is None else cents_to_amount(cents)


def _optional_rate(rate: Optional[float]) -> Optional[Decimal]:
    return None if rate is None else to_decimal(rate)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )


class CategoryRow(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    color: Mapped[str] = mapped_column(String(9), nullable=False)
    category_type: Mapped[Optional[TransactionType]] = mapped_column(
        SAEnum(TransactionType)
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_cashback_eligible: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    cashback_rate: Mapped[Optional[float]] = mapped_column(Float)
    description: Mapped[Optional[str]] = mapped_column(Text)
    budget_limit_cents: Mapped[Optional[int]] = mapped_column(Integer)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_categories_active_order", "is_active", "sort_order"),)

    @classmethod
    def from_record(cls, category: Category) -> "CategoryRow":
        row = cls(id=category.id)
        row.apply(category)
        return row

    def apply(self, category: Category) -> None:
        self.user_id = category.user_id
        self.name = category.name
        self.icon = category.icon
        self.color = category.color
        self.category_type = category.category_type
        self.is_default = category.is_default
        self.is_cashback_eligible = category.is_cashback_eligible
        self.cashback_rate = (
            None if category.cashback_rate is None else float(category.cashback_rate)
        )
        self.description = category.description
        self.budget_limit_cents = _optional_cents(category.budget_limit)
        self.sort_order = category.sort_order
        self.is_active = category.is_active

    def to_record(self) -> Category:
        return Category(
            id=self.id,
            name=self.name,
            icon=self.icon,
            color=self.color,
            category_type=self.category_type,
            is_cashback_eligible=self.is_cashback_eligible,
            cashback_rate=_optional_rate(self.cashback_rate),
            budget_limit=_optional_amount(self.budget_limit_cents),
            is_active=self.is_active,
            is_default=self.is_default,
            description=self.description,
            sort_order=self.sort_order,
            user_id=self.user_id,
        )


class TransactionRow(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128))
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Not a foreign key: transactions may outlive their category.
    category_id: Mapped[str] = mapped_column(String(64), nullable=False)
    note: Mapped[str] = mapped_column(Text, default="", nullable=False)
    cashback_cents: Mapped[Optional[int]] = mapped_column(Integer)
    payment_method: Mapped[Optional[str]] = mapped_column(String(60))
    location: Mapped[Optional[str]] = mapped_column(String(200))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags_json: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_transactions_occurred_at", "occurred_at"),
        Index("ix_transactions_type_occurred_at", "type", "occurred_at"),
        Index("ix_transactions_category_occurred_at", "category_id", "occurred_at"),
    )

    @classmethod
    def from_record(cls, txn: Transaction) -> "TransactionRow":
        row = cls(id=txn.id)
        row.apply(txn)
        return row

    def apply(self, txn: Transaction) -> None:
        self.user_id = txn.user_id
        self.occurred_at = txn.date
        self.type = txn.type
        self.amount_cents = amount_to_cents(txn.amount)
        self.category_id = txn.category_id
        self.note = txn.note
        self.cashback_cents = _optional_cents(txn.cashback_earned)
        self.payment_method = txn.payment_method
        self.location = txn.location
        self.is_recurring = txn.is_recurring
        self.tags_json = json.dumps(sorted(txn.tags)) if txn.tags else None

    def to_record(self) -> Transaction:
        return Transaction(
            id=self.id,
            amount=cents_to_amount(self.amount_cents),
            category_id=self.category_id,
            type=self.type,
            date=self.occurred_at,
            note=self.note,
            cashback_earned=_optional_amount(self.cashback_cents),
            payment_method=self.payment_method,
            tags=frozenset(json.loads(self.tags_json) if self.tags_json else ()),
            location=self.location,
            is_recurring=self.is_recurring,
            user_id=self.user_id,
        )


class BudgetRow(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128))
    category_id: Mapped[str] = mapped_column(String(64), nullable=False)
    month: Mapped[date] = mapped_column(Date, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    target_cents: Mapped[Optional[int]] = mapped_column(Integer)
    alert_threshold: Mapped[float] = mapped_column(Float, default=0.8, nullable=False)
    alerts_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rollover_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    carried_over_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "month", name="uq_budget_category_month"),
        Index("ix_budgets_month_active", "month", "is_active"),
    )

    @classmethod
    def from_record(cls, budget: Budget) -> "BudgetRow":
        row = cls(id=budget.id)
        row.apply(budget)
        return row

    def apply(self, budget: Budget) -> None:
        self.user_id = budget.user_id
        self.category_id = budget.category_id
        self.month = budget.month
        self.amount_cents = amount_to_cents(budget.amount)
        self.target_cents = _optional_cents(budget.target_amount)
        self.alert_threshold = float(budget.alert_threshold)
        self.alerts_enabled = budget.alerts_enabled
        self.rollover_enabled = budget.rollover_enabled
        self.carried_over_cents = amount_to_cents(budget.carried_over_amount)
        self.note = budget.note
        self.is_active = budget.is_active

    def to_record(self) -> Budget:
        return Budget(
            id=self.id,
            category_id=self.category_id,
            amount=cents_to_amount(self.amount_cents),
            month=self.month,
            target_amount=_optional_amount(self.target_cents),
            alert_threshold=to_decimal(self.alert_threshold),
            alerts_enabled=self.alerts_enabled,
            rollover_enabled=self.rollover_enabled,
            carried_over_amount=cents_to_amount(self.carried_over_cents),
            is_active=self.is_active,
            note=self.note,
            user_id=self.user_id,
        )
