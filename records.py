from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional, Union

from config import get_settings
from periods import DateLike, add_months, as_day, month_start

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MAX_CATEGORY_NAME_LENGTH = 30
NEUTRAL_COLOR = "#666666"
DEFAULT_ICON = "📦"

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(value, high))


def _optional_decimal(value: Optional[Amount]) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def _millis(now: Optional[datetime]) -> int:
    return int((now or datetime.now()).timestamp() * 1000)


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"

    @property
    def sign(self) -> int:
        return 1 if self is TransactionType.income else -1

    @property
    def opposite(self) -> "TransactionType":
        if self is TransactionType.income:
            return TransactionType.expense
        return TransactionType.income

    @classmethod
    def parse(cls, value: str) -> "TransactionType":
        # Unrecognised labels fall back to expense.
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.expense


class BudgetStatus(str, Enum):
    safe = "safe"
    warning = "warning"
    exceeded = "exceeded"

    @property
    def severity(self) -> int:
        return _STATUS_STYLE[self][0]

    @property
    def display_name(self) -> str:
        return _STATUS_STYLE[self][1]

    @property
    def color(self) -> str:
        return _STATUS_STYLE[self][2]


# severity, display name, color
_STATUS_STYLE = {
    BudgetStatus.safe: (0, "On Track", "#7B904B"),
    BudgetStatus.warning: (1, "Warning", "#FFD93D"),
    BudgetStatus.exceeded: (2, "Exceeded", "#FF6B6B"),
}


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal
    category_id: str
    type: TransactionType
    date: datetime
    note: str = ""
    cashback_earned: Optional[Decimal] = None
    payment_method: Optional[str] = None
    tags: frozenset[str] = frozenset()
    location: Optional[str] = None
    is_recurring: bool = False
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "type", TransactionType(self.type))
        if not isinstance(self.date, datetime):
            object.__setattr__(self, "date", datetime.combine(self.date, time.min))
        elif self.date.tzinfo is not None:
            # stored and compared as naive local time
            object.__setattr__(
                self, "date", self.date.astimezone().replace(tzinfo=None)
            )
        object.__setattr__(
            self, "cashback_earned", _optional_decimal(self.cashback_earned)
        )
        object.__setattr__(self, "tags", frozenset(self.tags or ()))

    @property
    def balance_impact(self) -> Decimal:
        return self.amount * self.type.sign

    @property
    def has_cashback(self) -> bool:
        return self.cashback_earned is not None and self.cashback_earned > 0

    @property
    def cashback_amount(self) -> Decimal:
        return self.cashback_earned if self.cashback_earned is not None else ZERO

    @property
    def has_tags(self) -> bool:
        return bool(self.tags)

    def is_on(self, day: DateLike) -> bool:
        return as_day(self.date) == as_day(day)

    def matches_search(self, query: str) -> bool:
        needle = query.lower()
        return (
            needle in self.note.lower()
            or needle in str(self.amount)
            or needle in (self.location or "").lower()
            or any(needle in tag.lower() for tag in self.tags)
        )

    def validate(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        if self.amount <= 0:
            return False
        if not self.category_id:
            return False
        if self.date > now + timedelta(days=1):
            return False
        return True

    def with_changes(self, **changes: object) -> "Transaction":
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str = DEFAULT_ICON
    color: str = NEUTRAL_COLOR
    category_type: Optional[TransactionType] = None
    is_cashback_eligible: bool = False
    cashback_rate: Optional[Decimal] = None
    budget_limit: Optional[Decimal] = None
    is_active: bool = True
    is_default: bool = False
    description: Optional[str] = None
    sort_order: int = 0
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.category_type is not None:
            object.__setattr__(
                self, "category_type", TransactionType(self.category_type)
            )
        object.__setattr__(self, "cashback_rate", _optional_decimal(self.cashback_rate))
        object.__setattr__(self, "budget_limit", _optional_decimal(self.budget_limit))

    @property
    def is_unknown(self) -> bool:
        return self.id == ""

    @property
    def can_be_used_for_income(self) -> bool:
        return self.category_type in (None, TransactionType.income)

    @property
    def can_be_used_for_expense(self) -> bool:
        return self.category_type in (None, TransactionType.expense)

    def can_be_used_for(self, txn_type: TransactionType) -> bool:
        if txn_type is TransactionType.income:
            return self.can_be_used_for_income
        return self.can_be_used_for_expense

    @property
    def offers_cashback(self) -> bool:
        return (
            self.is_cashback_eligible
            and self.cashback_rate is not None
            and self.cashback_rate > 0
        )

    @property
    def has_budget_limit(self) -> bool:
        return self.budget_limit is not None and self.budget_limit > 0

    def calculate_cashback(self, amount: Amount) -> Decimal:
        if not self.offers_cashback:
            return ZERO
        return to_decimal(amount) * self.cashback_rate

    def matches_search(self, query: str) -> bool:
        needle = query.lower()
        return needle in self.name.lower() or needle in (self.description or "").lower()

    def validate(self) -> bool:
        if not self.name or len(self.name) > MAX_CATEGORY_NAME_LENGTH:
            return False
        if not self.icon:
            return False
        if self.is_cashback_eligible and self.cashback_rate is None:
            return False
        if self.cashback_rate is not None and not ZERO <= self.cashback_rate <= 1:
            return False
        if self.budget_limit is not None and self.budget_limit < 0:
            return False
        return True

    def with_changes(self, **changes: object) -> "Category":
        return dataclasses.replace(self, **changes)


UNKNOWN_CATEGORY = Category(id="", name="Unknown", icon="❓", color=NEUTRAL_COLOR)


@dataclass(frozen=True)
class Budget:
    id: str
    category_id: str
    amount: Decimal
    month: date
    target_amount: Optional[Decimal] = None
    alert_threshold: Decimal = Decimal("0.80")
    alerts_enabled: bool = True
    rollover_enabled: bool = False
    carried_over_amount: Decimal = ZERO
    is_active: bool = True
    note: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "month", month_start(self.month))
        object.__setattr__(self, "target_amount", _optional_decimal(self.target_amount))
        object.__setattr__(self, "alert_threshold", to_decimal(self.alert_threshold))
        object.__setattr__(
            self, "carried_over_amount", to_decimal(self.carried_over_amount)
        )

    @property
    def total_available(self) -> Decimal:
        return self.amount + self.carried_over_amount

    @property
    def alert_threshold_amount(self) -> Decimal:
        return self.total_available * self.alert_threshold

    def spending_percentage(self, spent: Amount) -> Decimal:
        total = self.total_available
        if total == 0:
            return ZERO
        return clamp(to_decimal(spent) / total * HUNDRED, ZERO, HUNDRED)

    def remaining(self, spent: Amount) -> Decimal:
        total = self.total_available
        return clamp(total - to_decimal(spent), ZERO, max(total, ZERO))

    def overspent(self, spent: Amount) -> Decimal:
        return max(ZERO, to_decimal(spent) - self.total_available)

    def is_exceeded(self, spent: Amount) -> bool:
        return to_decimal(spent) > self.total_available

    def should_alert(self, spent: Amount) -> bool:
        if not self.alerts_enabled or self.is_exceeded(spent):
            return False
        return to_decimal(spent) >= self.alert_threshold_amount

    def status(self, spent: Amount) -> BudgetStatus:
        if self.is_exceeded(spent):
            return BudgetStatus.exceeded
        if self.should_alert(spent):
            return BudgetStatus.warning
        return BudgetStatus.safe

    def health_score(self, spent: Amount) -> Decimal:
        total = self.total_available
        if total == 0:
            return ZERO
        return clamp(self.remaining(spent) / total * HUNDRED, ZERO, HUNDRED)

    @property
    def has_target_amount(self) -> bool:
        return self.target_amount is not None and self.target_amount > 0

    @property
    def has_rollover(self) -> bool:
        return self.rollover_enabled and self.carried_over_amount > 0

    def is_current_month(self, today: DateLike) -> bool:
        return self.month == month_start(today)

    def is_future_month(self, today: DateLike) -> bool:
        return self.month > month_start(today)

    def is_past_month(self, today: DateLike) -> bool:
        return self.month < month_start(today)

    def validate(self) -> bool:
        if self.amount <= 0:
            return False
        if not self.category_id:
            return False
        if not ZERO <= self.alert_threshold <= 1:
            return False
        if self.carried_over_amount < 0:
            return False
        if self.target_amount is not None and self.target_amount <= 0:
            return False
        return True

    def with_changes(self, **changes: object) -> "Budget":
        return dataclasses.replace(self, **changes)


def new_transaction(
    amount: Amount,
    category_id: str,
    txn_type: TransactionType,
    when: datetime,
    *,
    note: str = "",
    cashback_earned: Optional[Amount] = None,
    payment_method: Optional[str] = None,
    tags: tuple[str, ...] = (),
    location: Optional[str] = None,
    is_recurring: bool = False,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Transaction:
    return Transaction(
        id=str(_millis(now)),
        amount=amount,
        category_id=category_id,
        type=txn_type,
        date=when,
        note=note,
        cashback_earned=cashback_earned,
        payment_method=payment_method,
        tags=frozenset(tags),
        location=location,
        is_recurring=is_recurring,
        user_id=user_id,
    )


def new_category(
    name: str,
    icon: str,
    color: str,
    *,
    category_type: Optional[TransactionType] = None,
    is_cashback_eligible: bool = False,
    cashback_rate: Optional[Amount] = None,
    description: Optional[str] = None,
    budget_limit: Optional[Amount] = None,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Category:
    return Category(
        id=f"custom_{_millis(now)}",
        name=name,
        icon=icon,
        color=color,
        category_type=category_type,
        is_cashback_eligible=is_cashback_eligible,
        cashback_rate=cashback_rate,
        description=description,
        budget_limit=budget_limit,
        user_id=user_id,
    )


def budget_for_month(
    category_id: str,
    amount: Amount,
    month: DateLike,
    *,
    target_amount: Optional[Amount] = None,
    alert_threshold: Optional[Amount] = None,
    alerts_enabled: bool = True,
    rollover_enabled: bool = False,
    carried_over_amount: Amount = ZERO,
    note: Optional[str] = None,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Budget:
    if alert_threshold is None:
        alert_threshold = get_settings().default_alert_threshold
    return Budget(
        id=f"budget_{_millis(now)}",
        category_id=category_id,
        amount=amount,
        month=as_day(month),
        target_amount=target_amount,
        alert_threshold=alert_threshold,
        alerts_enabled=alerts_enabled,
        rollover_enabled=rollover_enabled,
        carried_over_amount=carried_over_amount,
        note=note,
        user_id=user_id,
    )


def budgets_for_categories(
    amounts: Mapping[str, Amount],
    month: DateLike,
    *,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Budget]:
    stamp = _millis(now)
    threshold = get_settings().default_alert_threshold
    return [
        Budget(
            id=f"budget_{stamp}_{category_id}",
            category_id=category_id,
            amount=amount,
            month=as_day(month),
            alert_threshold=threshold,
            user_id=user_id,
        )
        for category_id, amount in amounts.items()
    ]


def clone_budget(
    source: Budget, month: DateLike, *, now: Optional[datetime] = None
) -> Budget:
    return dataclasses.replace(
        source,
        id=f"budget_{_millis(now)}",
        month=as_day(month),
        carried_over_amount=ZERO,
    )


def rollover_budget(
    current: Budget,
    unused_amount: Amount,
    *,
    new_amount: Optional[Amount] = None,
    now: Optional[datetime] = None,
) -> Budget:
    return dataclasses.replace(
        current,
        id=f"budget_{_millis(now)}",
        amount=current.amount if new_amount is None else new_amount,
        month=add_months(current.month, 1),
        carried_over_amount=unused_amount,
        is_active=True,
    )


def _default(
    cid: str,
    name: str,
    icon: str,
    color: str,
    category_type: TransactionType,
    description: str,
    order: int,
    cashback_rate: Optional[str] = None,
) -> Category:
    return Category(
        id=cid,
        name=name,
        icon=icon,
        color=color,
        category_type=category_type,
        is_cashback_eligible=cashback_rate is not None,
        cashback_rate=cashback_rate,
        description=description,
        is_default=True,
        sort_order=order,
    )


_INCOME = TransactionType.income
_EXPENSE = TransactionType.expense

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    _default("income_salary", "Salary", "💰", "#58641D", _INCOME, "Monthly salary and wages", 0),
    _default("income_freelance", "Freelance", "💼", "#3D5A80", _INCOME, "Freelance project payments", 1),
    _default("income_investment", "Investment", "📈", "#7B904B", _INCOME, "Returns from investments", 2),
    _default("income_business", "Business", "🏢", "#4A5899", _INCOME, "Business income and profits", 3),
    _default("income_rental", "Rental", "🏠", "#6BCB77", _INCOME, "Property rental income", 4),
    _default("income_gifts", "Gifts", "🎁", "#EE6C4D", _INCOME, "Money received as gifts", 5),
    _default("expense_food", "Food & Dining", "🍽️", "#FF6B6B", _EXPENSE, "Restaurant meals and food delivery", 6, "0.03"),
    _default("expense_groceries", "Groceries", "🛒", "#51CF66", _EXPENSE, "Supermarket and grocery shopping", 7, "0.02"),
    _default("expense_transport", "Transportation", "🚗", "#4ECDC4", _EXPENSE, "Fuel, public transport, taxi", 8),
    _default("expense_shopping", "Shopping", "🛍️", "#95E1D3", _EXPENSE, "Clothes, accessories, personal items", 9, "0.05"),
    _default("expense_bills", "Bills & Utilities", "📄", "#F38181", _EXPENSE, "Electricity, water, internet, phone", 10),
    _default("expense_entertainment", "Entertainment", "🎮", "#AA96DA", _EXPENSE, "Movies, games, subscriptions", 11),
    _default("expense_health", "Health & Fitness", "🏥", "#FCBAD3", _EXPENSE, "Medical, gym, wellness", 12),
    _default("expense_education", "Education", "📚", "#FFD93D", _EXPENSE, "Courses, books, learning materials", 13),
    _default("expense_travel", "Travel", "✈️", "#6BCB77", _EXPENSE, "Flights, hotels, vacation expenses", 14, "0.02"),
    _default("expense_other", "Other", "📦", "#98C1D9", _EXPENSE, "Miscellaneous expenses", 15),
)


def default_categories_for(txn_type: TransactionType) -> list[Category]:
    return [c for c in DEFAULT_CATEGORIES if c.category_type is txn_type]


def default_cashback_categories() -> list[Category]:
    return [c for c in DEFAULT_CATEGORIES if c.is_cashback_eligible]
