from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from records import (
    DEFAULT_ICON,
    MAX_CATEGORY_NAME_LENGTH,
    NEUTRAL_COLOR,
    Budget,
    Category,
    Transaction,
    TransactionType,
    budget_for_month,
    new_category,
    new_transaction,
)

MAX_AMOUNT = Decimal("999999999.99")

RecordT = TypeVar("RecordT")


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    category_id: str = Field(..., min_length=1)
    type: TransactionType
    date: datetime
    note: str = Field(default="", max_length=200)
    cashback_earned: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    tags: list[str] = Field(default_factory=list)
    location: Optional[str] = Field(default=None, max_length=100)
    is_recurring: bool = False
    user_id: Optional[str] = None


class CategoryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH)
    icon: str = Field(default=DEFAULT_ICON, min_length=1)
    color: str = Field(default=NEUTRAL_COLOR, max_length=9)
    category_type: Optional[TransactionType] = None
    is_cashback_eligible: bool = False
    cashback_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    description: Optional[str] = Field(default=None, max_length=200)
    budget_limit: Optional[Decimal] = Field(default=None, ge=0)
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def _rate_required_when_eligible(self) -> "CategoryIn":
        if self.is_cashback_eligible and self.cashback_rate is None:
            raise ValueError("cashback_rate is required for cashback eligible categories")
        return self


class BudgetIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    month: date
    target_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    alert_threshold: Optional[Decimal] = Field(default=None, ge=0, le=1)
    alerts_enabled: bool = True
    rollover_enabled: bool = False
    carried_over_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    note: Optional[str] = Field(default=None, max_length=100)
    user_id: Optional[str] = None


@dataclass(frozen=True)
class CreationResult(Generic[RecordT]):
    success: bool
    message: str
    record: Optional[RecordT] = None


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def build_transaction(
    payload: Mapping[str, Any], *, now: Optional[datetime] = None
) -> CreationResult[Transaction]:
    try:
        data = TransactionIn.model_validate(dict(payload))
    except ValidationError as exc:
        return CreationResult(False, _first_error(exc))

    txn = new_transaction(
        data.amount,
        data.category_id,
        data.type,
        data.date,
        note=data.note,
        cashback_earned=data.cashback_earned,
        payment_method=data.payment_method,
        tags=tuple(data.tags),
        location=data.location,
        is_recurring=data.is_recurring,
        user_id=data.user_id,
        now=now,
    )
    if not txn.validate(now):
        return CreationResult(False, "Transaction date cannot be in the future")
    if txn.type is TransactionType.income:
        return CreationResult(True, "Income added successfully!", txn)
    return CreationResult(True, "Expense recorded successfully!", txn)


def build_category(
    payload: Mapping[str, Any], *, now: Optional[datetime] = None
) -> CreationResult[Category]:
    try:
        data = CategoryIn.model_validate(dict(payload))
    except ValidationError as exc:
        return CreationResult(False, _first_error(exc))

    category = new_category(
        data.name.strip(),
        data.icon,
        data.color,
        category_type=data.category_type,
        is_cashback_eligible=data.is_cashback_eligible,
        cashback_rate=data.cashback_rate,
        description=data.description,
        budget_limit=data.budget_limit,
        user_id=data.user_id,
        now=now,
    )
    if not category.validate():
        return CreationResult(False, "Invalid category")
    return CreationResult(True, f"Category '{category.name}' created successfully!", category)


def build_budget(
    payload: Mapping[str, Any], *, now: Optional[datetime] = None
) -> CreationResult[Budget]:
    try:
        data = BudgetIn.model_validate(dict(payload))
    except ValidationError as exc:
        return CreationResult(False, _first_error(exc))

    budget = budget_for_month(
        data.category_id,
        data.amount,
        data.month,
        target_amount=data.target_amount,
        alert_threshold=data.alert_threshold,
        alerts_enabled=data.alerts_enabled,
        rollover_enabled=data.rollover_enabled,
        carried_over_amount=data.carried_over_amount,
        note=data.note,
        user_id=data.user_id,
        now=now,
    )
    if not budget.validate():
        return CreationResult(False, "Invalid budget")
    return CreationResult(True, "Budget set successfully!", budget)
