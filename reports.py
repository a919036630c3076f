from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from records import ZERO, Budget, BudgetStatus, Category, Transaction


@dataclass(frozen=True)
class CategoryShare:
    category: Category
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class SpendingBreakdown:
    total_expenses: Decimal
    category_spending: list[CategoryShare]
    month: date


@dataclass(frozen=True)
class IncomeBreakdown:
    total_income: Decimal
    category_income: list[CategoryShare]
    month: date


@dataclass(frozen=True)
class Comparison:
    month1: date
    month2: date
    amount1: Decimal
    amount2: Decimal
    difference: Decimal
    percentage_change: Decimal
    is_increased: bool


@dataclass(frozen=True)
class SpendingVelocity:
    current_spending: Decimal
    daily_average: Decimal
    projected_monthly_spending: Decimal
    days_elapsed: int
    days_remaining: int


class ForecastConfidence(str, Enum):
    high = "high"
    low = "low"


@dataclass(frozen=True)
class SpendingForecast:
    projected_spending: Decimal
    current_spending: Decimal
    days_remaining: int
    confidence: ForecastConfidence


@dataclass(frozen=True)
class DailyBalance:
    date: date
    income: Decimal
    expenses: Decimal
    net_balance: Decimal
    cumulative_balance: Decimal


@dataclass(frozen=True)
class BalanceTrend:
    start_date: date
    end_date: date
    daily_balances: list[DailyBalance]


@dataclass(frozen=True)
class MonthlyBalance:
    month: date
    income: Decimal
    expenses: Decimal
    balance: Decimal


@dataclass(frozen=True)
class CashbackSummary:
    total_cashback: Decimal
    category_cashback: list[CategoryShare]
    potential_cashback: Decimal
    month: date

    @property
    def missed_cashback(self) -> Decimal:
        return max(ZERO, self.potential_cashback - self.total_cashback)


@dataclass(frozen=True)
class MonthlyAmount:
    month: date
    amount: Decimal


@dataclass(frozen=True)
class BudgetUtilization:
    budget: Budget
    category: Category
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    status: BudgetStatus


@dataclass(frozen=True)
class TransactionStatistics:
    total_transactions: int
    income_count: int
    expense_count: int
    total_income: Decimal
    total_expenses: Decimal
    average_income: Decimal
    average_expense: Decimal
    largest_income: Optional[Transaction]
    largest_expense: Optional[Transaction]
    net_balance: Decimal


@dataclass(frozen=True)
class SavingsAnalysis:
    income: Decimal
    expenses: Decimal
    savings: Decimal
    savings_rate: Decimal
    month: date


@dataclass(frozen=True)
class MonthlySavings:
    month: date
    savings: Decimal
    savings_rate: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    month: date
    income: Decimal
    expenses: Decimal
    balance: Decimal
    cashback: Decimal
    transaction_count: int
    budget_count: int
    top_spending_category_id: Optional[str]
    top_spending_amount: Decimal

    @property
    def net_balance(self) -> Decimal:
        return self.balance + self.cashback


@dataclass(frozen=True)
class MonthComparison:
    first: MonthlySummary
    second: MonthlySummary
    income_difference: Decimal
    expense_difference: Decimal
    balance_difference: Decimal
    income_percentage_change: Decimal
    expense_percentage_change: Decimal


@dataclass(frozen=True)
class YearToDateSummary:
    year: int
    income: Decimal
    expenses: Decimal
    cashback: Decimal
    average_monthly_income: Decimal
    average_monthly_expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses

    @property
    def net_balance(self) -> Decimal:
        return self.balance + self.cashback
