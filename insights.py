from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from aggregation import percentage_change
from records import ZERO

SPENDING_CHANGE_LIMIT = Decimal("10")
LOW_SAVINGS_RATE = Decimal("10")
HIGH_SAVINGS_RATE = Decimal("30")
MISSED_CASHBACK_LIMIT = Decimal("10")


class InsightType(str, Enum):
    positive = "positive"
    warning = "warning"
    alert = "alert"
    suggestion = "suggestion"
    info = "info"


class InsightPriority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    InsightPriority.high: 0,
    InsightPriority.medium: 1,
    InsightPriority.low: 2,
}


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    type: InsightType
    priority: InsightPriority


@dataclass(frozen=True)
class MonthSnapshot:
    """What the insight rules need to know about one month."""

    month: date
    total_expenses: Decimal
    savings_rate: Decimal
    exceeded_budget_count: int = 0
    actual_cashback: Decimal = ZERO
    potential_cashback: Decimal = ZERO

    @property
    def missed_cashback(self) -> Decimal:
        return self.potential_cashback - self.actual_cashback


Rule = Callable[[MonthSnapshot, MonthSnapshot], Optional[Insight]]


def spending_change_insight(
    current: MonthSnapshot, previous: MonthSnapshot
) -> Optional[Insight]:
    change = percentage_change(previous.total_expenses, current.total_expenses)
    increased = current.total_expenses > previous.total_expenses
    if increased and change > SPENDING_CHANGE_LIMIT:
        return Insight(
            title="Spending Increased",
            description=f"Your spending is {change:.1f}% higher than last month.",
            type=InsightType.warning,
            priority=InsightPriority.high,
        )
    if not increased and abs(change) > SPENDING_CHANGE_LIMIT:
        return Insight(
            title="Great Job!",
            description=(
                f"Your spending decreased by {abs(change):.1f}% "
                "compared to last month."
            ),
            type=InsightType.positive,
            priority=InsightPriority.medium,
        )
    return None


def exceeded_budget_insight(
    current: MonthSnapshot, previous: MonthSnapshot
) -> Optional[Insight]:
    if current.exceeded_budget_count <= 0:
        return None
    return Insight(
        title="Budget Alert",
        description=(
            f"You have {current.exceeded_budget_count} budget(s) "
            "that exceeded the limit."
        ),
        type=InsightType.alert,
        priority=InsightPriority.high,
    )


def savings_rate_insight(
    current: MonthSnapshot, previous: MonthSnapshot
) -> Optional[Insight]:
    rate = current.savings_rate
    if rate < LOW_SAVINGS_RATE:
        return Insight(
            title="Low Savings Rate",
            description=(
                f"Your savings rate is {rate:.1f}%. "
                "Try to save at least 20% of your income."
            ),
            type=InsightType.suggestion,
            priority=InsightPriority.medium,
        )
    if rate > HIGH_SAVINGS_RATE:
        return Insight(
            title="Excellent Savings!",
            description=f"You're saving {rate:.1f}% of your income. Keep it up!",
            type=InsightType.positive,
            priority=InsightPriority.low,
        )
    return None


def missed_cashback_insight(
    current: MonthSnapshot, previous: MonthSnapshot
) -> Optional[Insight]:
    missed = current.missed_cashback
    if missed <= MISSED_CASHBACK_LIMIT:
        return None
    return Insight(
        title="Cashback Opportunity",
        description=f"You could have earned {missed:.2f} more in cashback this month.",
        type=InsightType.suggestion,
        priority=InsightPriority.low,
    )


RULES: tuple[Rule, ...] = (
    spending_change_insight,
    exceeded_budget_insight,
    savings_rate_insight,
    missed_cashback_insight,
)


def generate_insights(
    current: MonthSnapshot, previous: MonthSnapshot
) -> list[Insight]:
    insights = [
        insight
        for insight in (rule(current, previous) for rule in RULES)
        if insight is not None
    ]
    return sorted(insights, key=lambda insight: insight.priority.rank)
