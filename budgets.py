from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from records import (
    HUNDRED,
    ZERO,
    Amount,
    Budget,
    BudgetStatus,
    clamp,
    rollover_budget,
    to_decimal,
)

logger = logging.getLogger(__name__)

Spending = Mapping[str, Decimal]


@dataclass(frozen=True)
class BudgetEvaluation:
    budget: Budget
    spent: Decimal
    percentage: Decimal
    remaining: Decimal
    overspent: Decimal
    status: BudgetStatus

    @property
    def should_alert(self) -> bool:
        return self.status is BudgetStatus.warning


def evaluate(budget: Budget, spent: Amount) -> BudgetEvaluation:
    spent = to_decimal(spent)
    return BudgetEvaluation(
        budget=budget,
        spent=spent,
        percentage=budget.spending_percentage(spent),
        remaining=budget.remaining(spent),
        overspent=budget.overspent(spent),
        status=budget.status(spent),
    )


def spent_for(budget: Budget, spending: Spending) -> Decimal:
    return spending.get(budget.category_id, ZERO)


def evaluate_all(budgets: Sequence[Budget], spending: Spending) -> list[BudgetEvaluation]:
    return [evaluate(b, spent_for(b, spending)) for b in budgets]


def total_budget(budgets: Sequence[Budget]) -> Decimal:
    return sum((b.total_available for b in budgets), ZERO)


def total_spent(budgets: Sequence[Budget], spending: Spending) -> Decimal:
    return sum((spent_for(b, spending) for b in budgets), ZERO)


def budgets_needing_alerts(budgets: Sequence[Budget], spending: Spending) -> list[Budget]:
    return [b for b in budgets if b.should_alert(spent_for(b, spending))]


def exceeded_budgets(budgets: Sequence[Budget], spending: Spending) -> list[Budget]:
    return [b for b in budgets if b.is_exceeded(spent_for(b, spending))]


def safe_budgets(budgets: Sequence[Budget], spending: Spending) -> list[Budget]:
    return [
        b for b in budgets if b.status(spent_for(b, spending)) is BudgetStatus.safe
    ]


def average_spending_percentage(
    budgets: Sequence[Budget], spending: Spending
) -> Decimal:
    if not budgets:
        return ZERO
    total = sum((b.spending_percentage(spent_for(b, spending)) for b in budgets), ZERO)
    return total / len(budgets)


def overall_status(exceeded: int, warning: int, total: int) -> BudgetStatus:
    if exceeded > 0:
        return BudgetStatus.exceeded
    if warning > total / 2:
        return BudgetStatus.warning
    return BudgetStatus.safe


@dataclass(frozen=True)
class BudgetPerformanceSummary:
    total_budget: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    exceeded_count: int
    warning_count: int
    safe_count: int
    total_budgets_count: int
    average_spending_percentage: Decimal
    overall_status: BudgetStatus

    @property
    def overall_spending_percentage(self) -> Decimal:
        if self.total_budget == 0:
            return ZERO
        return clamp(self.total_spent / self.total_budget * HUNDRED, ZERO, HUNDRED)

    @property
    def is_healthy(self) -> bool:
        return self.overall_status is BudgetStatus.safe

    @property
    def summary_message(self) -> str:
        if self.exceeded_count > 0:
            return f"{self.exceeded_count} budget(s) exceeded. Review your spending."
        if self.warning_count > 0:
            return f"{self.warning_count} budget(s) near limit. Be careful with spending."
        return "All budgets on track. Great job!"


def performance_summary(
    budgets: Sequence[Budget], spending: Spending
) -> BudgetPerformanceSummary:
    evaluations = evaluate_all(budgets, spending)
    counts = {status: 0 for status in BudgetStatus}
    for evaluation in evaluations:
        counts[evaluation.status] += 1

    budget_total = total_budget(budgets)
    spent_total = total_spent(budgets, spending)
    return BudgetPerformanceSummary(
        total_budget=budget_total,
        total_spent=spent_total,
        total_remaining=budget_total - spent_total,
        exceeded_count=counts[BudgetStatus.exceeded],
        warning_count=counts[BudgetStatus.warning],
        safe_count=counts[BudgetStatus.safe],
        total_budgets_count=len(budgets),
        average_spending_percentage=average_spending_percentage(budgets, spending),
        overall_status=overall_status(
            counts[BudgetStatus.exceeded], counts[BudgetStatus.warning], len(budgets)
        ),
    )


def unused_amount(budget: Budget, spent: Amount) -> Decimal:
    if not budget.rollover_enabled:
        return ZERO
    return budget.remaining(spent)


def rollover(
    budget: Budget,
    spent: Amount,
    *,
    new_amount: Optional[Amount] = None,
    now: Optional[datetime] = None,
) -> Budget:
    """Next month's budget for the same category, carrying unused funds when enabled."""
    nxt = rollover_budget(
        budget, unused_amount(budget, spent), new_amount=new_amount, now=now
    )
    logger.info(
        f"budget_rolled_over: category={budget.category_id} "
        f"month={nxt.month.isoformat()} carried={nxt.carried_over_amount}"
    )
    return nxt
