from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Mapping, Optional

from aggregation import (
    cashback_by_category,
    daily_frequency,
    daily_series,
    net_balance,
    of_type,
    percentage_change,
    percentage_of,
    potential_cashback,
    sum_by_category,
    top_categories,
    total_by_type,
    total_cashback,
)
from budgets import BudgetPerformanceSummary, evaluate, performance_summary, spent_for
from config import get_settings
from insights import Insight, MonthSnapshot, generate_insights
from periods import DateLike, Period, as_day, days_in_month, month_start
from records import ZERO, Transaction, TransactionType
from reports import (
    BalanceTrend,
    BudgetUtilization,
    CashbackSummary,
    CategoryShare,
    Comparison,
    DailyBalance,
    ForecastConfidence,
    IncomeBreakdown,
    MonthComparison,
    MonthlyAmount,
    MonthlyBalance,
    MonthlySavings,
    MonthlySummary,
    SavingsAnalysis,
    SpendingBreakdown,
    SpendingForecast,
    SpendingVelocity,
    TransactionStatistics,
    YearToDateSummary,
)
from store import RecordStore

logger = logging.getLogger(__name__)

INCOME = TransactionType.income
EXPENSE = TransactionType.expense


class AnalyticsService:
    def __init__(self, store: RecordStore, *, today: Optional[date] = None) -> None:
        self.store = store
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _month(self, month: Optional[DateLike]) -> date:
        return month_start(month if month is not None else self.today)

    def _month_transactions(self, month: DateLike) -> tuple[Period, list[Transaction]]:
        period = Period.for_month(month)
        return period, self.store.get_transactions_by_date_range(period.start, period.end)

    def _year_transactions(self, year: int) -> list[Transaction]:
        period = Period.for_year(year)
        return self.store.get_transactions_by_date_range(period.start, period.end)

    def _shares(
        self, totals: Mapping[str, Decimal], total: Decimal
    ) -> list[CategoryShare]:
        shares = [
            CategoryShare(
                category=self.store.get_category_by_id(category_id),
                amount=amount,
                percentage=percentage_of(amount, total),
            )
            for category_id, amount in totals.items()
        ]
        return sorted(shares, key=lambda share: share.amount, reverse=True)

    # spending

    def total_expenses(self, month: Optional[DateLike] = None) -> Decimal:
        period, txns = self._month_transactions(self._month(month))
        return total_by_type(txns, EXPENSE, period)

    def total_income(self, month: Optional[DateLike] = None) -> Decimal:
        period, txns = self._month_transactions(self._month(month))
        return total_by_type(txns, INCOME, period)

    def spending_breakdown(self, month: Optional[DateLike] = None) -> SpendingBreakdown:
        first = self._month(month)
        period, txns = self._month_transactions(first)
        total = total_by_type(txns, EXPENSE, period)
        return SpendingBreakdown(
            total_expenses=total,
            category_spending=self._shares(sum_by_category(txns, EXPENSE, period), total),
            month=first,
        )

    def top_spending_categories(
        self, month: Optional[DateLike] = None, limit: int = 5
    ) -> list[CategoryShare]:
        return self.spending_breakdown(month).category_spending[:limit]

    def _compare(
        self, txn_type: TransactionType, month1: DateLike, month2: DateLike
    ) -> Comparison:
        first, second = month_start(month1), month_start(month2)
        period1, txns1 = self._month_transactions(first)
        period2, txns2 = self._month_transactions(second)
        amount1 = total_by_type(txns1, txn_type, period1)
        amount2 = total_by_type(txns2, txn_type, period2)
        difference = amount2 - amount1
        return Comparison(
            month1=first,
            month2=second,
            amount1=amount1,
            amount2=amount2,
            difference=difference,
            percentage_change=percentage_change(amount1, amount2),
            is_increased=difference > 0,
        )

    def compare_monthly_spending(self, month1: DateLike, month2: DateLike) -> Comparison:
        return self._compare(EXPENSE, month1, month2)

    def average_daily_spending(self, month: Optional[DateLike] = None) -> Decimal:
        first = self._month(month)
        return self.total_expenses(first) / days_in_month(first)

    def daily_spending_trend(self, month: Optional[DateLike] = None) -> dict[int, Decimal]:
        first = self._month(month)
        _, txns = self._month_transactions(first)
        return daily_series(txns, EXPENSE, first)

    def spending_velocity(self, month: Optional[DateLike] = None) -> SpendingVelocity:
        first = self._month(month)
        month_length = days_in_month(first)
        if first == month_start(self.today):
            days_elapsed = self.today.day
        else:
            days_elapsed = month_length

        current = self.total_expenses(first)
        daily_average = current / days_elapsed
        return SpendingVelocity(
            current_spending=current,
            daily_average=daily_average,
            projected_monthly_spending=daily_average * month_length,
            days_elapsed=days_elapsed,
            days_remaining=month_length - days_elapsed,
        )

    def spending_forecast(self) -> SpendingForecast:
        velocity = self.spending_velocity()
        if velocity.days_elapsed > get_settings().forecast_confidence_days:
            confidence = ForecastConfidence.high
        else:
            confidence = ForecastConfidence.low
        return SpendingForecast(
            projected_spending=velocity.projected_monthly_spending,
            current_spending=velocity.current_spending,
            days_remaining=velocity.days_remaining,
            confidence=confidence,
        )

    # income

    def income_breakdown(self, month: Optional[DateLike] = None) -> IncomeBreakdown:
        first = self._month(month)
        period, txns = self._month_transactions(first)
        total = total_by_type(txns, INCOME, period)
        return IncomeBreakdown(
            total_income=total,
            category_income=self._shares(sum_by_category(txns, INCOME, period), total),
            month=first,
        )

    def compare_monthly_income(self, month1: DateLike, month2: DateLike) -> Comparison:
        return self._compare(INCOME, month1, month2)

    def daily_income_trend(self, month: Optional[DateLike] = None) -> dict[int, Decimal]:
        first = self._month(month)
        _, txns = self._month_transactions(first)
        return daily_series(txns, INCOME, first)

    # balance

    def balance_trend(self, start: DateLike, end: DateLike) -> BalanceTrend:
        first_day, last_day = as_day(start), as_day(end)
        txns = self.store.get_transactions_by_date_range(first_day, last_day)
        by_day: dict[date, list[Transaction]] = {}
        for txn in txns:
            by_day.setdefault(as_day(txn.date), []).append(txn)

        balances: list[DailyBalance] = []
        running = ZERO
        current = first_day
        while current <= last_day:
            day_txns = by_day.get(current, [])
            income = total_by_type(day_txns, INCOME)
            expenses = total_by_type(day_txns, EXPENSE)
            running += income - expenses
            balances.append(
                DailyBalance(
                    date=current,
                    income=income,
                    expenses=expenses,
                    net_balance=income - expenses,
                    cumulative_balance=running,
                )
            )
            current += timedelta(days=1)
        return BalanceTrend(start_date=first_day, end_date=last_day, daily_balances=balances)

    def monthly_balance_trend(self, year: int) -> list[MonthlyBalance]:
        txns = self._year_transactions(year)
        out: list[MonthlyBalance] = []
        for month in range(1, 13):
            period = Period.for_month(date(year, month, 1))
            income = total_by_type(txns, INCOME, period)
            expenses = total_by_type(txns, EXPENSE, period)
            out.append(
                MonthlyBalance(
                    month=period.start,
                    income=income,
                    expenses=expenses,
                    balance=income - expenses,
                )
            )
        return out

    # cashback

    def potential_cashback(self, month: Optional[DateLike] = None) -> Decimal:
        period, txns = self._month_transactions(self._month(month))
        return potential_cashback(txns, self.store.get_category_by_id, period)

    def cashback_summary(self, month: Optional[DateLike] = None) -> CashbackSummary:
        first = self._month(month)
        period, txns = self._month_transactions(first)
        total = total_cashback(txns, period)
        return CashbackSummary(
            total_cashback=total,
            category_cashback=self._shares(cashback_by_category(txns, period), total),
            potential_cashback=potential_cashback(
                txns, self.store.get_category_by_id, period
            ),
            month=first,
        )

    def cashback_trend(self, year: int) -> list[MonthlyAmount]:
        txns = self._year_transactions(year)
        return [
            MonthlyAmount(
                month=date(year, month, 1),
                amount=total_cashback(txns, Period.for_month(date(year, month, 1))),
            )
            for month in range(1, 13)
        ]

    # budgets

    def _spending_by_category(self, month: DateLike) -> dict[str, Decimal]:
        period, txns = self._month_transactions(month)
        return sum_by_category(txns, EXPENSE, period)

    def budget_performance(
        self, month: Optional[DateLike] = None
    ) -> BudgetPerformanceSummary:
        first = self._month(month)
        budgets = self.store.get_all_budgets_for_month(first)
        return performance_summary(budgets, self._spending_by_category(first))

    def budget_utilization(
        self, month: Optional[DateLike] = None
    ) -> list[BudgetUtilization]:
        first = self._month(month)
        spending = self._spending_by_category(first)
        utilization: list[BudgetUtilization] = []
        for budget in self.store.get_all_budgets_for_month(first):
            evaluation = evaluate(budget, spent_for(budget, spending))
            utilization.append(
                BudgetUtilization(
                    budget=budget,
                    category=self.store.get_category_by_id(budget.category_id),
                    spent=evaluation.spent,
                    remaining=evaluation.remaining,
                    percentage=evaluation.percentage,
                    status=evaluation.status,
                )
            )
        return sorted(utilization, key=lambda row: row.percentage, reverse=True)

    # transactions

    def transaction_statistics(
        self, start: DateLike, end: DateLike
    ) -> TransactionStatistics:
        txns = self.store.get_transactions_by_date_range(start, end)
        incomes = of_type(txns, INCOME)
        expenses = of_type(txns, EXPENSE)
        total_income = total_by_type(incomes, INCOME)
        total_expenses = total_by_type(expenses, EXPENSE)
        return TransactionStatistics(
            total_transactions=len(txns),
            income_count=len(incomes),
            expense_count=len(expenses),
            total_income=total_income,
            total_expenses=total_expenses,
            average_income=total_income / len(incomes) if incomes else ZERO,
            average_expense=total_expenses / len(expenses) if expenses else ZERO,
            largest_income=max(incomes, key=lambda t: t.amount, default=None),
            largest_expense=max(expenses, key=lambda t: t.amount, default=None),
            net_balance=total_income - total_expenses,
        )

    def daily_transaction_frequency(
        self, month: Optional[DateLike] = None
    ) -> dict[int, int]:
        first = self._month(month)
        _, txns = self._month_transactions(first)
        return daily_frequency(txns, first)

    # savings

    def savings_analysis(self, month: Optional[DateLike] = None) -> SavingsAnalysis:
        first = self._month(month)
        period, txns = self._month_transactions(first)
        income = total_by_type(txns, INCOME, period)
        expenses = total_by_type(txns, EXPENSE, period)
        savings = income - expenses
        return SavingsAnalysis(
            income=income,
            expenses=expenses,
            savings=savings,
            savings_rate=percentage_of(savings, income) if income > 0 else ZERO,
            month=first,
        )

    def savings_trend(self, year: int) -> list[MonthlySavings]:
        out: list[MonthlySavings] = []
        for month in range(1, 13):
            analysis = self.savings_analysis(date(year, month, 1))
            out.append(
                MonthlySavings(
                    month=analysis.month,
                    savings=analysis.savings,
                    savings_rate=analysis.savings_rate,
                )
            )
        return out

    # summaries

    def monthly_summary(self, month: Optional[DateLike] = None) -> MonthlySummary:
        first = self._month(month)
        period, txns = self._month_transactions(first)
        income = total_by_type(txns, INCOME, period)
        expenses = total_by_type(txns, EXPENSE, period)
        top = top_categories(sum_by_category(txns, EXPENSE, period), limit=1)
        return MonthlySummary(
            month=first,
            income=income,
            expenses=expenses,
            balance=net_balance(txns, period),
            cashback=total_cashback(txns, period),
            transaction_count=len(txns),
            budget_count=len(self.store.get_all_budgets_for_month(first)),
            top_spending_category_id=top[0][0] if top else None,
            top_spending_amount=top[0][1] if top else ZERO,
        )

    def compare_months(self, month1: DateLike, month2: DateLike) -> MonthComparison:
        first = self.monthly_summary(month1)
        second = self.monthly_summary(month2)
        return MonthComparison(
            first=first,
            second=second,
            income_difference=second.income - first.income,
            expense_difference=second.expenses - first.expenses,
            balance_difference=second.balance - first.balance,
            income_percentage_change=percentage_change(first.income, second.income),
            expense_percentage_change=percentage_change(first.expenses, second.expenses),
        )

    def year_to_date_summary(self) -> YearToDateSummary:
        today = self.today
        period = Period("year_to_date", date(today.year, 1, 1), today)
        txns = self.store.get_transactions_by_date_range(period.start, period.end)
        income = total_by_type(txns, INCOME, period)
        expenses = total_by_type(txns, EXPENSE, period)
        return YearToDateSummary(
            year=today.year,
            income=income,
            expenses=expenses,
            cashback=total_cashback(txns, period),
            average_monthly_income=income / today.month,
            average_monthly_expense=expenses / today.month,
        )


class InsightsService:
    def __init__(self, analytics: AnalyticsService) -> None:
        self.analytics = analytics

    def snapshot(self, month: DateLike) -> MonthSnapshot:
        first = month_start(month)
        return MonthSnapshot(
            month=first,
            total_expenses=self.analytics.total_expenses(first),
            savings_rate=self.analytics.savings_analysis(first).savings_rate,
            exceeded_budget_count=self.analytics.budget_performance(first).exceeded_count,
            actual_cashback=self.analytics.cashback_summary(first).total_cashback,
            potential_cashback=self.analytics.potential_cashback(first),
        )

    def financial_insights(self, month: Optional[DateLike] = None) -> list[Insight]:
        current = Period.for_month(
            month if month is not None else self.analytics.today
        )
        insights = generate_insights(
            self.snapshot(current.start),
            self.snapshot(current.previous_month().start),
        )
        logger.debug(
            f"insights_generated: month={current.slug} count={len(insights)}"
        )
        return insights
