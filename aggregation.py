from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

from periods import DateLike, Period
from records import HUNDRED, ZERO, Category, Transaction, TransactionType

logger = logging.getLogger(__name__)

CategoryLookup = Callable[[str], Category]


def _checked(txn: Transaction) -> Transaction:
    # Corrupt records are reported upstream and still counted as-is.
    if txn.amount <= 0:
        logger.warning(f"data_integrity: transaction={txn.id} amount={txn.amount}")
    if txn.cashback_earned is not None and txn.cashback_earned < 0:
        logger.warning(
            f"data_integrity: transaction={txn.id} cashback={txn.cashback_earned}"
        )
    return txn


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def percentage_change(old: Decimal, new: Decimal) -> Decimal:
    if old > 0:
        return (new - old) / old * HUNDRED
    return HUNDRED if new > 0 else ZERO


def in_period(
    transactions: Iterable[Transaction], period: Optional[Period]
) -> list[Transaction]:
    if period is None:
        return list(transactions)
    return [t for t in transactions if period.contains(t.date)]


def in_month(transactions: Iterable[Transaction], month: DateLike) -> list[Transaction]:
    return in_period(transactions, Period.for_month(month))


def of_type(
    transactions: Iterable[Transaction],
    txn_type: TransactionType,
    period: Optional[Period] = None,
) -> list[Transaction]:
    return [t for t in in_period(transactions, period) if t.type is txn_type]


def total_by_type(
    transactions: Iterable[Transaction],
    txn_type: TransactionType,
    period: Optional[Period] = None,
) -> Decimal:
    return sum((_checked(t).amount for t in of_type(transactions, txn_type, period)), ZERO)


def net_balance(
    transactions: Iterable[Transaction], period: Optional[Period] = None
) -> Decimal:
    return sum((_checked(t).balance_impact for t in in_period(transactions, period)), ZERO)


def sum_by_category(
    transactions: Iterable[Transaction],
    txn_type: TransactionType,
    period: Optional[Period] = None,
) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for txn in of_type(transactions, txn_type, period):
        totals[txn.category_id] = totals.get(txn.category_id, ZERO) + _checked(txn).amount
    return totals


def daily_series(
    transactions: Iterable[Transaction], txn_type: TransactionType, month: DateLike
) -> dict[int, Decimal]:
    series: dict[int, Decimal] = {}
    for txn in of_type(transactions, txn_type, Period.for_month(month)):
        day = txn.date.day
        series[day] = series.get(day, ZERO) + _checked(txn).amount
    return series


def daily_frequency(
    transactions: Iterable[Transaction], month: DateLike
) -> dict[int, int]:
    frequency: dict[int, int] = {}
    for txn in in_month(transactions, month):
        frequency[txn.date.day] = frequency.get(txn.date.day, 0) + 1
    return frequency


def total_cashback(
    transactions: Iterable[Transaction], period: Optional[Period] = None
) -> Decimal:
    return sum(
        (_checked(t).cashback_amount for t in in_period(transactions, period) if t.has_cashback),
        ZERO,
    )


def cashback_by_category(
    transactions: Iterable[Transaction], period: Optional[Period] = None
) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for txn in in_period(transactions, period):
        if not txn.has_cashback:
            continue
        totals[txn.category_id] = totals.get(txn.category_id, ZERO) + txn.cashback_amount
    return totals


def potential_cashback(
    transactions: Iterable[Transaction],
    lookup: CategoryLookup,
    period: Optional[Period] = None,
) -> Decimal:
    """Cashback the period's expenses could earn in eligible categories.

    Independent of what was actually recorded on each transaction.
    """
    total = ZERO
    for txn in of_type(transactions, TransactionType.expense, period):
        category = lookup(txn.category_id)
        if category.offers_cashback:
            total += category.calculate_cashback(_checked(txn).amount)
    return total


def top_categories(
    totals: Mapping[str, Decimal], limit: int = 5
) -> list[tuple[str, Decimal]]:
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]
