from datetime import date, datetime, timezone
from decimal import Decimal

from records import TransactionType
from schemas import build_budget, build_category, build_transaction

NOW = datetime(2026, 3, 15, 12, 0)


def test_build_expense_and_income() -> None:
    expense = build_transaction(
        {
            "amount": "45.90",
            "category_id": "expense_groceries",
            "type": "expense",
            "date": "2026-03-14T18:00:00",
            "tags": ["weekly"],
        },
        now=NOW,
    )
    assert expense.success
    assert expense.message == "Expense recorded successfully!"
    assert expense.record.amount == Decimal("45.90")
    assert expense.record.type is TransactionType.expense
    assert expense.record.tags == frozenset({"weekly"})

    income = build_transaction(
        {
            "amount": "3000",
            "category_id": "income_salary",
            "type": "income",
            "date": datetime(2026, 3, 1, 9, 0),
        },
        now=NOW,
    )
    assert income.success
    assert income.message == "Income added successfully!"


def test_bad_transactions_fail_without_raising() -> None:
    negative = build_transaction(
        {"amount": "-5", "category_id": "c", "type": "expense", "date": NOW}, now=NOW
    )
    assert not negative.success
    assert negative.record is None
    assert negative.message.startswith("amount")

    too_precise = build_transaction(
        {"amount": "1.005", "category_id": "c", "type": "expense", "date": NOW}, now=NOW
    )
    assert not too_precise.success

    future = build_transaction(
        {
            "amount": "5",
            "category_id": "c",
            "type": "expense",
            "date": datetime(2026, 3, 20),
        },
        now=NOW,
    )
    assert not future.success
    assert future.message == "Transaction date cannot be in the future"

    missing = build_transaction({"amount": "5", "type": "expense", "date": NOW}, now=NOW)
    assert not missing.success


def test_build_category() -> None:
    result = build_category(
        {
            "name": "Pets",
            "icon": "🐶",
            "color": "#AA8844",
            "category_type": "expense",
            "is_cashback_eligible": True,
            "cashback_rate": "0.04",
        },
        now=NOW,
    )
    assert result.success
    assert result.message == "Category 'Pets' created successfully!"
    assert result.record.id.startswith("custom_")
    assert result.record.calculate_cashback(Decimal("100")) == Decimal("4")


def test_category_rules() -> None:
    assert not build_category({"name": ""}).success
    assert not build_category({"name": "x" * 31}).success
    assert not build_category({"name": "Pets", "is_cashback_eligible": True}).success
    assert not build_category({"name": "Pets", "cashback_rate": "1.2"}).success
    assert not build_category({"name": "   "}).success


def test_build_budget() -> None:
    result = build_budget(
        {
            "category_id": "expense_food",
            "amount": "250",
            "month": "2026-03-18",
            "alert_threshold": "0.3",
        },
        now=NOW,
    )
    assert result.success
    assert result.record.month == date(2026, 3, 1)
    assert result.record.alert_threshold == Decimal("0.3")

    assert not build_budget(
        {"category_id": "expense_food", "amount": "0", "month": "2026-03-01"}
    ).success
    assert not build_budget(
        {
            "category_id": "expense_food",
            "amount": "100",
            "month": "2026-03-01",
            "alert_threshold": "1.5",
        }
    ).success
    assert not build_budget(
        {
            "category_id": "expense_food",
            "amount": "100",
            "month": "2026-03-01",
            "unexpected": True,
        }
    ).success


def test_offset_aware_transaction_date_is_stored_naive() -> None:
    result = build_transaction(
        {
            "amount": "12.50",
            "category_id": "expense_food",
            "type": "expense",
            "date": "2026-03-02T10:00:00Z",
        },
        now=NOW,
    )
    assert result.success
    assert result.record.date.tzinfo is None
    expected = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc).astimezone()
    assert result.record.date == expected.replace(tzinfo=None)


def test_budget_amounts_reject_sub_cent_precision() -> None:
    assert not build_budget(
        {"category_id": "expense_food", "amount": "100.005", "month": "2026-03-01"}
    ).success
    assert not build_budget(
        {
            "category_id": "expense_food",
            "amount": "100",
            "month": "2026-03-01",
            "carried_over_amount": "0.001",
        }
    ).success
    assert build_budget(
        {"category_id": "expense_food", "amount": "100.05", "month": "2026-03-01"}
    ).success
