from datetime import date
from decimal import Decimal

import pytest

from fintrack.exceptions import ValidationError
from fintrack.models import Category, Expense
from fintrack.validators import (
    MAX_AMOUNT,
    category_from_payload,
    expense_from_payload,
    income_from_payload,
    parse_amount,
    parse_date,
    validate_optional_str,
)


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (42.5, Decimal("42.50")),
            ("42.5", Decimal("42.50")),
            (" 7 ", Decimal("7.00")),
            ("0.125", Decimal("0.13")),
            (1000, Decimal("1000.00")),
        ],
    )
    def test_valid_amounts(self, raw, expected):
        assert parse_amount(raw) == expected
        assert parse_amount(raw).as_tuple().exponent == -2

    @pytest.mark.parametrize("raw", [None, True, "", "ten", "Infinity", 0, "-1.00"])
    def test_invalid_amounts(self, raw):
        with pytest.raises(ValidationError):
            parse_amount(raw)

    def test_largest_amount_is_accepted(self):
        assert parse_amount(MAX_AMOUNT) == Decimal("9999999999999999.99")

    def test_amount_above_limit_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_amount("10000000000000000.00")


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2024-02-29", "date") == date(2024, 2, 29)

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_date(" 2024-03-01 ", "date") == date(2024, 3, 1)

    @pytest.mark.parametrize(
        "raw",
        [None, 20240229, "2023-02-29", "tomorrow", "20240229", "2024-W09-4", "2024-060"],
    )
    def test_invalid_dates(self, raw):
        with pytest.raises(ValidationError):
            parse_date(raw, "date")


class TestPayloads:
    def test_expense_payload_keeps_only_writable_fields(self):
        expense = expense_from_payload(
            {
                "id": "abc",
                "amount": "9.99",
                "date": "2024-03-01",
                "categoryId": " cat-1 ",
                "description": "  ",
                "createdAt": "2020-01-01T00:00:00Z",
                "category": {"id": "cat-1", "name": "Food"},
            }
        )

        assert expense == Expense(None, Decimal("9.99"), date(2024, 3, 1), "cat-1", None)

    def test_income_payload_requires_source(self):
        with pytest.raises(ValidationError):
            income_from_payload({"amount": "1", "date": "2024-01-01"})

    def test_category_payload(self):
        assert category_from_payload({"name": "Food", "color": "#123456"}) == Category(
            None, "Food", "#123456"
        )

    def test_payload_must_be_an_object(self):
        with pytest.raises(ValidationError):
            expense_from_payload(["amount", 1])

    def test_optional_string_length_is_enforced(self):
        with pytest.raises(ValidationError):
            validate_optional_str("x" * 11, "description", 10)
