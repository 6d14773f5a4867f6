"""Filter predicates for expense and income listings.

A :class:`Predicate` is a conjunction of :class:`Clause` objects. Each clause
can be evaluated in memory against a record or rendered as a SQLAlchemy
expression against a table whose column names match the record attributes,
so the JSON and relational stores answer the same query identically.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import String, Table, and_, func, true
from sqlalchemy.sql.elements import ColumnElement

from .validators import (
    MAX_AMOUNT,
    optional_query_date,
    optional_query_decimal,
    optional_query_str,
)

__all__ = ["Clause", "Predicate", "ExpenseFilters", "IncomeFilters"]


def _icontains(value: Optional[str], term: str) -> bool:
    if value is None:
        return False
    return term.lower() in value.lower()


_MEMORY_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ge": operator.ge,
    "le": operator.le,
    "icontains": _icontains,
}


@dataclass(frozen=True)
class Clause:
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _MEMORY_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def matches(self, record: object) -> bool:
        candidate = getattr(record, self.field)
        if candidate is None and self.op != "icontains":
            return False
        return _MEMORY_OPS[self.op](candidate, self.value)

    def to_sql(self, table: Table) -> ColumnElement:
        column = table.c[self.field]
        if self.op == "eq":
            return column == self.value
        if self.op == "ge":
            return column >= self.value
        if self.op == "le":
            return column <= self.value
        return func.lower(column, type_=String).contains(self.value.lower(), autoescape=True)


@dataclass(frozen=True)
class Predicate:
    clauses: Tuple[Clause, ...] = ()

    def matches(self, record: object) -> bool:
        return all(clause.matches(record) for clause in self.clauses)

    def apply(self, records: Iterable[Any]) -> List[Any]:
        return [record for record in records if self.matches(record)]

    def to_sql(self, table: Table) -> ColumnElement:
        if not self.clauses:
            return true()
        return and_(*(clause.to_sql(table) for clause in self.clauses))


def _is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


_CENT = Decimal("0.01")
# Stored amounts never exceed MAX_AMOUNT, so clamping a bound past it selects the same records.
_BOUND_LIMIT = MAX_AMOUNT + _CENT


def _cent_bound(bound: Optional[Decimal], rounding: str) -> Optional[Decimal]:
    """Round an amount bound onto the cent grid that stored amounts live on."""
    if bound is None:
        return None
    clamped = max(-_BOUND_LIMIT, min(bound, _BOUND_LIMIT))
    return clamped.quantize(_CENT, rounding=rounding)


def _build(*candidates: Tuple[str, str, Any]) -> Predicate:
    return Predicate(
        tuple(Clause(field, op, value) for field, op, value in candidates if _is_present(value))
    )


@dataclass(frozen=True)
class ExpenseFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    description: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ExpenseFilters":
        """Parse camelCase query parameters; raises ValidationError on bad values."""
        return cls(
            start_date=optional_query_date(args, "startDate"),
            end_date=optional_query_date(args, "endDate"),
            category_id=optional_query_str(args, "categoryId"),
            min_amount=optional_query_decimal(args, "minAmount"),
            max_amount=optional_query_decimal(args, "maxAmount"),
            description=optional_query_str(args, "description"),
        )

    def to_predicate(self) -> Predicate:
        return _build(
            ("date", "ge", self.start_date),
            ("date", "le", self.end_date),
            ("category_id", "eq", self.category_id),
            ("amount", "ge", _cent_bound(self.min_amount, ROUND_CEILING)),
            ("amount", "le", _cent_bound(self.max_amount, ROUND_FLOOR)),
            ("description", "icontains", self.description),
        )


@dataclass(frozen=True)
class IncomeFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    source: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    description: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "IncomeFilters":
        """Parse camelCase query parameters; raises ValidationError on bad values."""
        return cls(
            start_date=optional_query_date(args, "startDate"),
            end_date=optional_query_date(args, "endDate"),
            source=optional_query_str(args, "source"),
            min_amount=optional_query_decimal(args, "minAmount"),
            max_amount=optional_query_decimal(args, "maxAmount"),
            description=optional_query_str(args, "description"),
        )

    def to_predicate(self) -> Predicate:
        # Unlike an expense's category, the income source is matched as a substring.
        return _build(
            ("date", "ge", self.start_date),
            ("date", "le", self.end_date),
            ("source", "icontains", self.source),
            ("amount", "ge", _cent_bound(self.min_amount, ROUND_CEILING)),
            ("amount", "le", _cent_bound(self.max_amount, ROUND_FLOOR)),
            ("description", "icontains", self.description),
        )
