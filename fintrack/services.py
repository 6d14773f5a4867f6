"""Framework-agnostic business services for the finance tracker."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .exceptions import RecordNotFoundError
from .filters import ExpenseFilters, IncomeFilters
from .models import Category, Expense, Income, utcnow
from .storage import RecordStore

logger = logging.getLogger(__name__)


def _refreshed_timestamp(previous: Optional[datetime]) -> datetime:
    """Return the current time, nudged past ``previous`` if the clock has not moved."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class CategoryService:
    """Manages expense categories."""

    def __init__(self, store: RecordStore[Category]) -> None:
        self._store = store

    def list(self) -> List[Category]:
        return sorted(self._store.find_all(), key=lambda cat: cat.name.lower())

    def get_by_id(self, category_id: str) -> Optional[Category]:
        return self._store.find_by_id(category_id)

    def create(self, category: Category) -> Category:
        created = self._store.save(replace(category, id=None))
        logger.info("Created category %s", created.id)
        return created

    def update(self, category_id: str, changes: Category) -> Category:
        existing = self._get_or_raise(category_id)
        updated = replace(existing, name=changes.name, color=changes.color)
        saved = self._store.save(updated)
        logger.info("Updated category %s", category_id)
        return saved

    def delete(self, category_id: str) -> None:
        existing = self._get_or_raise(category_id)
        self._store.delete(existing)
        logger.info("Deleted category %s", category_id)

    def resolve(self, category_id: str) -> Optional[Category]:
        """Look up the display reference for an expense's category."""
        return self._store.find_by_id(category_id)

    def lookup(self) -> Dict[str, Category]:
        return {category.id: category for category in self._store.find_all()}

    def _get_or_raise(self, category_id: str) -> Category:
        category = self._store.find_by_id(category_id)
        if category is None:
            raise RecordNotFoundError(f"Category {category_id} not found")
        return category


class ExpenseService:
    """Manages expense records and mediates persistence."""

    def __init__(self, store: RecordStore[Expense]) -> None:
        self._store = store

    def list_filtered(self, filters: Optional[ExpenseFilters] = None) -> List[Expense]:
        filters = filters or ExpenseFilters()
        return self._store.find_all(filters.to_predicate())

    def get_by_id(self, expense_id: str) -> Optional[Expense]:
        return self._store.find_by_id(expense_id)

    def create(self, expense: Expense) -> Expense:
        # Identity and timestamps always come from the store.
        fresh = replace(expense, id=None, created_at=None, updated_at=None)
        created = self._store.save(fresh)
        logger.info("Created expense %s", created.id)
        return created

    def update(self, expense_id: str, changes: Expense) -> Expense:
        existing = self._get_or_raise(expense_id)
        updated = replace(
            existing,
            amount=changes.amount,
            date=changes.date,
            category_id=changes.category_id,
            description=changes.description,
            updated_at=_refreshed_timestamp(existing.updated_at),
        )
        saved = self._store.save(updated)
        logger.info("Updated expense %s", expense_id)
        return saved

    def delete(self, expense_id: str) -> None:
        existing = self._get_or_raise(expense_id)
        self._store.delete(existing)
        logger.info("Deleted expense %s", expense_id)

    def _get_or_raise(self, expense_id: str) -> Expense:
        expense = self._store.find_by_id(expense_id)
        if expense is None:
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        return expense


class IncomeService:
    """Manages income records and mediates persistence."""

    def __init__(self, store: RecordStore[Income]) -> None:
        self._store = store

    def list_filtered(self, filters: Optional[IncomeFilters] = None) -> List[Income]:
        filters = filters or IncomeFilters()
        return self._store.find_all(filters.to_predicate())

    def get_by_id(self, income_id: str) -> Optional[Income]:
        return self._store.find_by_id(income_id)

    def create(self, income: Income) -> Income:
        fresh = replace(income, id=None, created_at=None, updated_at=None)
        created = self._store.save(fresh)
        logger.info("Created income %s", created.id)
        return created

    def update(self, income_id: str, changes: Income) -> Income:
        existing = self._get_or_raise(income_id)
        updated = replace(
            existing,
            amount=changes.amount,
            date=changes.date,
            source=changes.source,
            description=changes.description,
            updated_at=_refreshed_timestamp(existing.updated_at),
        )
        saved = self._store.save(updated)
        logger.info("Updated income %s", income_id)
        return saved

    def delete(self, income_id: str) -> None:
        existing = self._get_or_raise(income_id)
        self._store.delete(existing)
        logger.info("Deleted income %s", income_id)

    def _get_or_raise(self, income_id: str) -> Income:
        income = self._store.find_by_id(income_id)
        if income is None:
            raise RecordNotFoundError(f"Income {income_id} not found")
        return income
