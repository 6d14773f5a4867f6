"""Core business logic package for the finance tracker."""

from .exceptions import (
    ConstraintViolationError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from .filters import ExpenseFilters, IncomeFilters, Predicate
from .models import Category, Expense, Income
from .services import CategoryService, ExpenseService, IncomeService
from .storage import JSONRecordStore, JSONStorage, SQLRecordStore

__all__ = [
    "Category",
    "Expense",
    "Income",
    "ExpenseFilters",
    "IncomeFilters",
    "Predicate",
    "CategoryService",
    "ExpenseService",
    "IncomeService",
    "JSONStorage",
    "JSONRecordStore",
    "SQLRecordStore",
    "ConstraintViolationError",
    "PersistenceError",
    "ValidationError",
    "RecordNotFoundError",
]
