"""Shared pytest fixtures for all tests."""

from datetime import date
from decimal import Decimal

import pytest

from fintrack.config import Config
from fintrack.database import categories, expenses, income, init_db, make_engine
from fintrack.models import Category, Expense, Income
from fintrack.services import CategoryService, ExpenseService, IncomeService
from fintrack.storage import JSONRecordStore, JSONStorage, SQLRecordStore
from fintrack_api.app import create_app


@pytest.fixture
def engine(tmp_path):
    """Create a SQLite database file with the schema applied."""
    engine = make_engine(f"sqlite:///{tmp_path / 'fintrack-test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def json_storage(tmp_path):
    return JSONStorage(tmp_path / "json-data")


@pytest.fixture(params=["sql", "json"])
def stores(request, engine, json_storage):
    """Category, expense and income stores for each storage backend."""
    if request.param == "sql":
        return (
            SQLRecordStore(engine, categories, Category),
            SQLRecordStore(engine, expenses, Expense),
            SQLRecordStore(engine, income, Income),
        )
    return (
        JSONRecordStore(json_storage, "categories.json", Category),
        JSONRecordStore(json_storage, "expenses.json", Expense),
        JSONRecordStore(json_storage, "income.json", Income),
    )


@pytest.fixture
def category_service(stores):
    return CategoryService(stores[0])


@pytest.fixture
def expense_service(stores):
    return ExpenseService(stores[1])


@pytest.fixture
def income_service(stores):
    return IncomeService(stores[2])


@pytest.fixture
def sample_expenses():
    """A small, varied expense set used by the filter tests."""
    return [
        Expense(None, Decimal("42.50"), date(2024, 3, 1), "cat-1", "Coffee beans"),
        Expense(None, Decimal("12.00"), date(2024, 3, 5), "cat-2", "Lunch with team"),
        Expense(None, Decimal("1200.00"), date(2024, 2, 1), "cat-3", "Rent"),
        Expense(None, Decimal("40.00"), date(2024, 2, 29), "cat-1", None),
        Expense(None, Decimal("50.00"), date(2024, 4, 1), "cat-1", "COFFEE machine descaler"),
        Expense(None, Decimal("7.99"), date(2024, 3, 1), "cat-2", "100% juice"),
        Expense(None, Decimal("99.95"), date(2023, 12, 31), "cat-4", "Gift_card"),
        Expense(None, Decimal("4.20"), date(2024, 3, 2), "cat-5", "Éclair au café"),
    ]


@pytest.fixture
def sample_income():
    return [
        Income(None, Decimal("1000.00"), date(2024, 1, 15), "Acme Corp", "Salary"),
        Income(None, Decimal("250.00"), date(2024, 2, 3), "Freelance", "Logo design"),
        Income(None, Decimal("50.00"), date(2024, 2, 14), "Grandma", None),
        Income(None, Decimal("1000.00"), date(2024, 2, 15), "ACME corporation", "Salary"),
        Income(None, Decimal("3.21"), date(2024, 3, 1), "Bank interest", "Savings_account"),
    ]


@pytest.fixture
def app(tmp_path):
    config = Config(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        log_level="WARNING",
    )
    app = create_app(config)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
