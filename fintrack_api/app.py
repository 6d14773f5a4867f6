"""Flask REST API exposing the finance tracker services."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from fintrack.config import Config
from fintrack.database import categories, expenses, income, init_db, make_engine
from fintrack.exceptions import (
    ConstraintViolationError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from fintrack.filters import ExpenseFilters, IncomeFilters
from fintrack.logger import setup_logging
from fintrack.models import Category, Expense, Income
from fintrack.services import CategoryService, ExpenseService, IncomeService
from fintrack.storage import JSONRecordStore, JSONStorage, SQLRecordStore
from fintrack.validators import category_from_payload, expense_from_payload, income_from_payload

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _build_services(config: Config):
    if config.storage == "json":
        storage = JSONStorage(config.data_dir)
        category_store = JSONRecordStore(storage, "categories.json", Category)
        expense_store = JSONRecordStore(storage, "expenses.json", Expense)
        income_store = JSONRecordStore(storage, "income.json", Income)
    else:
        engine = make_engine(config.database_url)
        init_db(engine)
        category_store = SQLRecordStore(engine, categories, Category)
        expense_store = SQLRecordStore(engine, expenses, Expense)
        income_store = SQLRecordStore(engine, income, Income)
    return (
        CategoryService(category_store),
        ExpenseService(expense_store),
        IncomeService(income_store),
    )


def create_app(config: Optional[Config] = None) -> Flask:
    config = config or Config.from_env()
    setup_logging(config)

    app = Flask(__name__)
    app.config["FINTRACK"] = config

    CORS(app, resources={r"/*": {"origins": config.cors_origins}})

    category_service, expense_service, income_service = _build_services(config)
    api = Blueprint("fintrack", __name__)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _client_error(exc: Exception, status: int, message: str):
        app.logger.warning("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    def _internal_error(exc: Exception):
        app.logger.error("Unhandled error while serving %s %s", request.method, request.path, exc_info=exc)
        return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _client_error(exc, 400, "Validation error")

    @app.errorhandler(ConstraintViolationError)
    def handle_constraint_violation(exc: ConstraintViolationError):
        return _client_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _client_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _internal_error(exc)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        return _internal_error(exc)

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Malformed JSON body")
        return data

    def _expense_dict(expense: Expense, lookup: Optional[Mapping[str, Category]] = None) -> Dict[str, Any]:
        if lookup is None:
            category = category_service.resolve(expense.category_id)
        else:
            category = lookup.get(expense.category_id)
        return expense.to_dict(category=category)

    def _require(record: Optional[Any], kind: str, record_id: str) -> Any:
        if record is None:
            raise RecordNotFoundError(f"{kind} {record_id} not found")
        return record

    # Categories -----------------------------------------------------------
    @api.get("/categories")
    def list_categories():
        return _success([category.to_dict() for category in category_service.list()])

    @api.get("/categories/<category_id>")
    def get_category(category_id: str):
        category = _require(category_service.get_by_id(category_id), "Category", category_id)
        return _success(category.to_dict())

    @api.post("/categories")
    def create_category():
        category = category_service.create(category_from_payload(_json_body()))
        return _success(category.to_dict(), 201)

    @api.put("/categories/<category_id>")
    def update_category(category_id: str):
        _require(category_service.get_by_id(category_id), "Category", category_id)
        changes = category_from_payload(_json_body())
        category = category_service.update(category_id, changes)
        return _success(category.to_dict())

    @api.delete("/categories/<category_id>")
    def delete_category(category_id: str):
        category_service.delete(category_id)
        return _success({}, 204)

    # Expenses -------------------------------------------------------------
    @api.get("/expenses")
    def list_expenses():
        filters = ExpenseFilters.from_args(request.args)
        records = expense_service.list_filtered(filters)
        lookup = category_service.lookup() if records else {}
        return _success([_expense_dict(expense, lookup) for expense in records])

    @api.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        expense = _require(expense_service.get_by_id(expense_id), "Expense", expense_id)
        return _success(_expense_dict(expense))

    @api.post("/expenses")
    def create_expense():
        expense = expense_service.create(expense_from_payload(_json_body()))
        return _success(expense.to_dict(), 201)

    @api.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        # An unknown id is reported as such regardless of what the body holds.
        _require(expense_service.get_by_id(expense_id), "Expense", expense_id)
        changes = expense_from_payload(_json_body())
        expense = expense_service.update(expense_id, changes)
        return _success(expense.to_dict())

    @api.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        expense_service.delete(expense_id)
        return _success({}, 204)

    # Income ---------------------------------------------------------------
    @api.get("/income")
    def list_income():
        filters = IncomeFilters.from_args(request.args)
        return _success([record.to_dict() for record in income_service.list_filtered(filters)])

    @api.get("/income/<income_id>")
    def get_income(income_id: str):
        record = _require(income_service.get_by_id(income_id), "Income", income_id)
        return _success(record.to_dict())

    @api.post("/income")
    def create_income():
        record = income_service.create(income_from_payload(_json_body()))
        return _success(record.to_dict(), 201)

    @api.put("/income/<income_id>")
    def update_income(income_id: str):
        _require(income_service.get_by_id(income_id), "Income", income_id)
        changes = income_from_payload(_json_body())
        record = income_service.update(income_id, changes)
        return _success(record.to_dict())

    @api.delete("/income/<income_id>")
    def delete_income(income_id: str):
        income_service.delete(income_id)
        return _success({}, 204)

    app.register_blueprint(api, url_prefix=config.url_prefix or None)
    return app
