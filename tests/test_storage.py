from datetime import date
from decimal import Decimal

import pytest

from fintrack.database import expenses, make_engine
from fintrack.exceptions import ConstraintViolationError, PersistenceError
from fintrack.models import Expense
from fintrack.storage import JSONRecordStore, JSONStorage, SQLRecordStore


def _expense(**overrides):
    values = dict(
        id=None,
        amount=Decimal("42.50"),
        date=date(2024, 3, 1),
        category_id="cat-1",
        description="Coffee",
    )
    values.update(overrides)
    return Expense(**values)


class TestJSONStorage:
    """Tests for the raw JSON document storage."""

    def test_missing_resource_loads_empty(self, json_storage):
        assert json_storage.load("nothing.json") == []

    def test_save_then_load(self, json_storage):
        json_storage.save("things.json", [{"id": "a"}, {"id": "b"}])

        assert json_storage.load("things.json") == [{"id": "a"}, {"id": "b"}]
        assert not (json_storage.base_path / "things.json.tmp").exists()

    def test_corrupted_file_raises(self, json_storage):
        (json_storage.base_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceError):
            json_storage.load("broken.json")

    def test_non_list_payload_raises(self, json_storage):
        (json_storage.base_path / "object.json").write_text('{"id": 1}', encoding="utf-8")

        with pytest.raises(PersistenceError):
            json_storage.load("object.json")


class TestJSONRecordStore:
    """Tests for the JSON-backed record store."""

    def test_records_survive_a_new_store_instance(self, tmp_path):
        store = JSONRecordStore(JSONStorage(tmp_path), "expenses.json", Expense)
        saved = store.save(_expense())

        reopened = JSONRecordStore(JSONStorage(tmp_path), "expenses.json", Expense)

        assert reopened.find_by_id(saved.id) == saved

    def test_amount_is_written_with_two_decimals(self, json_storage):
        store = JSONRecordStore(json_storage, "expenses.json", Expense)
        store.save(_expense(amount=Decimal("5.00")))

        assert json_storage.load("expenses.json")[0]["amount"] == "5.00"

    def test_save_existing_id_updates_in_place(self, json_storage):
        store = JSONRecordStore(json_storage, "expenses.json", Expense)
        first = store.save(_expense())
        second = store.save(_expense(description="Tea"))

        store.save(_expense(id=first.id, created_at=first.created_at, description="Espresso"))

        assert [record.description for record in store.find_all()] == ["Espresso", "Tea"]
        assert store.find_by_id(second.id) == second

    def test_delete_missing_is_silent(self, json_storage):
        store = JSONRecordStore(json_storage, "expenses.json", Expense)

        store.delete(_expense(id="missing"))

        assert store.find_all() == []


class TestSQLRecordStore:
    """Tests for the relational record store."""

    def test_save_assigns_identity(self, engine):
        store = SQLRecordStore(engine, expenses, Expense)

        saved = store.save(_expense())

        assert saved.id is not None
        assert saved.created_at == saved.updated_at
        assert store.find_by_id(saved.id) == saved

    def test_save_with_unknown_id_inserts(self, engine):
        store = SQLRecordStore(engine, expenses, Expense)

        saved = store.save(_expense(id="fixed-id"))

        assert saved.id == "fixed-id"
        assert store.find_by_id("fixed-id") == saved

    def test_amounts_come_back_as_decimals(self, engine):
        store = SQLRecordStore(engine, expenses, Expense)
        saved = store.save(_expense(amount=Decimal("0.10")))

        found = store.find_by_id(saved.id)

        assert isinstance(found.amount, Decimal)
        assert found.amount == Decimal("0.10")

    @pytest.mark.parametrize(
        "amount", [Decimal("9999999999999999.99"), Decimal("1234567890123456.78"), Decimal("0.01")]
    )
    def test_amounts_round_trip_exactly(self, engine, amount):
        store = SQLRecordStore(engine, expenses, Expense)
        saved = store.save(_expense(amount=amount))

        found = store.find_by_id(saved.id)

        assert found.amount == amount
        assert found.amount.as_tuple().exponent == -2

    def test_amounts_are_stored_as_integer_cents(self, engine):
        store = SQLRecordStore(engine, expenses, Expense)
        saved = store.save(_expense(amount=Decimal("12.34")))

        with engine.connect() as conn:
            raw = conn.exec_driver_sql(
                "SELECT amount FROM expenses WHERE id = ?", (saved.id,)
            ).scalar_one()

        assert raw == 1234

    def test_null_required_column_raises_constraint_violation(self, engine):
        store = SQLRecordStore(engine, expenses, Expense)

        with pytest.raises(ConstraintViolationError):
            store.save(_expense(category_id=None))

    def test_missing_schema_raises_persistence_error(self, tmp_path):
        store = SQLRecordStore(make_engine(f"sqlite:///{tmp_path / 'empty.db'}"), expenses, Expense)

        with pytest.raises(PersistenceError):
            store.find_all()
