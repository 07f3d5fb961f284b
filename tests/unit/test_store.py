"""Tests for the JSON-file store and its schemas."""

import pytest
from pydantic import ValidationError

from esopadmin.sdk.store import RecordNotFoundError, Store


def add_employee(store, code="E001", name="Priya Sharma", **extra):
    return store.insert("employees", name=name, employee_code=code, **extra)


class TestInsertGet:

    def test_insert_assigns_id_and_writes_file(self, store):
        row = add_employee(store)
        assert row["id"]
        assert (store.root / "employees" / f"{row['id']}.json").exists()
        assert store.get("employees", row["id"]) == row

    def test_dates_are_canonical(self, store):
        row = add_employee(store, exit_date="30-Jun-25")
        assert row["exit_date"] == "2025-06-30"

    def test_unknown_field_rejected(self, store):
        with pytest.raises(ValidationError):
            store.insert("employees", name="A", employee_code="E1", favourite_colour="blue")

    def test_bad_grant_rejected(self, store):
        with pytest.raises(ValidationError):
            store.insert("grants", grant_number="G42", employee_id="x",
                         grant_date="2024-01-01", total_options=10)
        with pytest.raises(ValidationError):
            store.insert("grants", grant_number="G-0042", employee_id="x",
                         grant_date="2024-01-01", total_options=0)

    def test_bad_date_rejected(self, store):
        with pytest.raises(ValidationError):
            store.insert("valuations", effective_date="2024-02-30", fair_value=10)

    def test_missing_row(self, store):
        with pytest.raises(RecordNotFoundError) as exc:
            store.get("grants", "nope")
        assert exc.value.table == "grants"
        assert exc.value.record_id == "nope"

    def test_unknown_table(self, store):
        with pytest.raises(ValueError, match="Unknown table"):
            store.list("payroll")


class TestQuery:

    def test_list_filters(self, store):
        add_employee(store, "E001", department="Engineering")
        add_employee(store, "E002", name="Arjun Rao", department="Sales")
        add_employee(store, "E003", name="Meera Iyer", department="Engineering")

        assert len(store.list("employees")) == 3
        assert {e["employee_code"] for e in store.list("employees", department="Engineering")} == {"E001", "E003"}
        assert store.find_one("employees", employee_code="E002")["name"] == "Arjun Rao"
        assert store.find_one("employees", employee_code="E999") is None

    def test_unreadable_row_skipped(self, store):
        add_employee(store)
        (store.root / "employees" / "broken.json").write_text("{not json")
        assert len(store.list("employees")) == 1


class TestUpdateDelete:

    def test_update(self, store):
        row = add_employee(store)
        updated = store.update("employees", row["id"], exit_date="2025-06-30")
        assert updated["exit_date"] == "2025-06-30"
        assert updated["id"] == row["id"]
        assert store.get("employees", row["id"])["exit_date"] == "2025-06-30"

    def test_update_validates(self, store):
        row = add_employee(store)
        with pytest.raises(ValidationError):
            store.update("employees", row["id"], name="")

    def test_delete(self, store):
        row = add_employee(store)
        assert store.delete("employees", row["id"]) is True
        assert store.delete("employees", row["id"]) is False
        assert store.list("employees") == []


class TestInsertMany:

    def test_all_or_nothing(self, store):
        rows = [
            {"grant_id": "g", "employee_id": "p", "vest_date": "2024-09-30", "options_count": 250},
            {"grant_id": "g", "employee_id": "p", "vest_date": "2025-09-30", "options_count": 0},
        ]
        with pytest.raises(ValidationError):
            store.insert_many("vesting_events", rows)
        assert store.list("vesting_events") == []

    def test_inserts(self, store):
        rows = [
            {"grant_id": "g", "employee_id": "p", "vest_date": "2024-09-30", "options_count": 250},
            {"grant_id": "g", "employee_id": "p", "vest_date": "30-Sep-25", "options_count": 250,
             "status": "lapsed"},
        ]
        stored = store.insert_many("vesting_events", rows)
        assert [r["vest_date"] for r in stored] == ["2024-09-30", "2025-09-30"]
        assert stored[0]["status"] == "pending"
        assert len(store.list("vesting_events", grant_id="g")) == 2


class TestGetStore:

    def test_uses_configured_data_dir(self, isolated_env):
        from esopadmin.sdk import get_store

        store = get_store()
        assert store.root == isolated_env["data_dir"] / "db"
