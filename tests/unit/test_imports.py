"""Tests for CSV bulk import: reading, validation and saving."""

import pytest

from esopadmin.sdk import imports
from esopadmin.sdk.imports import (
    import_csv,
    normalize_header,
    read_import_csv,
    save_rows,
    validate_row,
    validate_rows,
)
from esopadmin.sdk.schedule import ParsedVestingPair

HEADER = ("name,employee_code,personal_email,official_email,phone,department,"
          "grant_date,total_options,exit_date,notes,vesting_schedule")

SAMPLE_CSV = "\n".join([
    HEADER,
    'Priya Sharma,E001,priya@example.com,,,Engineering,01-Oct-23,1000,,,"2024-09-30:250, 2025-09-30:250"',
    "Arjun Rao,E002,,arjun@corp.example,,Sales,2023-04-01,500,,,2024-04-01:250,2025-04-01:250",
    ",E003,,,,,2023-04-01,500,,,",
    "Meera Iyer,E004,,,,,31-Feb-23,,,,",
    ",,,,,,,,,,",
    "",
]) + "\n"


def raw_row(**overrides):
    row = {
        "name": "Priya Sharma",
        "employee_code": "E001",
        "grant_date": "01-Oct-23",
        "total_options": "1000",
        "vesting_schedule": "2024-09-30:500, 2025-09-30:500",
    }
    row.update(overrides)
    return row


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "grants.csv"
    path.write_text(SAMPLE_CSV)
    return path


class TestReadImportCsv:

    def test_skips_blank_rows(self, sample_csv):
        rows = read_import_csv(sample_csv)
        assert len(rows) == 4
        assert rows[0]["source_file"] == "grants.csv"

    def test_quoted_schedule(self, sample_csv):
        rows = read_import_csv(sample_csv)
        assert rows[0]["vesting_schedule"] == "2024-09-30:250, 2025-09-30:250"

    def test_unquoted_schedule_overflow_is_joined(self, sample_csv):
        rows = read_import_csv(sample_csv)
        assert rows[1]["vesting_schedule"] == "2024-04-01:250,2025-04-01:250"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert read_import_csv(path) == []

    def test_header_aliases(self):
        assert normalize_header(" Employee Code ") == "employee_code"
        assert normalize_header("ECode") == "employee_code"
        assert normalize_header("Total-Options") == "total_options"
        assert normalize_header("vestingSchedule") == "vesting_schedule"
        assert normalize_header("Department") == "department"


class TestValidateRow:

    def test_valid(self):
        result = validate_row(raw_row(), 1)
        assert result.ok
        assert result.errors == []
        assert result.warnings == []
        assert result.row.grant_date == "2023-10-01"
        assert result.row.total_options == 1000
        assert result.row.vesting_schedule == [
            ParsedVestingPair("2024-09-30", 500),
            ParsedVestingPair("2025-09-30", 500),
        ]

    def test_every_error_reported(self):
        result = validate_row({"grant_date": "31-Feb-23", "exit_date": "someday"}, 3)
        assert not result.ok
        assert result.errors == [
            "Missing name",
            "Missing code",
            "Invalid grant date",
            "Missing total options",
            "Invalid exit date",
        ]
        assert result.label == "row 3"

    def test_zero_total(self):
        result = validate_row(raw_row(total_options="0"), 1)
        assert result.errors == ["Missing total options"]

    def test_total_with_thousands_separator(self):
        assert validate_row(raw_row(total_options="1,000"), 1).row.total_options == 1000

    def test_schedule_mismatch_is_a_warning(self):
        result = validate_row(raw_row(vesting_schedule="2024-09-30:250"), 1)
        assert result.ok
        assert result.warnings == ["Schedule covers 250 of 1000 options"]

    def test_no_schedule_is_a_warning(self):
        result = validate_row(raw_row(vesting_schedule="bad-token"), 1)
        assert result.ok
        assert result.warnings == ["No vesting events"]

    def test_schedule_as_list(self):
        schedule = [{"date": "30-Sep-25", "quantity": 600}, {"date": "2024-09-30", "quantity": 400},
                    {"bogus": True}]
        result = validate_row(raw_row(vesting_schedule=schedule), 1)
        assert [p.date for p in result.row.vesting_schedule] == ["2024-09-30", "2025-09-30"]
        assert result.row.scheduled_options == 1000

    def test_exit_date(self):
        assert validate_row(raw_row(exit_date="30-Jun-25"), 1).row.exit_date == "2025-06-30"

    def test_label_prefers_name_then_code(self):
        assert validate_row(raw_row(), 1).label == "Priya Sharma"
        assert validate_row(raw_row(name=""), 1).label == "E001"

    def test_optional_fields(self):
        row = validate_row(raw_row(personal_email="p@example.com", phone='"+91 98765"'), 1).row
        assert row.email == "p@example.com"
        assert row.phone == "+91 98765"
        assert row.department is None


class TestSaveRows:

    def test_save_batch(self, store):
        results = validate_rows([
            raw_row(),
            raw_row(name="Arjun Rao", employee_code="E002", vesting_schedule="2024-04-01:100"),
            {"name": "No Code", "grant_date": "2024-01-01", "total_options": "10"},
        ])
        summary = save_rows(store, results, as_of="2025-01-01")

        assert summary.added == 2
        assert summary.new_employees == 2
        assert summary.skipped == 1
        assert summary.grant_numbers == ["G-0001", "G-0002"]
        assert summary.errors == ["No Code: Missing code"]

        grant = store.find_one("grants", grant_number="G-0001")
        events = sorted(store.list("vesting_events", grant_id=grant["id"]), key=lambda e: e["vest_date"])
        assert [(e["vest_date"], e["options_count"], e["status"]) for e in events] == [
            ("2024-09-30", 500, "vested"),
            ("2025-09-30", 500, "pending"),
        ]
        assert grant["grant_date"] == "2023-10-01"
        assert grant["status"] == "active"

    def test_existing_employee_is_reused(self, store):
        save_rows(store, validate_rows([raw_row()]), as_of="2025-01-01")
        summary = save_rows(
            store,
            validate_rows([raw_row(grant_date="2024-10-01", total_options="200",
                                   vesting_schedule="2025-10-01:200", exit_date="2025-06-30")]),
            as_of="2025-01-01",
        )

        assert summary.added == 1
        assert summary.new_employees == 0
        assert summary.grant_numbers == ["G-0002"]

        employees = store.list("employees")
        assert len(employees) == 1
        assert employees[0]["exit_date"] == "2025-06-30"
        assert len(store.list("grants", employee_id=employees[0]["id"])) == 2

    def test_failed_row_does_not_stop_batch(self, store, monkeypatch):
        real_save_row = imports.save_row

        def flaky_save_row(store, row, as_of=None):
            if row.employee_code == "E002":
                raise OSError("disk full")
            return real_save_row(store, row, as_of=as_of)

        monkeypatch.setattr(imports, "save_row", flaky_save_row)
        results = validate_rows([
            raw_row(),
            raw_row(name="Arjun Rao", employee_code="E002"),
            raw_row(name="Meera Iyer", employee_code="E003"),
        ])
        summary = save_rows(store, results, as_of="2025-01-01")

        assert summary.added == 2
        assert summary.errors == ["Arjun Rao: disk full"]
        assert summary.grant_numbers == ["G-0001", "G-0002"]

    def _fail_second_event_write(self, store, monkeypatch):
        real_write = store._write
        event_writes = []

        def failing_write(table, row):
            if table == "vesting_events":
                event_writes.append(row)
                if len(event_writes) == 2:
                    raise OSError("disk full")
            return real_write(table, row)

        monkeypatch.setattr(store, "_write", failing_write)

    def test_event_write_failure_leaves_nothing_behind(self, store, monkeypatch):
        self._fail_second_event_write(store, monkeypatch)
        summary = save_rows(store, validate_rows([raw_row()]), as_of="2025-01-01")

        assert summary.added == 0
        assert summary.errors == ["Priya Sharma: disk full"]
        assert store.list("grants") == []
        assert store.list("vesting_events") == []
        assert store.list("employees") == []

    def test_event_write_failure_keeps_existing_employee(self, store, monkeypatch):
        save_rows(store, validate_rows([raw_row()]), as_of="2025-01-01")
        self._fail_second_event_write(store, monkeypatch)
        summary = save_rows(
            store,
            validate_rows([raw_row(grant_date="2024-10-01", total_options="200",
                                   vesting_schedule="2025-10-01:100, 2026-10-01:100")]),
            as_of="2025-01-01",
        )

        assert summary.added == 0
        assert len(store.list("employees")) == 1
        assert [g["grant_number"] for g in store.list("grants")] == ["G-0001"]
        assert len(store.list("vesting_events")) == 2

    def test_summary_dict(self, store):
        summary = save_rows(store, validate_rows([raw_row()]), as_of="2025-01-01")
        assert summary.to_dict() == {
            "added": 1, "new_employees": 1, "skipped": 0, "errors": [], "grant_numbers": ["G-0001"],
        }


class TestImportCsv:

    def test_import(self, store, sample_csv):
        result = import_csv(store, sample_csv, as_of="2025-01-01")
        results, summary = result["results"], result["summary"]

        assert [r.ok for r in results] == [True, True, False, False]
        assert results[2].errors == ["Missing name"]
        assert results[3].errors == ["Invalid grant date", "Missing total options"]
        assert summary.added == 2
        assert summary.skipped == 2
        assert len(store.list("vesting_events")) == 4
        assert store.find_one("grants", grant_number="G-0002")["source_file"] == "grants.csv"

    def test_dry_run_saves_nothing(self, store, sample_csv):
        result = import_csv(store, sample_csv, dry_run=True)
        assert result["summary"] is None
        assert len(result["results"]) == 4
        assert store.list("grants") == []
        assert store.list("employees") == []
