"""Tests for grant letter generation and upload matching."""

import pytest

from esopadmin.sdk.config import save_company_profile
from esopadmin.sdk.letters import (
    format_letter_date,
    generate_grant_letter,
    reconcile_letters,
    render_grant_letter,
)

GRANT = {
    "id": "g1",
    "grant_number": "G-0001",
    "employee_id": "p1",
    "grant_date": "2023-10-01",
    "total_options": 1000,
    "notes": "Subject to <board> approval",
}
EMPLOYEE = {"id": "p1", "name": "Priya & Co", "employee_code": "E001"}
EVENTS = [
    {"vest_date": "2025-09-30", "options_count": 750, "status": "pending"},
    {"vest_date": "2024-09-30", "options_count": 250, "status": "pending"},
]


@pytest.fixture
def seeded(isolated_env):
    """Isolated env with one employee holding one grant."""
    store = isolated_env["store"]
    employee = store.insert("employees", name="Priya Sharma", employee_code="E001",
                            personal_email="priya@example.com")
    grant = store.insert("grants", grant_number="G-0001", employee_id=employee["id"],
                         grant_date="2023-10-01", total_options=1000)
    store.insert_many("vesting_events", [
        {"grant_id": grant["id"], "employee_id": employee["id"],
         "vest_date": "2024-09-30", "options_count": 250},
        {"grant_id": grant["id"], "employee_id": employee["id"],
         "vest_date": "2025-09-30", "options_count": 750},
    ])
    return {**isolated_env, "employee": employee, "grant": grant}


class TestRenderGrantLetter:

    def test_contents(self):
        html = render_grant_letter(GRANT, EMPLOYEE, EVENTS, "Acme Pvt Ltd", "2025-01-01")
        assert "Grant Reference: <strong>G-0001</strong>" in html
        assert "Acme Pvt Ltd" in html
        assert "01 October 2023" in html
        assert "01 January 2025" in html
        assert "1,000" in html
        assert "250 (25%)" in html

    def test_events_in_date_order(self):
        html = render_grant_letter(GRANT, EMPLOYEE, EVENTS, "Acme", "2025-01-01")
        assert html.index("30 September 2024") < html.index("30 September 2025")

    def test_escapes_text(self):
        html = render_grant_letter(GRANT, EMPLOYEE, EVENTS, "Acme", "2025-01-01")
        assert "Priya &amp; Co" in html
        assert "&lt;board&gt;" in html
        assert "<board>" not in html

    def test_format_letter_date(self):
        assert format_letter_date("2024-09-30") == "30 September 2024"


class TestGenerateGrantLetter:

    def test_writes_letter_and_links_grant(self, seeded):
        store = seeded["store"]
        save_company_profile({"name": "Acme Pvt Ltd"})

        result = generate_grant_letter(store, "G-0001", issued_on="2025-01-01")

        letter_path = seeded["data_dir"] / "letters" / "generated" / "G-0001_letter.html"
        assert result == {
            "grant_number": "G-0001",
            "letter_path": str(letter_path),
            "recipient": "priya@example.com",
        }
        content = letter_path.read_text()
        assert "Acme Pvt Ltd" in content
        assert "Priya Sharma" in content
        assert store.get("grants", seeded["grant"]["id"])["letter_path"] == str(letter_path)

    def test_default_company_name(self, seeded, tmp_path):
        result = generate_grant_letter(seeded["store"], "G-0001", "2025-01-01", output_dir=tmp_path / "out")
        assert "The Company" in (tmp_path / "out" / "G-0001_letter.html").read_text()
        assert result["letter_path"] == str(tmp_path / "out" / "G-0001_letter.html")

    def test_unknown_grant(self, seeded):
        with pytest.raises(LookupError, match="G-0099"):
            generate_grant_letter(seeded["store"], "G-0099")


class TestReconcileLetters:

    def test_match_outcomes(self, seeded, tmp_path):
        store = seeded["store"]
        incoming = tmp_path / "incoming"
        incoming.mkdir()
        files = []
        for name in ("G0001_Priya Sharma.pdf", "G-0099_Ghost.pdf", "scan_001.pdf"):
            path = incoming / name
            path.write_bytes(b"%PDF-1.4 test")
            files.append(path)

        upload_dir = tmp_path / "uploaded"
        results = reconcile_letters(store, files, upload_dir=upload_dir)

        assert [(r["file"], r["grant_number"], r["matched"], r["ok"]) for r in results] == [
            ("G0001_Priya Sharma.pdf", "G-0001", True, True),
            ("G-0099_Ghost.pdf", "G-0099", False, True),
            ("scan_001.pdf", None, False, True),
        ]

        letters = store.list("grant_letters")
        assert len(letters) == 3
        assert sum(1 for letter in letters if letter["matched"]) == 1
        assert len(list(upload_dir.iterdir())) == 3

        grant = store.get("grants", seeded["grant"]["id"])
        assert grant["source_file"] == "G0001_Priya Sharma.pdf"
        assert grant["letter_path"].startswith(str(upload_dir))
        assert " " not in grant["letter_path"].rsplit("/", 1)[-1]

    def test_same_name_from_different_folders_kept_apart(self, seeded, tmp_path):
        store = seeded["store"]
        files = []
        for folder, content in (("first", b"%PDF-1.4 one"), ("second", b"%PDF-1.4 two")):
            (tmp_path / folder).mkdir()
            path = tmp_path / folder / "G0001_letter.pdf"
            path.write_bytes(content)
            files.append(path)

        upload_dir = tmp_path / "uploaded"
        reconcile_letters(store, files, upload_dir=upload_dir)
        reconcile_letters(store, files[:1], upload_dir=upload_dir)

        stored = sorted(p.read_bytes() for p in upload_dir.iterdir())
        assert stored == [b"%PDF-1.4 one", b"%PDF-1.4 one", b"%PDF-1.4 two"]
        paths = [letter["storage_path"] for letter in store.list("grant_letters")]
        assert len(paths) == 3
        assert len(set(paths)) == 3

    def test_missing_file_is_reported(self, seeded, tmp_path):
        results = reconcile_letters(seeded["store"], [tmp_path / "G0001_gone.pdf"],
                                    upload_dir=tmp_path / "uploaded")
        assert results[0]["ok"] is False
        assert results[0]["error"]
        assert seeded["store"].list("grant_letters") == []
