"""
Tests for the SQLite relational mirror.
"""

import pytest

from design_request_backend.configuration import load_settings
from design_request_backend.database import RequestMirror, build_mirror
from design_request_backend.errors import MirrorError
from design_request_backend.records import build_design_request
from design_request_backend.validation import validate_submission


@pytest.fixture
def row(valid_fields):
    record = build_design_request(validate_submission(valid_fields))
    return record.with_pdf_url("https://storage.example.test/a.pdf").to_mirror_row()


class TestRequestMirror:
    def test_insert_and_get(self, mirror, row):
        mirror.insert(row)
        stored = mirror.get_request(row["id"])
        assert stored["client_name"] == "Alice Cerney"
        assert stored["pdf_url"] == "https://storage.example.test/a.pdf"
        assert stored["status"] == "pending_review"

    def test_get_missing_returns_none(self, mirror):
        assert mirror.get_request("missing") is None

    def test_duplicate_id_is_mirror_error(self, mirror, row):
        mirror.insert(row)
        with pytest.raises(MirrorError):
            mirror.insert(row)

    def test_missing_column_is_mirror_error(self, mirror, row):
        del row["budget"]
        with pytest.raises(MirrorError):
            mirror.insert(row)

    def test_unreachable_database_is_mirror_error(self, tmp_path, row):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(MirrorError):
            RequestMirror(blocker / "mirror.db").insert(row)

    def test_schema_survives_new_instances(self, mirror, row):
        mirror.insert(row)
        reopened = RequestMirror(mirror.db_path)
        assert reopened.get_request(row["id"])["email"] == "alice@example.com"


class TestBuildMirror:
    def test_disabled_when_path_empty(self):
        assert build_mirror(load_settings(overrides={"mirror": {"db_path": ""}})) is None

    def test_enabled_with_path(self, tmp_path):
        settings = load_settings(overrides={"mirror": {"db_path": str(tmp_path / "m.db")}})
        assert build_mirror(settings).db_path == tmp_path / "m.db"
