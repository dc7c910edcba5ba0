"""
Tests for the JSON-file ledger.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from design_request_backend.errors import PersistenceError
from design_request_backend.ledger import RequestLedger
from design_request_backend.records import build_design_request
from design_request_backend.validation import validate_submission


@pytest.fixture
def make_record(valid_fields):
    form = validate_submission(valid_fields)
    return lambda: build_design_request(form)


class TestRequestLedger:
    def test_store_created_empty_on_first_access(self, ledger):
        assert not ledger.path.exists()
        assert ledger.list_all() == []
        assert json.loads(ledger.path.read_text(encoding="utf-8")) == []

    def test_round_trip_preserves_fields_and_order(self, ledger, make_record):
        records = [make_record() for _ in range(3)]
        for record in records:
            ledger.append(record)
        assert ledger.list_all() == records

    def test_records_stored_with_camel_case_keys(self, ledger, make_record):
        record = make_record()
        ledger.append(record)
        stored = json.loads(ledger.path.read_text(encoding="utf-8"))[0]
        assert stored["clientName"] == "Alice Cerney"
        assert stored["status"] == "pending_review"
        assert stored["id"] == record.id

    def test_duplicate_id_rejected(self, ledger, make_record):
        record = make_record()
        ledger.append(record)
        with pytest.raises(PersistenceError):
            ledger.append(record)
        assert len(ledger.list_all()) == 1

    def test_concurrent_appends_all_survive(self, ledger, make_record):
        records = [make_record() for _ in range(25)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(ledger.append, records))
        assert {r.id for r in ledger.list_all()} == {r.id for r in records}

    def test_concurrent_appends_through_separate_instances(self, tmp_path, make_record):
        path = tmp_path / "shared.json"
        ledgers = [RequestLedger(path), RequestLedger(tmp_path / "." / "shared.json")]
        records = [make_record() for _ in range(30)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda pair: ledgers[pair[0] % 2].append(pair[1]), enumerate(records)))
        assert {r.id for r in RequestLedger(path).list_all()} == {r.id for r in records}

    def test_unwritable_location_raises(self, tmp_path, make_record):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        ledger = RequestLedger(blocker / "requests.json")
        with pytest.raises(PersistenceError):
            ledger.append(make_record())

    def test_corrupt_file_raises_instead_of_resetting(self, ledger, make_record):
        ledger.path.parent.mkdir(parents=True)
        ledger.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            ledger.append(make_record())
        assert ledger.path.read_text(encoding="utf-8") == "{not json"

    def test_attach_pdf_url(self, ledger, make_record):
        first, second = make_record(), make_record()
        ledger.append(first)
        ledger.append(second)
        ledger.attach_pdf_url(second.id, "https://storage.example.test/b.pdf")
        stored = ledger.list_all()
        assert stored[0].pdf_url is None
        assert stored[1].pdf_url == "https://storage.example.test/b.pdf"

    def test_attach_pdf_url_unknown_id(self, ledger):
        with pytest.raises(PersistenceError):
            ledger.attach_pdf_url("missing", "https://storage.example.test/x.pdf")

    def test_no_temp_files_left_behind(self, ledger, make_record):
        ledger.append(make_record())
        assert [p.name for p in ledger.path.parent.iterdir()] == ["requests.json"]
