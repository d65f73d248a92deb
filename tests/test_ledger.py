"""Tests for the Ledger model, roll-number lookup and record validation."""

import json

import pytest

from ledgerrelay.ledger import (
    Ledger,
    LedgerDecodeError,
    ValidationError,
    roll_number_of,
    roll_numbers_of,
    validate_record,
)
from ledgerrelay.store_backend import RemoteStoreError


# ---------------------------------------------------------------------------
# roll_number_of
# ---------------------------------------------------------------------------


class TestRollNumberOf:
    @pytest.mark.parametrize("alias", ["rollNo", "rollNumber", "roll_no"])
    def test_each_alias(self, alias: str) -> None:
        assert roll_number_of({alias: "A1"}) == "A1"

    def test_strips_whitespace(self) -> None:
        assert roll_number_of({"rollNo": "  A1 "}) == "A1"

    def test_numbers_compare_as_strings(self) -> None:
        assert roll_number_of({"roll_no": 42}) == "42"

    def test_missing(self) -> None:
        assert roll_number_of({"name": "X"}) is None

    def test_blank_and_null_skipped(self) -> None:
        assert roll_number_of({"rollNo": "", "rollNumber": None, "roll_no": "B2"}) == "B2"

    def test_only_blank_values(self) -> None:
        assert roll_number_of({"rollNo": "   ", "rollNumber": None}) is None

    def test_first_alias_wins(self) -> None:
        assert roll_number_of({"rollNumber": "B", "rollNo": "A"}) == "A"

    def test_structured_values_ignored(self) -> None:
        assert roll_number_of({"rollNo": {"x": 1}, "roll_no": ["A"]}) is None

    def test_all_aliases_listed(self) -> None:
        assert roll_numbers_of({"roll_no": "B2", "rollNo": "A1"}) == ["A1", "B2"]

    def test_agreeing_aliases_collapse(self) -> None:
        assert roll_numbers_of({"rollNo": "A1", "roll_no": " A1 "}) == ["A1"]


# ---------------------------------------------------------------------------
# validate_record
# ---------------------------------------------------------------------------


class TestValidateRecord:
    def test_valid(self) -> None:
        body = {"rollNo": "A1", "name": "X"}
        record, key = validate_record(body)
        assert record is body
        assert key == "A1"

    @pytest.mark.parametrize("body", [None, [], "A1", 7])
    def test_missing_body(self, body) -> None:
        with pytest.raises(ValidationError, match="Request body is required"):
            validate_record(body)

    def test_empty_object_needs_roll_number(self) -> None:
        with pytest.raises(ValidationError, match="Evaluator roll number is required"):
            validate_record({})

    def test_missing_roll_number(self) -> None:
        with pytest.raises(ValidationError, match="Evaluator roll number is required"):
            validate_record({"name": "X", "rollNo": ""})

    def test_disagreeing_aliases(self) -> None:
        with pytest.raises(ValidationError, match="disagree"):
            validate_record({"rollNo": "A1", "roll_no": "B2"})

    def test_agreeing_aliases_accepted(self) -> None:
        _, key = validate_record({"rollNo": "A1", "rollNumber": " A1"})
        assert key == "A1"


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class TestLedger:
    def test_empty(self) -> None:
        ledger = Ledger()
        assert len(ledger) == 0
        assert not ledger.contains("A1")

    def test_append_preserves_order(self) -> None:
        ledger = Ledger()
        ledger.append({"rollNo": "A1"})
        ledger.append({"rollNo": "B2"})
        assert [r["rollNo"] for r in ledger.records] == ["A1", "B2"]

    def test_contains_across_aliases(self) -> None:
        ledger = Ledger(records=[{"rollNumber": "A1"}, {"roll_no": "B2"}])
        assert ledger.contains("A1")
        assert ledger.contains("B2")
        assert not ledger.contains("C3")

    def test_contains_any_alias_of_stored_record(self) -> None:
        ledger = Ledger(records=[{"rollNo": "A1", "roll_no": "B2"}])
        assert ledger.contains("A1")
        assert ledger.contains("B2")

    def test_find_returns_stored_record(self) -> None:
        rec = {"roll_no": " A1 ", "name": "X"}
        ledger = Ledger(records=[rec])
        assert ledger.find("A1") is rec


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestLedgerSerialization:
    def test_to_json_is_array(self) -> None:
        ledger = Ledger(records=[{"rollNo": "A1", "name": "X"}])
        assert json.loads(ledger.to_json()) == [{"rollNo": "A1", "name": "X"}]
        assert ledger.to_json().endswith("\n")

    def test_to_bytes_keeps_unicode(self) -> None:
        ledger = Ledger(records=[{"rollNo": "A1", "name": "Zoë"}])
        assert "Zoë".encode("utf-8") in ledger.to_bytes()

    def test_roundtrip(self) -> None:
        original = Ledger(records=[{"rollNo": "A1"}, {"roll_no": "B2", "score": 9}])
        restored = Ledger.from_json(original.to_bytes())
        assert restored.records == original.records

    @pytest.mark.parametrize("data", [None, "", b"", "  \n"])
    def test_empty_content_is_empty_ledger(self, data) -> None:
        assert len(Ledger.from_json(data)) == 0

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(LedgerDecodeError, match="not valid JSON"):
            Ledger.from_json("{not json")

    def test_object_document_raises(self) -> None:
        with pytest.raises(LedgerDecodeError, match="not a JSON array"):
            Ledger.from_json('{"rollNo": "A1"}')

    def test_non_object_entries_raise(self) -> None:
        with pytest.raises(LedgerDecodeError, match="non-object"):
            Ledger.from_json('[{"rollNo": "A1"}, 3]')

    def test_non_utf8_raises(self) -> None:
        with pytest.raises(LedgerDecodeError):
            Ledger.from_json(b"\xff\xfe[]")

    def test_decode_error_is_store_error(self) -> None:
        assert issubclass(LedgerDecodeError, RemoteStoreError)
