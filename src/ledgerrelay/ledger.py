"""Evaluator ledger: an ordered list of records keyed by roll number.

Pure data model — no I/O. The ledger is stored remotely as a single JSON
array; records are kept verbatim, the roll number is only read from them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ledgerrelay.constants import ROLL_NUMBER_ALIASES
from ledgerrelay.store_backend import RemoteStoreError

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Client input is missing or malformed."""


class LedgerDecodeError(RemoteStoreError):
    """The stored ledger document is not a JSON array of objects."""


def roll_numbers_of(record: dict[str, Any]) -> list[str]:
    """Return every non-empty roll number in the record, in alias order.

    Values are compared as stripped strings; None and blank values don't count.
    """
    keys: list[str] = []
    for alias in ROLL_NUMBER_ALIASES:
        value = record.get(alias)
        if value is None or isinstance(value, (dict, list)):
            continue
        key = str(value).strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def roll_number_of(record: dict[str, Any]) -> str | None:
    """Return the record's roll number (first non-empty alias), if any."""
    keys = roll_numbers_of(record)
    return keys[0] if keys else None


def validate_record(body: Any) -> tuple[dict[str, Any], str]:
    """Check an incoming request body. Returns ``(record, roll_number)``."""
    if not isinstance(body, dict):
        raise ValidationError("Request body is required")
    keys = roll_numbers_of(body)
    if not keys:
        raise ValidationError("Evaluator roll number is required")
    if len(keys) > 1:
        raise ValidationError(
            "Evaluator roll number fields disagree: " + ", ".join(repr(k) for k in keys)
        )
    return body, keys[0]


@dataclass
class Ledger:
    """Append-only list of evaluator records, unique by roll number."""

    records: list[dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def find(self, roll_number: str) -> dict[str, Any] | None:
        """Return the first record carrying this roll number under any alias."""
        for record in self.records:
            if roll_number in roll_numbers_of(record):
                return record
        return None

    def contains(self, roll_number: str) -> bool:
        return self.find(roll_number) is not None

    def append(self, record: dict[str, Any]) -> None:
        self.records.append(record)

    # -- serialization --------------------------------------------------------

    def to_json(self) -> str:
        return json.dumps(self.records, indent=2, ensure_ascii=False) + "\n"

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_json(cls, data: str | bytes | None) -> Ledger:
        """Deserialize a stored ledger. Empty or missing content is an empty ledger.

        Unlike a cache, this is the input to a read-modify-write, so corrupt
        content raises LedgerDecodeError instead of being replaced.
        """
        if data is None:
            return cls()
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise LedgerDecodeError("Ledger document is not UTF-8") from exc
        if not data.strip():
            return cls()

        try:
            obj = json.loads(data)
        except json.JSONDecodeError as exc:
            raise LedgerDecodeError(f"Ledger document is not valid JSON: {exc}") from exc

        if not isinstance(obj, list):
            raise LedgerDecodeError("Ledger document is not a JSON array")
        if not all(isinstance(item, dict) for item in obj):
            raise LedgerDecodeError("Ledger document contains non-object entries")
        return cls(records=obj)
