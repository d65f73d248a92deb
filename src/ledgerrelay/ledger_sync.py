"""Append-without-duplicate against a remote versioned ledger document.

Every append is a full read-modify-write: fetch the ledger and its version
token, check the roll number, append, then write back conditionally on the
token. The store is the only durable state; nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ledgerrelay.constants import LEDGER_MAX_ATTEMPTS
from ledgerrelay.ledger import Ledger, validate_record
from ledgerrelay.store_backend import StaleVersionError

if TYPE_CHECKING:
    from ledgerrelay.store_backend import DocumentStore

logger = logging.getLogger(__name__)


class ConflictError(Exception):
    """A record with the same roll number is already in the ledger."""

    def __init__(self, roll_number: str) -> None:
        super().__init__(f"Evaluator with roll number '{roll_number}' already exists")
        self.roll_number = roll_number


@dataclass(frozen=True)
class AppendResult:
    """Outcome of a successful append."""

    location: str
    record: dict[str, Any]
    ledger_size: int
    attempts: int


class LedgerSync:
    """Appends records to the ledger document at ``path`` in ``store``.

    - ``append()`` raises ConflictError on a duplicate roll number.
    - A stale version token restarts the cycle from the fetch, up to
      ``max_attempts`` cycles; after that StaleVersionError propagates.
    - Any other store failure propagates immediately and nothing is written.
    """

    def __init__(
        self,
        store: DocumentStore,
        path: str,
        max_attempts: int = LEDGER_MAX_ATTEMPTS,
        retry_delay: float = 0.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._store = store
        self._path = path
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay

    @property
    def path(self) -> str:
        return self._path

    async def load(self) -> tuple[Ledger, str | None]:
        """Fetch and decode the ledger. A missing document is an empty ledger."""
        document = await self._store.get_document(self._path)
        if document is None:
            return Ledger(), None
        return Ledger.from_json(document.content), document.token

    async def append(self, record: dict[str, Any]) -> AppendResult:
        """Append ``record`` unless its roll number is already present."""
        record, roll_number = validate_record(record)

        for attempt in range(1, self._max_attempts + 1):
            ledger, token = await self.load()
            if ledger.contains(roll_number):
                raise ConflictError(roll_number)

            ledger.append(record)
            try:
                location = await self._store.put_document(
                    self._path,
                    ledger.to_bytes(),
                    f"Add evaluator {roll_number}",
                    token,
                )
            except StaleVersionError:
                if attempt == self._max_attempts:
                    logger.warning(
                        "Ledger %s changed during append of %s; gave up after %d attempt(s).",
                        self._path, roll_number, attempt,
                    )
                    raise
                logger.warning(
                    "Ledger %s changed during append of %s (attempt %d/%d), retrying...",
                    self._path, roll_number, attempt, self._max_attempts,
                )
                if self._retry_delay:
                    await asyncio.sleep(self._retry_delay)
                continue

            logger.info(
                "Appended evaluator %s to %s (%d record(s)).",
                roll_number, self._path, len(ledger),
            )
            return AppendResult(
                location=location,
                record=record,
                ledger_size=len(ledger),
                attempts=attempt,
            )

        raise AssertionError("unreachable")  # pragma: no cover
