"""ledgerrelay — upload relay and evaluator ledger on a GitHub repository.

Accepts file and JSON uploads over HTTP, writes them through the GitHub
contents API, and keeps a companion service warm with a periodic ping.
"""

__version__ = "0.1.0"

from ledgerrelay.config import ConfigError, RelayConfig
from ledgerrelay.ledger import (
    Ledger,
    LedgerDecodeError,
    ValidationError,
    roll_number_of,
    roll_numbers_of,
    validate_record,
)
from ledgerrelay.store_backend import (
    DocumentStore,
    RemoteStoreError,
    StaleVersionError,
    StoreAuthError,
    StoredDocument,
)
from ledgerrelay.github_client import GitHubContentsClient
from ledgerrelay.ledger_sync import AppendResult, ConflictError, LedgerSync
from ledgerrelay.keepalive import KeepAlivePinger

__all__ = [
    "ConfigError",
    "RelayConfig",
    "Ledger",
    "LedgerDecodeError",
    "ValidationError",
    "roll_number_of",
    "roll_numbers_of",
    "validate_record",
    "DocumentStore",
    "RemoteStoreError",
    "StaleVersionError",
    "StoreAuthError",
    "StoredDocument",
    "GitHubContentsClient",
    "AppendResult",
    "ConflictError",
    "LedgerSync",
    "KeepAlivePinger",
]
