"""Relay an uploaded file into the remote store."""

from __future__ import annotations

import logging
import posixpath
import time
from typing import TYPE_CHECKING

from ledgerrelay.constants import DEFAULT_UPLOAD_DIR
from ledgerrelay.ledger import ValidationError

if TYPE_CHECKING:
    from ledgerrelay.store_backend import DocumentStore

logger = logging.getLogger(__name__)


def upload_path(filename: str, upload_dir: str = DEFAULT_UPLOAD_DIR, now_ms: int | None = None) -> str:
    """Build ``<upload_dir>/<epoch-millis>_<basename>`` for an uploaded file."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    # Client-supplied names may carry directories (including Windows ones).
    basename = posixpath.basename(filename.replace("\\", "/"))
    return f"{upload_dir.strip('/')}/{now_ms}_{basename}"


async def relay_upload(
    store: DocumentStore,
    filename: str | None,
    data: bytes,
    upload_dir: str = DEFAULT_UPLOAD_DIR,
) -> str:
    """Write the file to a fresh path and return its store location."""
    if not filename or not posixpath.basename(filename.replace("\\", "/")):
        raise ValidationError("No file uploaded")

    path = upload_path(filename, upload_dir)
    location = await store.put_document(path, data, f"Upload {filename}")
    logger.info("Uploaded %s (%d bytes) to %s.", filename, len(data), path)
    return location
