"""FastAPI application: health, file upload relay, evaluator ledger appends.

Routes:
- GET  /health       — liveness plus keep-alive counters
- POST /upload       — multipart field ``resume`` relayed into the store
- POST /evaluations  — JSON record appended to the evaluator ledger

Errors from the append protocol are mapped to status codes here and
nowhere else: ValidationError → 400, ConflictError → 409,
RemoteStoreError → 500.
"""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledgerrelay import __version__
from ledgerrelay.config import RelayConfig
from ledgerrelay.github_client import GitHubContentsClient
from ledgerrelay.keepalive import KeepAlivePinger
from ledgerrelay.ledger import ValidationError, validate_record
from ledgerrelay.ledger_sync import ConflictError, LedgerSync
from ledgerrelay.store_backend import DocumentStore, RemoteStoreError
from ledgerrelay.uploads import relay_upload

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _failure(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, **extra},
    )


def create_app(
    config: RelayConfig,
    store: DocumentStore | None = None,
    pinger: KeepAlivePinger | None = None,
    keepalive: bool = True,
) -> FastAPI:
    """Application factory.

    ``store`` defaults to a GitHubContentsClient built from ``config`` and
    ``pinger`` to a KeepAlivePinger for the configured endpoint. Pass
    ``keepalive=False`` to run without the background ping.
    """
    owns_store = store is None
    if store is None:
        store = GitHubContentsClient(
            token=config.github_token,
            owner=config.github_owner,
            repo=config.github_repo,
            branch=config.github_branch,
            api_base=config.github_api_base,
        )
    if pinger is None and keepalive:
        pinger = KeepAlivePinger(
            config.keepalive_endpoint,
            path=config.keepalive_path,
            interval_secs=config.keepalive_interval_secs,
            timeout_secs=config.keepalive_timeout_secs,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if pinger is not None:
            await pinger.start()
        logger.info("Relay started: %s", config.summary())

        yield

        logger.info("Shutting down relay...")
        if pinger is not None:
            await pinger.stop()
        if owns_store and isinstance(store, GitHubContentsClient):
            await store.close()

    app = FastAPI(title="ledgerrelay", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.pinger = pinger
    app.state.ledger_sync = LedgerSync(
        store, config.ledger_path, max_attempts=config.ledger_max_attempts
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # -- error mapping --------------------------------------------------------

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _failure(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Only /upload declares form parameters; its failures carry a timestamp.
        return _failure(400, "Invalid request", timestamp=_now())

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return _failure(409, str(exc))

    @app.exception_handler(RemoteStoreError)
    async def store_error_handler(request: Request, exc: RemoteStoreError) -> JSONResponse:
        logger.error(
            "Remote store failure on %s %s: %s (status %s)",
            request.method, request.url.path, exc, exc.status_code,
        )
        return _failure(500, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _failure(500, "Internal server error")

    # -- routes ---------------------------------------------------------------

    @app.get("/health")
    async def health() -> dict[str, Any]:
        body: dict[str, Any] = {"status": "healthy", "timestamp": _now()}
        if pinger is not None:
            body["keepalive"] = pinger.health()
        return body

    @app.post("/upload")
    async def upload(resume: UploadFile | None = File(None)) -> JSONResponse:
        try:
            if resume is None:
                raise ValidationError("No file uploaded")
            data = await resume.read()
            url = await relay_upload(store, resume.filename, data, config.upload_dir)
        except ValidationError as exc:
            logger.warning("Upload rejected: %s", exc)
            return _failure(400, str(exc), timestamp=_now())
        except RemoteStoreError as exc:
            logger.error("Upload failed: %s", exc)
            return _failure(500, str(exc), timestamp=_now())
        finally:
            if resume is not None:
                await resume.close()

        return JSONResponse({"success": True, "url": url, "timestamp": _now()})

    @app.post("/evaluations")
    async def add_evaluation(request: Request) -> JSONResponse:
        raw = await request.body()
        try:
            body = json.loads(raw) if raw.strip() else None
        except ValueError:
            body = None
        record, _ = validate_record(body)

        result = await app.state.ledger_sync.append(record)
        return JSONResponse({
            "success": True,
            "message": "Evaluator added successfully",
            "githubUrl": result.location,
            "data": result.record,
        })

    return app
