"""FastAPI application: create_app factory with /api endpoints."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv
from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

# Load .env from project root (backend/../.env or backend/.env)
_backend_dir = Path(__file__).resolve().parent.parent.parent
_project_root = _backend_dir.parent
load_dotenv(_project_root / ".env")
load_dotenv(_backend_dir / ".env")

from exterra import __version__
from exterra.config import Settings
from exterra.exceptions import (
    ExterraError,
    GeocodingError,
    InvalidRequestError,
    RecordNotFoundError,
)
from exterra.models.request import RemodelRequest
from exterra.services.pipeline import RemodelCompleted

if TYPE_CHECKING:
    from exterra.integrations.records import RecordStore
    from exterra.integrations.storage import BlobStore
    from exterra.services.pipeline import RemodelPipeline

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ExterraError], int] = {
    InvalidRequestError: 400,
    GeocodingError: 400,
    RecordNotFoundError: 404,
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: ValidationError | RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    message = str(first.get("msg", "Invalid request body")).removeprefix("Value error, ")
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{loc}: {message}" if loc else message


def parse_remodel_request(payload: Any) -> RemodelRequest:
    """Validate a raw JSON body.

    Raises
    ------
    InvalidRequestError
        If the body is not an object, has no address, or fails validation.
    """
    if not isinstance(payload, dict):
        msg = "Request body must be a JSON object"
        raise InvalidRequestError(msg)
    if not payload.get("address"):
        msg = "Missing address in request body"
        raise InvalidRequestError(msg)
    try:
        return RemodelRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError(_validation_message(exc)) from exc


def create_app(
    *,
    pipeline: RemodelPipeline | None = None,
    record_store: RecordStore | None = None,
    settings: Settings | None = None,
    blob_store: BlobStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    pipeline
        Optional pre-built pipeline for dependency injection (e.g. tests).
        If not provided, one is created from settings on first request to
        /api/remodel.
    record_store
        Optional record store for the details endpoint. Defaults to the
        pipeline's store.
    settings
        Process settings; read from the environment when omitted.
    blob_store
        Optional blob store for uploaded images. Defaults to Azure Blob
        Storage when configured.
    """
    settings = settings or Settings.from_env()
    app = FastAPI(title="Exterra", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store on app state so tests can inject fakes
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.record_store = record_store
    app.state.blob_store = blob_store

    def _get_pipeline() -> RemodelPipeline:
        pl: RemodelPipeline | None = app.state.pipeline
        if pl is not None:
            return pl
        # Lazy-create from settings
        from exterra.api.deps import create_pipeline

        pl = create_pipeline(
            settings,
            record_store=app.state.record_store,
            blob_store=app.state.blob_store,
        )
        app.state.pipeline = pl
        return pl

    def _get_record_store() -> RecordStore:
        store: RecordStore | None = app.state.record_store
        if store is not None:
            return store
        store = _get_pipeline().record_store
        app.state.record_store = store
        return store

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------

    @app.exception_handler(ExterraError)
    async def exterra_error(_request: Request, exc: ExterraError) -> JSONResponse:
        status_code = next(
            (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
            500,
        )
        if status_code >= 500:
            logger.error("Remodel request failed: %s", exc)
        return _error_response(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(400, _validation_message(exc))

    # ------------------------------------------------------------------
    # GET /api/health
    # ------------------------------------------------------------------

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    # ------------------------------------------------------------------
    # POST /api/remodel
    # ------------------------------------------------------------------

    @app.post("/api/remodel")
    def remodel(payload: Any = Body(default=None)) -> dict[str, Any]:
        request = parse_remodel_request(payload)
        logger.info(
            "Remodel request for %r (%d photo directions, components=%s)",
            request.address,
            len(request.all_photos()),
            [str(c) for c in request.components],
        )
        try:
            outcome = _get_pipeline().run(request)
        except ExterraError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error during remodel")
            msg = f"Internal server error: {exc}"
            raise ExterraError(msg) from exc

        if isinstance(outcome, RemodelCompleted):
            return outcome.record.to_response()
        return {"retryDirections": [str(d) for d in outcome.directions]}

    # ------------------------------------------------------------------
    # GET /api/remodel?action=get-api-key
    # ------------------------------------------------------------------

    @app.get("/api/remodel")
    def remodel_action(action: str = Query(default="")) -> dict[str, str]:
        if action != "get-api-key":
            msg = f"Unsupported action: {action!r}"
            raise InvalidRequestError(msg)
        if not settings.google_maps_api_key:
            msg = "Google Maps API key is not configured"
            raise ExterraError(msg)
        return {"apiKey": settings.google_maps_api_key}

    # ------------------------------------------------------------------
    # GET /api/remodel/{remodel_id}
    # ------------------------------------------------------------------

    @app.get("/api/remodel/{remodel_id}")
    def remodel_details(remodel_id: str) -> dict[str, Any]:
        record = _get_record_store().get(remodel_id)
        return record.to_response()

    return app
