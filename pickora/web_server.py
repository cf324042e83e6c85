"""FastAPI web server exposing draws, shared results and usage counters."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .raffle.errors import (
    InvalidArgumentError,
    NotFoundError,
    PickoraError,
    StorageError,
    StorageUnavailableError,
)
from .raffle.models import DrawRecord
from .raffle.service import RaffleService
from .raffle.share import DEFAULT_SITE_URL
from .storage.result_store import ResultStore, validate_result_id
from .utils.config import StorageSettings, get_config_value, load_config
from .utils.logger import get_logger

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

STORAGE_ERROR_HINT = (
    "The result store could not be reached. Please try again; "
    "if this keeps happening check the KV configuration."
)
STORAGE_UNAVAILABLE_HINT = (
    "Result storage is not configured. Set KV_REST_API_URL and KV_REST_API_TOKEN, "
    "or enable the in-memory fallback (STORAGE_MEMORY_FALLBACK=true)."
)
ANALYTICS_UNAVAILABLE_MESSAGE = "Analytics not persisted (KV not configured)"

_STATUS_BY_ERROR = (
    (InvalidArgumentError, 400),
    (NotFoundError, 404),
    (StorageUnavailableError, 503),
    (StorageError, 500),
)


class StoreResultRequest(BaseModel):
    winners: List[str]
    timestamp: Optional[str] = None
    seed: Optional[str] = None
    count: Optional[int] = None


class DrawRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entries: Union[str, List[str]]
    winner_count: int = Field(1, alias="winnerCount")


def error_response(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


class PickoraWebServer:
    """HTTP gateway in front of the raffle service and the result store."""

    def __init__(self, config: Dict[str, Any], store: ResultStore) -> None:
        self.config = config
        self._store = store

        site_url = get_config_value(config, "app.site_url", DEFAULT_SITE_URL)
        self._service = RaffleService(
            store,
            site_url=site_url,
            base_url=get_config_value(config, "app.base_url", site_url),
        )

        self.app = FastAPI(
            title="Pickora API",
            description="Fair raffle picks with shareable results",
            version=__version__,
        )

        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routes()

    # ------------------------------------------------------------------
    # FastAPI scaffolding
    # ------------------------------------------------------------------
    def _setup_middleware(self) -> None:
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

        # Every OPTIONS request is answered here, preflight or not
        @self.app.middleware("http")
        async def answer_options(request: Request, call_next):
            if request.method == "OPTIONS":
                return Response(status_code=200, headers=CORS_HEADERS)
            return await call_next(request)

    def _setup_exception_handlers(self) -> None:
        @self.app.exception_handler(PickoraError)
        async def handle_pickora_error(request: Request, exc: PickoraError) -> JSONResponse:
            status_code = 500
            for error_type, code in _STATUS_BY_ERROR:
                if isinstance(exc, error_type):
                    status_code = code
                    break

            if isinstance(exc, StorageUnavailableError):
                return error_response(status_code, str(exc), STORAGE_UNAVAILABLE_HINT)
            if isinstance(exc, StorageError):
                return error_response(status_code, str(exc), STORAGE_ERROR_HINT)
            if status_code == 500:
                logger.error("Unhandled Pickora error on %s: %s", request.url.path, exc)
                return error_response(500, "Internal server error")
            return error_response(status_code, str(exc))

        @self.app.exception_handler(RequestValidationError)
        async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
            logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
            return error_response(400, "Invalid request body")

        @self.app.exception_handler(StarletteHTTPException)
        async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
            if exc.status_code == 405:
                return error_response(405, "Method not allowed")
            return error_response(exc.status_code, str(exc.detail))

        @self.app.exception_handler(Exception)
        async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
            logger.exception("Unexpected error on %s %s", request.method, request.url.path)
            return error_response(500, "Internal server error")

    def _setup_routes(self) -> None:
        # ------------------------------------------------------------------
        # Health
        # ------------------------------------------------------------------
        @self.app.get("/health")
        async def health_check() -> Dict[str, Any]:
            reachable = await self._store.ping()
            return {
                "status": "ok" if reachable else "degraded",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "storage": {
                    "mode": self._store.mode,
                    "backendConfigured": self._store.backend_configured,
                    "reachable": reachable,
                },
            }

        # ------------------------------------------------------------------
        # Draws
        # ------------------------------------------------------------------
        @self.app.post("/draw")
        async def run_draw(request: DrawRequest) -> Dict[str, Any]:
            outcome = await self._service.draw_and_persist(request.entries, request.winner_count)
            return outcome.to_dict()

        # ------------------------------------------------------------------
        # Stored results
        # ------------------------------------------------------------------
        @self.app.post("/results/{result_id}")
        async def store_result(result_id: str, request: StoreResultRequest) -> Dict[str, Any]:
            validate_result_id(result_id)
            record = DrawRecord.from_submission(
                result_id,
                request.winners,
                timestamp=request.timestamp,
                seed=request.seed,
                count=request.count,
            )
            await self._store.put(result_id, record)
            return {"success": True, "id": result_id}

        @self.app.get("/results/{result_id}")
        async def get_result(result_id: str) -> Dict[str, Any]:
            record = await self._store.get(result_id)
            return record.to_dict()

        @self.app.get("/results/{result_id}/share")
        async def share_result(result_id: str) -> Dict[str, Any]:
            return await self._service.share_stored(result_id)

        # ------------------------------------------------------------------
        # Analytics
        # ------------------------------------------------------------------
        @self.app.get("/analytics")
        async def get_analytics() -> Dict[str, Any]:
            counters = await self._store.get_analytics()
            payload = {
                "totalDraws": counters.total_draws,
                "resultViews": counters.result_views,
            }
            if not self._store.backend_configured:
                payload["message"] = ANALYTICS_UNAVAILABLE_MESSAGE
            return payload

    # ------------------------------------------------------------------
    # Lifecycle management
    # ------------------------------------------------------------------
    async def start(self, host: str = "0.0.0.0", port: int = 8000) -> None:
        import uvicorn

        logger.info("Starting Pickora web server on %s:%s (storage=%s)", host, port, self._store.mode)
        config = uvicorn.Config(self.app, host=host, port=port, log_level="info", access_log=True)
        server = uvicorn.Server(config)
        try:
            await server.serve()
        finally:
            logger.info("Pickora web server stopped")

    async def stop(self) -> None:
        logger.info("Stopping Pickora web server")
        await asyncio.to_thread(self._store.close)


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """ASGI factory: ``uvicorn pickora.web_server:create_app --factory``."""
    config = config if config is not None else load_config()
    store = ResultStore.from_settings(StorageSettings.from_config(config))
    return PickoraWebServer(config, store).app
