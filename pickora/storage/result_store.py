"""Persistence for draw results, keyed by short id."""

from __future__ import annotations

import json
from threading import Lock
from typing import Any, Dict, Optional

from ..raffle.errors import (
    InvalidArgumentError,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from ..raffle.models import AnalyticsCounters, DrawRecord
from ..utils.config import RESULT_TTL_SECONDS, StorageSettings
from ..utils.crypto import SHORT_ID_LENGTH
from ..utils.logger import get_logger
from .kv_client import KVClient, KVError

logger = get_logger(__name__)

RESULT_KEY_PREFIX = "result_"
ANALYTICS_KEY = "analytics"

ANALYTICS_KINDS = ("draw", "view")


def result_key(result_id: str) -> str:
    return f"{RESULT_KEY_PREFIX}{result_id}"


def validate_result_id(result_id: Any) -> str:
    if not isinstance(result_id, str) or len(result_id) != SHORT_ID_LENGTH:
        raise InvalidArgumentError("Invalid result ID")
    return result_id


class MemoryBackend:
    """Process-local stand-in for the KV service.

    Entries never expire, vanish on restart and are invisible to other
    server instances.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: Dict[str, Dict[str, Any]] = {}
        self._analytics = AnalyticsCounters()

    def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            self._records[key] = dict(value)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._records.get(key)
            return dict(value) if value is not None else None

    def bump(self, kind: str) -> None:
        with self._lock:
            self._analytics.bump(kind)

    def analytics(self) -> AnalyticsCounters:
        with self._lock:
            return self._analytics.copy()


class ResultStore:
    """Stores and retrieves DrawRecords.

    With a KV client every record is written as a JSON string under
    ``result_<id>`` with a fixed expiry. Without one, records go to the
    in-process fallback if one was supplied; otherwise calls fail with
    StorageUnavailableError.
    """

    def __init__(
        self,
        kv: Optional[KVClient] = None,
        fallback: Optional[MemoryBackend] = None,
        *,
        ttl_seconds: int = RESULT_TTL_SECONDS,
    ) -> None:
        self._kv = kv
        self._fallback = fallback
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "ResultStore":
        kv = None
        if settings.backend_configured:
            kv = KVClient(settings.kv_url, settings.kv_token, timeout_s=settings.kv_timeout)
            logger.info("Result store using KV backend at %s", settings.kv_url)
        fallback = None
        if kv is None and settings.memory_fallback:
            fallback = MemoryBackend()
            logger.warning("KV not configured; results are kept in process memory only")
        elif kv is None:
            logger.warning("KV not configured and memory fallback disabled; result storage unavailable")
        return cls(kv=kv, fallback=fallback, ttl_seconds=settings.result_ttl_seconds)

    @property
    def backend_configured(self) -> bool:
        return self._kv is not None

    @property
    def mode(self) -> str:
        if self._kv is not None:
            return "kv"
        if self._fallback is not None:
            return "memory"
        return "none"

    def close(self) -> None:
        if self._kv is not None:
            self._kv.close()

    async def ping(self) -> bool:
        """True when the active backend answers; the memory fallback always does."""
        if self._kv is not None:
            return await self._kv.ping()
        return self._fallback is not None

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    async def put(self, result_id: str, record: DrawRecord) -> None:
        """Store ``record`` under ``result_id``; a later put to the same id wins."""
        validate_result_id(result_id)
        if record.id and record.id != result_id:
            raise InvalidArgumentError("Result ID does not match the record")
        payload = record.to_dict()
        payload["id"] = result_id

        if self._kv is not None:
            try:
                await self._kv.set(result_key(result_id), json.dumps(payload), ex=self._ttl_seconds)
            except KVError as exc:
                logger.error("Failed to store result %s: %s", result_id, exc)
                raise StorageError("Failed to store result") from exc
        elif self._fallback is not None:
            self._fallback.set(result_key(result_id), payload)
        else:
            raise StorageUnavailableError("Result storage is not configured")

        logger.info("Stored result %s (%d winners, backend=%s)", result_id, record.count, self.mode)
        await self.bump_analytics("draw")

    async def get(self, result_id: str) -> DrawRecord:
        validate_result_id(result_id)

        if self._kv is not None:
            try:
                raw = await self._kv.get(result_key(result_id))
            except KVError as exc:
                logger.error("Failed to load result %s: %s", result_id, exc)
                raise StorageError("Failed to load result") from exc
        elif self._fallback is not None:
            raw = self._fallback.get(result_key(result_id))
        else:
            raise StorageUnavailableError("Result storage is not configured")

        data = _decode_value(raw, result_id)
        if data is None:
            raise NotFoundError("Result not found")

        try:
            record = DrawRecord.from_dict(data, result_id=result_id)
        except (TypeError, ValueError) as exc:
            logger.error("Stored result %s is malformed: %s", result_id, exc)
            raise StorageError("Failed to load result") from exc

        await self.bump_analytics("view")
        return record

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------
    async def bump_analytics(self, kind: str) -> None:
        """Best-effort counter update; never raises.

        Against KV this is a plain read-modify-write, so concurrent bumps can
        lose increments.
        """
        if kind not in ANALYTICS_KINDS:
            logger.debug("Ignoring unknown analytics kind %r", kind)
            return
        try:
            if self._kv is not None:
                counters = AnalyticsCounters.from_dict(_decode_value(await self._kv.get(ANALYTICS_KEY), ANALYTICS_KEY))
                counters.bump(kind)
                await self._kv.set(ANALYTICS_KEY, json.dumps(counters.to_dict()))
            elif self._fallback is not None:
                self._fallback.bump(kind)
        except Exception as exc:  # analytics must never fail the caller
            logger.debug("Analytics update (%s) failed: %s", kind, exc)

    async def get_analytics(self) -> AnalyticsCounters:
        if self._kv is not None:
            try:
                raw = await self._kv.get(ANALYTICS_KEY)
            except KVError as exc:
                logger.error("Failed to load analytics: %s", exc)
                raise StorageError("Failed to load analytics") from exc
            try:
                return AnalyticsCounters.from_dict(_decode_value(raw, ANALYTICS_KEY))
            except (TypeError, ValueError) as exc:
                logger.error("Stored analytics are malformed: %s", exc)
                raise StorageError("Failed to load analytics") from exc
        if self._fallback is not None:
            return self._fallback.analytics()
        return AnalyticsCounters()


def _decode_value(raw: Any, key: str) -> Optional[Dict[str, Any]]:
    """Accept both JSON strings and already-structured values from the backend."""
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Stored value for {key} is not valid JSON") from exc
    if not isinstance(raw, dict):
        raise StorageError(f"Stored value for {key} has unexpected type {type(raw).__name__}")
    return raw
