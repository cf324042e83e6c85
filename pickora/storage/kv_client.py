"""Client for the durable key/value backend (Upstash / Vercel KV REST API)."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, List, Optional

import requests

from ..utils.logger import get_logger

logger = get_logger(__name__)


class KVError(Exception):
    """The KV service could not be reached or rejected the command."""


class KVClient:
    """Async-friendly wrapper around the REST command endpoint.

    Each command is POSTed as a JSON array (``["SET", key, value, "EX", 60]``)
    and answered with ``{"result": ...}`` or ``{"error": "..."}``. Calls are
    blocking ``requests`` calls pushed onto a worker thread; the shared
    session is only used under ``_lock``.
    """

    def __init__(self, url: str, token: str, timeout_s: float = 5.0) -> None:
        self.url = url.rstrip("/")
        self.timeout_s = timeout_s
        self._lock = threading.Lock()
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    def close(self) -> None:
        with self._lock:
            self._session.close()

    # ------------------------------------------------------------------
    # Blocking primitives
    # ------------------------------------------------------------------
    def command(self, *args: Any) -> Any:
        payload: List[Any] = list(args)
        try:
            with self._lock:
                resp = self._session.post(self.url, json=payload, timeout=self.timeout_s)
        except requests.exceptions.RequestException as exc:
            raise KVError(f"KV request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            raise KVError(f"KV returned HTTP {resp.status_code} with a non-JSON body")
        if "error" in data:
            raise KVError(f"KV error: {data['error']}")
        if resp.status_code >= 400:
            raise KVError(f"KV returned HTTP {resp.status_code}")
        return data.get("result")

    def get_sync(self, key: str) -> Any:
        return self.command("GET", key)

    def set_sync(self, key: str, value: str, ex: Optional[int] = None) -> None:
        if ex is not None:
            self.command("SET", key, value, "EX", int(ex))
        else:
            self.command("SET", key, value)

    # ------------------------------------------------------------------
    # Async API used by the result store
    # ------------------------------------------------------------------
    async def get(self, key: str) -> Any:
        return await asyncio.to_thread(self.get_sync, key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        await asyncio.to_thread(self.set_sync, key, value, ex)

    async def ping(self) -> bool:
        try:
            result = await asyncio.to_thread(self.command, "PING")
        except KVError as exc:
            logger.warning("KV health check failed: %s", exc)
            return False
        return result == "PONG"
