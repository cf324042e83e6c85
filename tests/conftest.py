"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from pickora.storage.kv_client import KVError
from pickora.storage.result_store import MemoryBackend, ResultStore


class FakeKV:
    """In-memory double of KVClient's async surface."""

    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}
        self.set_calls: List[Tuple[str, Any, Optional[int]]] = []
        self.fail_get = False
        self.fail_set = False
        self.fail_analytics = False
        self.closed = False

    async def get(self, key: str) -> Any:
        if self.fail_get or (self.fail_analytics and key == "analytics"):
            raise KVError("connection refused")
        return self.data.get(key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        if self.fail_set or (self.fail_analytics and key == "analytics"):
            raise KVError("connection refused")
        self.set_calls.append((key, value, ex))
        self.data[key] = value

    async def ping(self) -> bool:
        return not self.fail_get

    def close(self) -> None:
        self.closed = True

    def stored_json(self, key: str) -> Dict[str, Any]:
        return json.loads(self.data[key])


@pytest.fixture
def fake_kv() -> FakeKV:
    return FakeKV()


@pytest.fixture
def kv_store(fake_kv: FakeKV) -> ResultStore:
    return ResultStore(kv=fake_kv)


@pytest.fixture
def memory_store() -> ResultStore:
    return ResultStore(fallback=MemoryBackend())


@pytest.fixture
def bare_store() -> ResultStore:
    return ResultStore()
