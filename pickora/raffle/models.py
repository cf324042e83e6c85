"""Core data models for draw results and usage counters."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .errors import InvalidArgumentError


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2026-01-02T03:04:05.678Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class DrawRecord:
    """Persisted outcome of one draw, addressed by its short id."""

    id: str
    winners: List[str]
    timestamp: str
    seed: Optional[str]
    count: int
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_submission(
        cls,
        result_id: str,
        winners: Sequence[str],
        *,
        timestamp: Optional[str] = None,
        seed: Optional[str] = None,
        count: Optional[int] = None,
    ) -> "DrawRecord":
        """Build a record from caller-supplied fields, filling the optional ones."""
        if not isinstance(winners, (list, tuple)) or not winners:
            raise InvalidArgumentError("Invalid winners data")
        if not all(isinstance(w, str) for w in winners):
            raise InvalidArgumentError("Invalid winners data")
        if count is not None and count != len(winners):
            raise InvalidArgumentError("count does not match the number of winners")

        return cls(
            id=result_id,
            winners=list(winners),
            timestamp=timestamp or utc_now_iso(),
            seed=seed or None,
            count=len(winners),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "winners": list(self.winners),
            "timestamp": self.timestamp,
            "seed": self.seed,
            "count": self.count,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], result_id: Optional[str] = None) -> "DrawRecord":
        winners = list(data.get("winners") or [])
        count = data.get("count")
        return cls(
            id=data.get("id") or result_id or "",
            winners=winners,
            timestamp=data.get("timestamp") or "",
            seed=data.get("seed"),
            count=int(count) if count is not None else len(winners),
            created_at=data.get("createdAt") or data.get("timestamp") or "",
        )


@dataclass
class AnalyticsCounters:
    """Best-effort usage counters; increments may be lost under concurrency."""

    total_draws: int = 0
    result_views: int = 0
    last_draw: Optional[str] = None
    last_view: Optional[str] = None

    def bump(self, kind: str) -> None:
        if kind == "draw":
            self.total_draws += 1
            self.last_draw = utc_now_iso()
        elif kind == "view":
            self.result_views += 1
            self.last_view = utc_now_iso()
        else:
            raise InvalidArgumentError(f"Unknown analytics kind: {kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "totalDraws": self.total_draws,
            "resultViews": self.result_views,
        }
        if self.last_draw:
            payload["lastDraw"] = self.last_draw
        if self.last_view:
            payload["lastView"] = self.last_view
        return payload

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalyticsCounters":
        data = data or {}
        return cls(
            total_draws=int(data.get("totalDraws") or 0),
            result_views=int(data.get("resultViews") or 0),
            last_draw=data.get("lastDraw"),
            last_view=data.get("lastView"),
        )

    def copy(self) -> "AnalyticsCounters":
        return AnalyticsCounters(**asdict(self))
