from .drawer import DrawProof, draw, normalize_entrant, parse_entrants
from .errors import (
    InvalidArgumentError,
    NotFoundError,
    PickoraError,
    StorageError,
    StorageUnavailableError,
)
from .models import AnalyticsCounters, DrawRecord

__all__ = [
    "AnalyticsCounters",
    "DrawProof",
    "DrawRecord",
    "InvalidArgumentError",
    "NotFoundError",
    "PickoraError",
    "StorageError",
    "StorageUnavailableError",
    "draw",
    "normalize_entrant",
    "parse_entrants",
]
