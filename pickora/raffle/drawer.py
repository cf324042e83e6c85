"""Winner selection: secure, uniform, without replacement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..utils.crypto import SecureRandom, generate_seed
from .errors import InvalidArgumentError
from .models import utc_now_iso

RandomSource = Callable[[], int]


@dataclass(frozen=True)
class DrawProof:
    """Timestamp and seed shown to viewers next to a result.

    The seed is not fed into the draw, so it cannot be used to recompute the
    winners; it only records when the draw happened.
    """

    timestamp: str
    seed: str

    @classmethod
    def capture(cls) -> "DrawProof":
        return cls(timestamp=utc_now_iso(), seed=generate_seed())


def normalize_entrant(raw: str) -> Optional[str]:
    """Trim a handle and prefix ``@``; blank input yields ``None``."""
    name = raw.strip()
    if not name:
        return None
    return name if name.startswith("@") else f"@{name}"


def parse_entrants(entries: Union[str, Iterable[str]]) -> List[str]:
    """Turn pasted text (one entrant per line) or a list into entrants.

    Order is preserved and duplicates are kept: two identical lines are two
    tickets.
    """
    lines = entries.splitlines() if isinstance(entries, str) else entries
    entrants = []
    for line in lines:
        if not isinstance(line, str):
            raise InvalidArgumentError("Entries must be strings")
        name = normalize_entrant(line)
        if name is not None:
            entrants.append(name)
    return entrants


def validate_draw_request(entrants: Sequence[str], winner_count: int) -> None:
    if not entrants:
        raise InvalidArgumentError("Please enter at least one name or handle.")
    if isinstance(winner_count, bool) or not isinstance(winner_count, int):
        raise InvalidArgumentError("Winner count must be an integer.")
    if winner_count < 1:
        raise InvalidArgumentError("Please select at least 1 winner.")
    if winner_count > len(entrants):
        raise InvalidArgumentError(
            f"Cannot pick {winner_count} winners from {len(entrants)} entries."
        )


def draw(
    entrants: Sequence[str],
    winner_count: int,
    random_source: Optional[RandomSource] = None,
) -> List[str]:
    """Pick ``winner_count`` entrants uniformly at random without replacement.

    Winners are returned in selection order. For every slot one 32-bit value
    ``u`` is drawn and mapped to ``floor(u / 2**32 * len(pool))``; the chosen
    entry is removed from the pool before the next slot.

    Raises:
        InvalidArgumentError: empty ``entrants`` or ``winner_count`` outside
            ``1..len(entrants)``.
    """
    validate_draw_request(entrants, winner_count)
    next_uint32 = random_source or SecureRandom.random_uint32

    pool = list(entrants)
    winners: List[str] = []
    for _ in range(winner_count):
        # Integer form of floor(u / 2**32 * n), exact for any pool size
        index = (next_uint32() * len(pool)) >> 32
        winners.append(pool.pop(index))
    return winners
