"""Draw-and-persist workflow used by the HTTP layer and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from ..storage.result_store import ResultStore
from ..utils.crypto import generate_short_id
from ..utils.logger import get_logger
from .drawer import DrawProof, RandomSource, draw, parse_entrants
from .errors import StorageError, StorageUnavailableError
from .models import DrawRecord
from .share import DEFAULT_SITE_URL, format_share_post, result_url, share_intent_url

logger = get_logger(__name__)

SHARE_WARNING = "Result could not be saved; the share link may not work across devices."


@dataclass
class DrawOutcome:
    record: DrawRecord
    persisted: bool
    share_text: str
    share_url: str
    result_url: str
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "id": self.record.id,
            "winners": list(self.record.winners),
            "timestamp": self.record.timestamp,
            "seed": self.record.seed,
            "count": self.record.count,
            "persisted": self.persisted,
            "shareText": self.share_text,
            "shareUrl": self.share_url,
            "resultUrl": self.result_url,
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload


class RaffleService:
    """Runs a draw, stamps it with a proof and stores it for sharing."""

    def __init__(
        self,
        store: ResultStore,
        *,
        site_url: str = DEFAULT_SITE_URL,
        base_url: Optional[str] = None,
        random_source: Optional[RandomSource] = None,
    ) -> None:
        self._store = store
        self._site_url = site_url
        self._base_url = base_url or site_url
        self._random_source = random_source

    async def draw_and_persist(
        self,
        entries: Union[str, Iterable[str]],
        winner_count: int,
    ) -> DrawOutcome:
        entrants = parse_entrants(entries)
        winners = draw(entrants, winner_count, self._random_source)
        proof = DrawProof.capture()
        result_id = generate_short_id()

        record = DrawRecord(
            id=result_id,
            winners=winners,
            timestamp=proof.timestamp,
            seed=proof.seed,
            count=len(winners),
        )
        logger.info("Drew %d of %d entrants as result %s", len(winners), len(entrants), result_id)

        # The draw stands even when it cannot be stored
        persisted = True
        warning = None
        try:
            await self._store.put(result_id, record)
        except (StorageUnavailableError, StorageError) as exc:
            logger.warning("Result %s not persisted: %s", result_id, exc)
            persisted = False
            warning = SHARE_WARNING

        share_text = format_share_post(winners, self._site_url)
        return DrawOutcome(
            record=record,
            persisted=persisted,
            share_text=share_text,
            share_url=share_intent_url(share_text),
            result_url=result_url(self._base_url, result_id),
            warning=warning,
        )

    async def share_stored(self, result_id: str) -> Dict[str, Any]:
        """Share links for a stored result, as offered on its result page."""
        record = await self._store.get(result_id)
        share_text = format_share_post(record.winners, self._site_url, hashtags=True)
        return {
            "id": record.id,
            "shareText": share_text,
            "shareUrl": share_intent_url(share_text),
            "resultUrl": result_url(self._base_url, record.id),
        }
