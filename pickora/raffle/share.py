"""Share text and links for a finished draw."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

DEFAULT_SITE_URL = "https://pickora.vercel.app/"

TWEET_INTENT_URL = "https://twitter.com/intent/tweet?text="

SHARE_HASHTAGS = "#Pickora #Raffle"


def format_share_post(
    winners: Sequence[str],
    site_url: str = DEFAULT_SITE_URL,
    hashtags: bool = False,
) -> str:
    """Pre-formatted social post for ``winners``.

    The post shown right after a draw has no hashtags; the one offered from a
    stored result page ends with ``SHARE_HASHTAGS`` after a blank line.
    """
    if not winners:
        return ""

    lines = ["🎉 Raffle Winners 🎉", ""]
    lines.extend(f"🏆 {winner}" for winner in winners)
    lines.append("")
    lines.append(f"Picked with Pickora try it here {site_url}")
    if hashtags:
        lines.extend(["", SHARE_HASHTAGS])
    return "\n".join(lines)


def share_intent_url(text: str) -> str:
    """Pre-filled post composer link for X/Twitter."""
    return TWEET_INTENT_URL + quote(text, safe="")


def result_url(base_url: str, result_id: str) -> str:
    """Short link that reopens a stored result, e.g. ``https://host/#/result/abc123``."""
    base = base_url.split("#", 1)[0]
    return f"{base}#/result/{result_id}"
