"""Cryptographically secure randomness helpers."""

from __future__ import annotations

import secrets

SHORT_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SHORT_ID_LENGTH = 6


class SecureRandom:
    """Cryptographically secure random number generator"""

    @staticmethod
    def random_uint32() -> int:
        """Uniform unsigned 32-bit integer from the OS CSPRNG"""
        return secrets.randbits(32)


def generate_short_id(length: int = SHORT_ID_LENGTH) -> str:
    """Return a short result identifier such as ``'k3x9qa'``.

    Every character is drawn independently with ``secrets.choice`` so each
    of the 36 symbols is equally likely.
    """
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


def generate_seed() -> str:
    """32-bit secure random value as 8 lowercase hex characters."""
    return f"{SecureRandom.random_uint32():08x}"
