from __future__ import annotations

import secrets
from collections.abc import Awaitable, Callable

from app.game.duels.constants import DUEL_KEY_ALPHABET, DUEL_KEY_LENGTH, DUEL_KEY_MAX_ATTEMPTS
from app.game.errors import DuelKeyGenerationError, GameValidationError


def generate_duel_key(length: int = DUEL_KEY_LENGTH) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(DUEL_KEY_ALPHABET) for _ in range(length))


def normalize_duel_key(raw_key: str | None) -> str:
    """Upper-cases and validates a user supplied key."""
    key = (raw_key or "").strip().upper()
    if len(key) != DUEL_KEY_LENGTH or any(char not in DUEL_KEY_ALPHABET for char in key):
        raise GameValidationError("Invalid duel key", field="duel_key")
    return key


async def allocate_duel_key(
    try_claim: Callable[[str], Awaitable[bool]],
    *,
    generator: Callable[[], str] = generate_duel_key,
    max_attempts: int = DUEL_KEY_MAX_ATTEMPTS,
) -> str:
    """Draws keys until ``try_claim`` accepts one or the attempts run out."""
    for _ in range(max(1, int(max_attempts))):
        candidate = generator()
        if await try_claim(candidate):
            return candidate
    raise DuelKeyGenerationError("Could not allocate a unique duel key")
