from __future__ import annotations

import pytest

from app.game.duels.constants import DUEL_KEY_ALPHABET, DUEL_KEY_LENGTH
from app.game.duels.keys import allocate_duel_key, generate_duel_key, normalize_duel_key
from app.game.errors import DuelKeyGenerationError, GameValidationError


def test_generated_keys_use_uppercase_alphanumerics() -> None:
    for _ in range(200):
        key = generate_duel_key()
        assert len(key) == DUEL_KEY_LENGTH
        assert set(key) <= set(DUEL_KEY_ALPHABET)


def test_generate_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        generate_duel_key(0)


def test_normalize_upper_cases_and_strips() -> None:
    assert normalize_duel_key("  ab12cd ") == "AB12CD"


@pytest.mark.parametrize("raw_key", [None, "", "ABC12", "ABC1234", "AB-12C", "ÄBC123"])
def test_normalize_rejects_malformed_keys(raw_key: str | None) -> None:
    with pytest.raises(GameValidationError) as exc_info:
        normalize_duel_key(raw_key)

    assert exc_info.value.field == "duel_key"


@pytest.mark.asyncio
async def test_allocate_retries_on_collision() -> None:
    candidates = iter(["AAAAAA", "BBBBBB", "CCCCCC"])
    taken = {"AAAAAA", "BBBBBB"}
    attempts: list[str] = []

    async def try_claim(candidate: str) -> bool:
        attempts.append(candidate)
        return candidate not in taken

    key = await allocate_duel_key(try_claim, generator=lambda: next(candidates))

    assert key == "CCCCCC"
    assert attempts == ["AAAAAA", "BBBBBB", "CCCCCC"]


@pytest.mark.asyncio
async def test_allocate_gives_up_after_max_attempts() -> None:
    attempts: list[str] = []

    async def try_claim(candidate: str) -> bool:
        attempts.append(candidate)
        return False

    with pytest.raises(DuelKeyGenerationError):
        await allocate_duel_key(try_claim, generator=lambda: "ZZZZZZ", max_attempts=10)

    assert len(attempts) == 10
