from __future__ import annotations


class GamificationError(Exception):
    code = "E_GAMIFICATION"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def context(self) -> dict[str, object]:
        return {}


class GameValidationError(GamificationError):
    code = "E_VALIDATION"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def context(self) -> dict[str, object]:
        return {"field": self.field} if self.field else {}


class GameNotFoundError(GamificationError):
    code = "E_NOT_FOUND"


class UserNotFoundError(GameNotFoundError):
    code = "E_USER_NOT_FOUND"


class DuelNotFoundError(GameNotFoundError):
    code = "E_DUEL_NOT_FOUND"


class GameForbiddenError(GamificationError):
    code = "E_FORBIDDEN"


class DuelSelfJoinError(GameForbiddenError):
    code = "E_DUEL_SELF_JOIN"


class DuelStateConflictError(GamificationError):
    code = "E_DUEL_STATE_CONFLICT"

    def __init__(self, message: str, *, status: str) -> None:
        super().__init__(message)
        self.status = status

    def context(self) -> dict[str, object]:
        return {"status": self.status}


class DuelAlreadyHasOpponentError(DuelStateConflictError):
    code = "E_DUEL_ALREADY_HAS_OPPONENT"


class DuelKeyGenerationError(GamificationError):
    code = "E_DUEL_KEY_UNAVAILABLE"


class DuelRateLimitError(GamificationError):
    code = "E_DUEL_RATE_LIMITED"

    def __init__(self, message: str, *, window: str, limit: int) -> None:
        super().__init__(message)
        self.window = window
        self.limit = limit

    def context(self) -> dict[str, object]:
        return {"window": self.window, "limit": self.limit}


class DuelExpiredError(GamificationError):
    code = "E_DUEL_EXPIRED"
