from app.game.badges.catalog import DEFAULT_BADGE_CATALOG, BadgeCatalog
from app.game.badges.engine import BadgeEngine
from app.game.badges.rules import DEFAULT_BADGE_RULES

__all__ = ["DEFAULT_BADGE_CATALOG", "DEFAULT_BADGE_RULES", "BadgeCatalog", "BadgeEngine"]
