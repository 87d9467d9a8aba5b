"""Four-level security classification of vault documents.

Tiers are ordered ``general < internal < confidential < sovereign``. Each tier carries
the numeric ``level`` (1..4) the backend persists, a display label and a description.
"""

from enum import Enum


class SecurityTier(str, Enum):
    GENERAL = "general"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    SOVEREIGN = "sovereign"

    @property
    def level(self) -> int:
        return _TIER_META[self][0]

    @property
    def ordinal(self) -> int:
        return self.level - 1

    @property
    def label(self) -> str:
        return _TIER_META[self][1]

    @property
    def description(self) -> str:
        return _TIER_META[self][2]

    def to_dict(self) -> dict:
        return {"tier": self.value, "level": self.level, "label": self.label, "description": self.description}


_TIER_META: dict[SecurityTier, tuple[int, str, str]] = {
    SecurityTier.GENERAL: (1, "General", "Standard vault documents, visible to every vault member."),
    SecurityTier.INTERNAL: (2, "Internal", "Company internal material, not for external sharing."),
    SecurityTier.CONFIDENTIAL: (3, "Confidential", "Restricted to explicitly cleared members."),
    SecurityTier.SOVEREIGN: (4, "Sovereign", "Highest classification, privileged material under full custody control."),
}

_LEVEL_TO_TIER = {meta[0]: tier for tier, meta in _TIER_META.items()}


def tier_to_security(level: int | None) -> SecurityTier:
    """
    Maps a persisted tier level to its SecurityTier.

    Args:
        level (int | None): The numeric level as stored by the backend.

    Returns:
        SecurityTier: The matching tier; GENERAL for None, 0 or any out-of-range level.
    """
    if level is None:
        return SecurityTier.GENERAL
    return _LEVEL_TO_TIER.get(level, SecurityTier.GENERAL)


def parse_security(value: str | int | SecurityTier) -> SecurityTier:
    """
    Accepts a tier name ("confidential"), a level (3) or a SecurityTier.

    Raises:
        ValueError: If the value names no tier.
    """
    if isinstance(value, SecurityTier):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and not isinstance(value, bool):
        if value not in _LEVEL_TO_TIER:
            raise ValueError(f"Security level must be between 1 and {len(_LEVEL_TO_TIER)}. Got: {value}")
        return _LEVEL_TO_TIER[value]
    try:
        return SecurityTier(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown security tier '{value}'. Expected one of {[tier.value for tier in SecurityTier]}")
