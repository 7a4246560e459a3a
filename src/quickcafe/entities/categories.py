"""Closed category sets shared by scoring, analysis and the API."""

from enum import Enum


class PriceTier(str, Enum):
    """Price tier of a cafe. An unknown tier is represented as ``None``."""

    LOW = "$"
    MID = "$$"
    HIGH = "$$$"

    @property
    def level(self) -> int:
        """Numeric level (1-3) used for tier distance and provider filters."""
        return len(self.value)

    @classmethod
    def from_level(cls, level: int | None) -> "PriceTier | None":
        """Map a provider price level (1-3) to a tier, anything else to None."""
        for tier in cls:
            if tier.level == level:
                return tier
        return None


class VibeCategory(str, Enum):
    COZY = "cozy"
    MODERN = "modern"
    QUIET = "quiet"
    LIVELY = "lively"
    ARTISTIC = "artistic"
    TRADITIONAL = "traditional"
    INDUSTRIAL = "industrial"


class AmenityType(str, Enum):
    WIFI = "wifi"
    OUTDOOR_SEATING = "outdoor_seating"
    POWER_OUTLETS = "power_outlets"
    PET_FRIENDLY = "pet_friendly"
    PARKING = "parking"
    WORKSPACE_FRIENDLY = "workspace_friendly"
    FOOD_MENU = "food_menu"
