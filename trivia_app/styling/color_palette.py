"""Color palette for the TriviaQt dashboard supporting light and dark themes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Theme(Enum):
    """Application theme options."""
    LIGHT = auto()
    DARK = auto()


@dataclass(frozen=True)
class ThemeColors:
    """Color definitions for a specific theme."""
    light: str
    dark: str

    def get(self, theme: Theme) -> str:
        return self.light if theme == Theme.LIGHT else self.dark


class ColorPalette:
    """Centralized color definitions for the dashboard."""

    TEXT_PRIMARY = ThemeColors(light="#111827", dark="#F5F7FF")
    TEXT_SECONDARY = ThemeColors(light="#4B5563", dark="#94A3B8")

    BACKGROUND_PRIMARY = ThemeColors(light="#FFFFFF", dark="#0B1120")
    BACKGROUND_CARD = ThemeColors(light="#F3F4F6", dark="#111A30")

    ACCENT_PRIMARY = ThemeColors(light="#1F9AA5", dark="#2DD4BF")

    SUCCESS = ThemeColors(light="#15803D", dark="#4ADE80")
    WARNING = ThemeColors(light="#B45309", dark="#FACC15")
    ERROR = ThemeColors(light="#B91C1C", dark="#F87171")

    BORDER_PRIMARY = ThemeColors(light="#D1D5DB", dark="#334155")

    BUTTON_PRIMARY_BG = ThemeColors(light="#1F9AA5", dark="#2DD4BF")
    BUTTON_PRIMARY_TEXT = ThemeColors(light="#FFFFFF", dark="#0B1120")
    BUTTON_SECONDARY_BG = ThemeColors(light="#F3F4F6", dark="#1E293B")
    BUTTON_HOVER_BG = ThemeColors(light="#E5E7EB", dark="#334155")

    # Podium colors for the TV leaderboard
    RANK_GOLD = ThemeColors(light="#B8860B", dark="#FACC15")
    RANK_SILVER = ThemeColors(light="#6B7280", dark="#CBD5E1")
    RANK_BRONZE = ThemeColors(light="#92400E", dark="#F59E0B")
