"""Styling module for the TriviaQt dashboard."""

from .color_palette import ColorPalette, Theme
from .styles import Styles

__all__ = ["ColorPalette", "Styles", "Theme"]
