"""Color utilities for editor palette names and ReportLab colors."""

import logging
from typing import Any, Optional, Tuple

from reportlab.lib.colors import Color, black

logger = logging.getLogger(__name__)

# Editor palette: text colors are saturated, backgrounds are pastel.
TEXT_PALETTE = {
    "gray": "#9b9a97",
    "brown": "#64473a",
    "red": "#e03e3e",
    "orange": "#d9730d",
    "yellow": "#dfab01",
    "green": "#4d6461",
    "blue": "#0b6e99",
    "purple": "#6940a5",
    "pink": "#ad1a72",
}

BACKGROUND_PALETTE = {
    "gray": "#ebeced",
    "brown": "#e9e5e3",
    "red": "#fbe4e4",
    "orange": "#f6e9d9",
    "yellow": "#fbf3db",
    "green": "#ddedea",
    "blue": "#ddebf1",
    "purple": "#eae4f2",
    "pink": "#f4dfeb",
}

_EMPTY_TOKENS = {"", "default", "auto", "none", "transparent", "inherit"}


class ColorUtils:
    """Utility functions for color conversion and validation."""

    def __init__(self):
        """Initialize color utilities."""
        self.text_palette = dict(TEXT_PALETTE)
        self.background_palette = dict(BACKGROUND_PALETTE)

    def hex_to_rgb(self, hex_color) -> Optional[Tuple[int, int, int]]:
        """Convert hex color to RGB."""
        if not hex_color or not isinstance(hex_color, str):
            return None

        hex_color = hex_color.strip().lstrip('#')
        if len(hex_color) == 3:
            hex_color = ''.join([c*2 for c in hex_color])
        if len(hex_color) != 6:
            return None

        try:
            return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))
        except ValueError:
            return None

    def resolve(self, value: Any, background: bool = False) -> Optional[str]:
        """
        Resolve a palette name or hex token to a hex string.

        Returns None for "default" and other empty tokens, so callers fall
        back to their own default color.
        """
        if not isinstance(value, str):
            return None
        token = value.strip().lower()
        if token in _EMPTY_TOKENS:
            return None
        palette = self.background_palette if background else self.text_palette
        if token in palette:
            return palette[token]
        if self.hex_to_rgb(token) is not None:
            return token if token.startswith("#") else f"#{token}"
        logger.debug(f"Unknown color token ignored: {value!r}")
        return None


_COLORS = ColorUtils()


def resolve_color(value: Any, background: bool = False) -> Optional[str]:
    """Module-level shortcut for ColorUtils.resolve."""
    return _COLORS.resolve(value, background=background)


def to_reportlab_color(value: Any, fallback: str = "#000000") -> Color:
    """

    Converts a hex string, palette name or Color to a ReportLab Color object.

    """
    if isinstance(value, Color):
        return value
    hex_value = resolve_color(value) if isinstance(value, str) else None
    rgb = _COLORS.hex_to_rgb(hex_value or fallback)
    if rgb is None:
        logger.warning(f"Invalid color format: {value!r}, using black")
        return black
    r, g, b = rgb
    return Color(r / 255.0, g / 255.0, b / 255.0)
