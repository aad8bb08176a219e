"""
Utils module for notequill.

Small helpers shared by the renderer and the layout engine.
"""

from .color_utils import ColorUtils, resolve_color, to_reportlab_color

__all__ = [
    "ColorUtils",
    "resolve_color",
    "to_reportlab_color",
]
