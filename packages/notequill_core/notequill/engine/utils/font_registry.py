from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from reportlab.pdfbase import pdfmetrics  # type: ignore
from reportlab.pdfbase.ttfonts import TTFont  # type: ignore

logger = logging.getLogger(__name__)

SEARCH_DIRECTORIES: List[Path] = [
    Path("/usr/share/fonts"),
    Path("/usr/share/fonts/truetype"),
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/local/share/fonts"),
    Path.home() / ".fonts",
    Path.home() / ".local/share/fonts",
    Path("C:/Windows/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/Library/Fonts"),
]

# Unicode-capable TTF families, registered under the same suffix scheme as
# the built-in Helvetica/Courier faces.
FONT_VARIANTS: Dict[str, Dict[str, Iterable[str]]] = {
    "DejaVuSans": {
        "": ("DejaVuSans.ttf",),
        "-Bold": ("DejaVuSans-Bold.ttf",),
        "-Oblique": ("DejaVuSans-Oblique.ttf",),
        "-BoldOblique": ("DejaVuSans-BoldOblique.ttf",),
    },
    "DejaVuSansMono": {
        "": ("DejaVuSansMono.ttf",),
        "-Bold": ("DejaVuSansMono-Bold.ttf",),
        "-Oblique": ("DejaVuSansMono-Oblique.ttf",),
        "-BoldOblique": ("DejaVuSansMono-BoldOblique.ttf",),
    },
}

# Built-in Type 1 faces that do not follow the -Bold/-Oblique pattern.
_BUILTIN_VARIANTS: Dict[str, Dict[Tuple[bool, bool], str]] = {
    "Times-Roman": {
        (False, False): "Times-Roman",
        (True, False): "Times-Bold",
        (False, True): "Times-Italic",
        (True, True): "Times-BoldItalic",
    },
}


@lru_cache()
def _build_font_index() -> Dict[str, Path]:
    index: Dict[str, Path] = {}
    for root in SEARCH_DIRECTORIES:
        if not root or not root.exists():
            continue
        try:
            for candidate in root.rglob("*.ttf"):
                index.setdefault(candidate.name.lower(), candidate)
        except OSError as exc:
            logger.debug("Could not scan font directory %s: %s", root, exc)
    return index


def _locate_font_file(candidates: Iterable[str]) -> Optional[Path]:
    index = _build_font_index()
    for name in candidates:
        path = index.get(name.lower())
        if path:
            return path
    return None


_REGISTERED: set[str] = set()


def register_family(family: str) -> bool:
    """

    Registers all variants of a TTF family listed in FONT_VARIANTS.

    Returns True only when every variant could be registered, so callers can
    fall back to a built-in family instead of mixing faces.

    """
    variants = FONT_VARIANTS.get(family)
    if not variants:
        return False
    complete = True
    for suffix, candidate_names in variants.items():
        font_id = f"{family}{suffix}"
        if font_id in _REGISTERED:
            continue
        font_path = _locate_font_file(candidate_names)
        if not font_path:
            logger.debug("Font file for %s not found (looked for %s)", font_id, candidate_names)
            complete = False
            continue
        try:
            pdfmetrics.registerFont(TTFont(font_id, str(font_path)))
            _REGISTERED.add(font_id)
            logger.debug("Registered font %s (%s)", font_id, font_path)
        except Exception as exc:  # reportlab raises bare TTFError/IOError variants
            logger.warning("Could not register font %s: %s", font_id, exc)
            complete = False
    return complete


def resolve_families(font_family: str, monospace_family: str, unicode_fonts: bool) -> Tuple[str, str]:
    """
    Pick the body and monospace families for an export.

    Args:
        font_family: Requested body family
        monospace_family: Requested monospace family
        unicode_fonts: Prefer DejaVu TTFs when available

    Returns:
        (body_family, monospace_family) that are usable with pdfmetrics
    """
    if unicode_fonts and register_family("DejaVuSans") and register_family("DejaVuSansMono"):
        return "DejaVuSans", "DejaVuSansMono"
    if font_family in FONT_VARIANTS and not register_family(font_family):
        logger.warning(f"Font family {font_family} unavailable, using Helvetica")
        font_family = "Helvetica"
    if monospace_family in FONT_VARIANTS and not register_family(monospace_family):
        logger.warning(f"Font family {monospace_family} unavailable, using Courier")
        monospace_family = "Courier"
    return font_family, monospace_family


def font_variant(family: str, bold: bool = False, italic: bool = False) -> str:
    """Name of the bold/italic face of family."""
    if family in _BUILTIN_VARIANTS:
        return _BUILTIN_VARIANTS[family][(bool(bold), bool(italic))]
    if bold and italic:
        return f"{family}-BoldOblique"
    if bold:
        return f"{family}-Bold"
    if italic:
        return f"{family}-Oblique"
    return family
