"""
Inline content normalization.

The editor has stored inline content in several shapes over time: styles as a
list of tags or as a tag -> bool map, links under ``href`` or ``url``, and link
items wrapping their own run list. Everything is flattened here into a list of
InlineRun.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Set

from ..models.block import InlineRun
from ..utils.color_utils import resolve_color

logger = logging.getLogger(__name__)

# Style keys whose value is a color, not a flag.
_COLOR_STYLE_KEYS = {"textColor", "backgroundColor"}


def extract_styles(raw_styles: Any) -> Set[str]:
    """

    Collects style tags from a list of names or a name -> flag mapping.

    Only truthy map entries are kept; color entries are excluded because they
    are read separately as run colors.

    """
    styles: Set[str] = set()
    if isinstance(raw_styles, Mapping):
        for key, value in raw_styles.items():
            if isinstance(key, str) and key not in _COLOR_STYLE_KEYS and value:
                styles.add(key)
    elif isinstance(raw_styles, (list, tuple, set, frozenset)):
        for tag in raw_styles:
            if isinstance(tag, str) and tag:
                styles.add(tag)
    return styles


def _first_defined(item: Mapping[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _color(item: Mapping[str, Any], raw_styles: Any, key: str, background: bool) -> Optional[str]:
    value = item.get(key)
    if value is None and isinstance(raw_styles, Mapping):
        value = raw_styles.get(key)
    return resolve_color(value, background=background)


def _normalize_item(
    item: Any,
    inherited_href: Optional[str],
    runs: List[InlineRun],
) -> None:
    if isinstance(item, str):
        if item:
            runs.append(InlineRun(text=item, href=inherited_href))
        return
    if not isinstance(item, Mapping):
        return

    href = _first_defined(item, "href", "url")
    if href is not None and not isinstance(href, str):
        href = str(href)
    href = href if href is not None else inherited_href

    nested = item.get("content")
    if item.get("type") == "link" and isinstance(nested, list):
        for child in nested:
            _normalize_item(child, href, runs)
        return

    text = item.get("text")
    if text is None:
        return
    if not isinstance(text, str):
        text = str(text)
    if not text:
        return

    raw_styles = item.get("styles")
    styles = extract_styles(raw_styles)
    item_type = item.get("type")
    if isinstance(item_type, str) and item_type:
        # legacy encodings put the style in the run type
        styles.add(item_type)

    runs.append(
        InlineRun(
            text=text,
            styles=frozenset(styles),
            href=href,
            text_color=_color(item, raw_styles, "textColor", background=False),
            background_color=_color(item, raw_styles, "backgroundColor", background=True),
        )
    )


def normalize_inline_content(content: Any) -> List[InlineRun]:
    """
    Normalize arbitrary inline content into an ordered list of runs.

    Args:
        content: Raw ``content`` value of a block

    Returns:
        List of InlineRun; empty for non-list or malformed input
    """
    if not isinstance(content, list):
        return []
    runs: List[InlineRun] = []
    for item in content:
        try:
            _normalize_item(item, None, runs)
        except Exception as exc:
            logger.debug(f"Skipping malformed inline item {item!r}: {exc}")
    return runs


def runs_text(runs: Iterable[InlineRun]) -> str:
    """Concatenate the visible text of a run sequence."""
    return "".join(run.text for run in runs)
