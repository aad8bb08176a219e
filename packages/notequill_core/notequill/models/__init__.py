"""
Models module for the block tree.
"""

from .block import Block, HeadingReference, InlineRun, TableRow

__all__ = [
    "Block",
    "HeadingReference",
    "InlineRun",
    "TableRow",
]
