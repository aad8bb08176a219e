"""
Layout module for page furniture.
"""

from .footer import PageFooter

__all__ = [
    "PageFooter",
]
