"""
Media module for image handling.

This module contains the components that fetch images referenced by blocks
and turn the fetched bytes into something the PDF canvas can draw.
"""

from .converters import LoadedImage, MediaConverter
from .image_resolver import ImageResolver, decode_data_uri, original_candidates

__all__ = [
    "LoadedImage",
    "MediaConverter",
    "ImageResolver",
    "decode_data_uri",
    "original_candidates",
]
