"""
Image converters for PDF placement.

Handles format detection, image inspection, and the one-shot PNG conversion
used when ReportLab cannot embed fetched bytes directly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import io
import logging

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from ..exceptions import MediaError

logger = logging.getLogger(__name__)


@dataclass
class LoadedImage:
    """An image ready for drawImage, with its pixel size."""

    reader: ImageReader
    width: float
    height: float
    converted: bool = False

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width


class MediaConverter:
    """
    Converts fetched image bytes into something ReportLab can draw.
    """

    def __init__(self):
        """
        Initialize media converter.
        """
        self.format_signatures = {
            'png': [b'\x89PNG\r\n\x1a\n'],
            'jpg': [b'\xff\xd8\xff'],
            'gif': [b'GIF87a', b'GIF89a'],
            'bmp': [b'BM'],
            'tiff': [b'II*\x00', b'MM\x00*'],
        }

        self.conversion_stats = {
            'loads': 0,
            'conversions': 0,
            'errors': 0,
        }

    def detect_format(self, data: bytes) -> Optional[str]:
        """
        Detect image format from data.

        Args:
            data: Image data to analyze

        Returns:
            Detected format or None if unknown
        """
        if not isinstance(data, (bytes, bytearray)):
            return None

        # RIFF....WEBP
        if len(data) >= 12 and data[:4] == b'RIFF' and data[8:12] == b'WEBP':
            return 'webp'
        stripped = data[:256].lstrip()
        if stripped.startswith(b'<svg') or (stripped.startswith(b'<?xml') and b'<svg' in data[:1024]):
            return 'svg'
        for format_type, signatures in self.format_signatures.items():
            for signature in signatures:
                if data.startswith(signature):
                    return format_type
        return None

    def get_image_info(self, image_data: bytes) -> Optional[Dict[str, Any]]:
        """
        Get image information.

        Args:
            image_data: Image data to analyze

        Returns:
            Image information dictionary or None if analysis fails
        """
        try:
            with Image.open(io.BytesIO(image_data)) as image:
                return {
                    'format': image.format,
                    'mode': image.mode,
                    'width': image.width,
                    'height': image.height,
                    'has_transparency': image.mode in ('RGBA', 'LA', 'P'),
                    'file_size': len(image_data),
                }
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.debug(f"Image analysis failed: {e}")
            return None

    def convert_to_png(self, image_data: bytes) -> Optional[bytes]:
        """
        Re-encode any Pillow-readable image as PNG.

        Animated images keep their first frame; palette and CMYK images are
        converted to RGB(A) first.

        Args:
            image_data: Source image data

        Returns:
            PNG bytes or None if Pillow cannot read the data
        """
        try:
            with Image.open(io.BytesIO(image_data)) as image:
                image.seek(0)
                if image.mode not in ('RGB', 'RGBA', 'L', 'LA'):
                    image = image.convert('RGBA' if 'A' in image.getbands() or image.mode == 'P' else 'RGB')
                output = io.BytesIO()
                image.save(output, format='PNG')
            self.conversion_stats['conversions'] += 1
            return output.getvalue()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            self.conversion_stats['errors'] += 1
            logger.warning(f"PNG conversion failed: {e}")
            return None

    @staticmethod
    def _reader(data: bytes) -> LoadedImage:
        reader = ImageReader(io.BytesIO(data))
        width, height = reader.getSize()
        if not width or not height:
            raise MediaError("image has no size")
        return LoadedImage(reader=reader, width=float(width), height=float(height))

    def load_converted(self, image_data: bytes) -> Optional[LoadedImage]:
        """
        Convert to PNG and load the result.

        Args:
            image_data: Raw image bytes

        Returns:
            LoadedImage marked as converted, or None
        """
        converted = self.convert_to_png(image_data)
        if not converted:
            return None
        try:
            loaded = self._reader(converted)
        except Exception as e:  # ImageReader wraps PIL errors in generic exceptions
            self.conversion_stats['errors'] += 1
            logger.warning(f"Image could not be embedded after PNG conversion: {e}")
            return None
        loaded.converted = True
        self.conversion_stats['loads'] += 1
        return loaded

    def load_image(self, image_data: Optional[bytes]) -> Optional[LoadedImage]:
        """
        Build an ImageReader, converting to PNG once if direct loading fails.

        Args:
            image_data: Raw image bytes

        Returns:
            LoadedImage or None if neither attempt succeeds
        """
        if not image_data:
            return None
        try:
            loaded = self._reader(image_data)
            self.conversion_stats['loads'] += 1
            return loaded
        except Exception as e:  # ImageReader wraps PIL errors in generic exceptions
            logger.debug(f"Direct image load failed ({self.detect_format(image_data)}): {e}")
        return self.load_converted(image_data)

    def get_conversion_stats(self) -> Dict[str, int]:
        """
        Get conversion statistics.

        Returns:
            Dictionary of conversion statistics
        """
        return dict(self.conversion_stats)
