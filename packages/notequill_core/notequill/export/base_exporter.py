"""
Base exporter for block documents.

Provides common functionality for all exporters.
"""

from typing import Dict, Any, Optional
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class BaseExporter:
    """
    Base class for all exporters.
    """

    def __init__(self, title: str, blocks: Any, output_path: Optional[str] = None,
                 export_options: Optional[Dict[str, Any]] = None):
        """
        Initialize base exporter.

        Args:
            title: Document title
            blocks: Block tree (JSON string, parsed list or Block objects)
            output_path: Output path for export file
            export_options: Export options
        """
        self.title = title
        self.blocks = blocks
        self.output_path = output_path
        self.export_options = export_options or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_export_option(self, key: str, default: Any = None) -> Any:
        """
        Get export option value.

        Args:
            key: Option key
            default: Default value if key not found

        Returns:
            Option value
        """
        return self.export_options.get(key, default)

    def set_export_option(self, key: str, value: Any):
        """
        Set export option value.

        Args:
            key: Option key
            value: Option value
        """
        self.export_options[key] = value

    def get_supported_formats(self) -> list:
        """
        Get supported export formats.

        Returns:
            List of supported formats
        """
        raise NotImplementedError("Subclasses must implement get_supported_formats")

    def get_export_info(self) -> Dict[str, Any]:
        """
        Get export information.

        Returns:
            Export information dictionary
        """
        raise NotImplementedError("Subclasses must implement get_export_info")

    def export_to_bytes(self) -> bytes:
        """
        Export document to bytes.

        Returns:
            Exported content
        """
        raise NotImplementedError("Subclasses must implement export_to_bytes")

    def export_to_file(self, file_path: Optional[str] = None) -> bool:
        """
        Export document to file.

        Args:
            file_path: Output file path (uses output_path if not provided)

        Returns:
            True if successful, False otherwise
        """
        target = file_path or self.output_path
        if not target:
            raise ValueError("No output path given")
        content = self.export_to_bytes()
        path = Path(target)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            self.logger.error(f"Failed to write export to {path}: {e}")
            return False
        self.logger.info(f"Exported {len(content)} bytes to {path}")
        return True
