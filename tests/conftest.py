"""
Pytest configuration for notequill
"""

import pytest
import io
import logging
import sys
from pathlib import Path
from unittest.mock import Mock

from PIL import Image
from reportlab.lib.pagesizes import A4

from notequill.config import RenderOptions
from notequill.engine.geometry import Margins, PageGeometry, Size
from notequill.engine.page_engine import PageFlow
from notequill.engine.text_metrics import TextMetricsEngine, TextStyle
from notequill.renderers.rich_text import RichTextRenderer


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    # Clear all existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Set up console-only logging for tests
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors during tests

    formatter = logging.Formatter(
        '%(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    # Cleanup after test
    root_logger.handlers.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    import tempfile
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def geometry():
    """A4 page with 50pt margins."""
    return PageGeometry(size=Size.from_tuple(A4), margins=Margins.uniform(50))


@pytest.fixture
def mock_canvas():
    """Canvas double recording drawing calls."""
    canvas = Mock()
    canvas.text_objects = []

    def begin_text():
        text_object = Mock()
        canvas.text_objects.append(text_object)
        return text_object

    canvas.beginText = Mock(side_effect=begin_text)
    return canvas


@pytest.fixture
def flow(mock_canvas, geometry):
    """PageFlow over a mock canvas."""
    return PageFlow(mock_canvas, geometry)


@pytest.fixture
def text_style():
    return TextStyle()


@pytest.fixture
def renderer(flow, text_style):
    """RichTextRenderer drawing onto the mock canvas."""
    return RichTextRenderer(flow, TextMetricsEngine(), text_style)


@pytest.fixture
def render_options():
    return RenderOptions()


def _image_bytes(fmt, size=(40, 20), color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A small 40x20 PNG."""
    return _image_bytes("PNG")


@pytest.fixture
def webp_bytes():
    """A small 40x20 WebP."""
    return _image_bytes("WEBP")


@pytest.fixture
def make_response():
    """Factory for requests-like response doubles."""
    def _make(status_code=200, content=b""):
        response = Mock()
        response.status_code = status_code
        response.content = content
        return response
    return _make


@pytest.fixture
def mock_session(make_response):
    """requests Session double answering 404 unless configured."""
    session = Mock()
    session.get = Mock(return_value=make_response(404))
    return session


# Configure pytest to ignore logging errors
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "e2e: marks tests as end-to-end tests"
    )
    # Ignore logging errors during tests
    logging.raiseExceptions = False
