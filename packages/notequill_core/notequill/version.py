"""Version information for notequill."""

__version__ = "0.4.0"
__version_info__ = tuple(int(part) for part in __version__.split("."))
