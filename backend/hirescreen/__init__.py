"""Resume screening and candidate pipeline service."""

__version__ = "1.0.0"
