"""User directory HTTP service backed by MongoDB."""

__version__ = "0.1.0"
