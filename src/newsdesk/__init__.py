"""Financial news aggregation service."""

__version__ = "0.1.0"
