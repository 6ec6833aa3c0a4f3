"""ScopePath CLI: keep namespace declarations in sync with folder structure."""

__version__ = "0.3.0"
