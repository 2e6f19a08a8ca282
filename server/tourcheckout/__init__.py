"""Tour checkout confirmation service."""

__version__ = "1.0.0"
