"""Buffered JSON output stream, typed value encoders and record encoders."""

__version__ = "0.1.0"
__all__ = ["stream", "encoders", "structs"]