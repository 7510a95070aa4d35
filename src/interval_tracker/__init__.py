"""Personal interval tracking with duration math and per-category statistics."""

__version__ = "0.3.0"
