"""Guest photo upload pipeline for cafe venues."""

__version__ = "0.1.0"
