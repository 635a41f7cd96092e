"""Quote pricing and PDF document pipeline."""

__version__ = "1.0.0"
