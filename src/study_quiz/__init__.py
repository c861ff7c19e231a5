"""Interactive quiz runner for JSON question sets."""

__version__ = "0.1.0"
