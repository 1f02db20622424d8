"""Rolling user-memory pipeline for a wellbeing companion app."""

__version__ = "0.1.0"
