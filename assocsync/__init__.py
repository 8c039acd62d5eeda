"""Local cache and remote sync engine for association management data."""

__version__ = "0.1.0"
