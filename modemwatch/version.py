"""Version information for modemwatch."""

__version__ = "0.1.0"
