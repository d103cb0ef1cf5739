"""Version information for objlock."""

__version__ = "0.1.0"
