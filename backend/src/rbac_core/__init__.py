"""Role and permission authorization engine."""

__version__ = "1.0.0"
