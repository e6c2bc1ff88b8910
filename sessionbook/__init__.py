"""Student availability posting, weekly lane grid and instructor session booking."""

__version__ = "1.0.0"
