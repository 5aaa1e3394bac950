"""Repository data access layer for the gait Git dashboard."""

__version__ = "0.1.0"
