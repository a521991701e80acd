"""Service scheduling, dynamic pricing and booking engine."""

__version__ = "0.1.0"
