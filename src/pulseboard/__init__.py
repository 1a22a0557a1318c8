"""pulseboard: derived metrics for athlete monitoring."""

__version__ = "0.1.0"
