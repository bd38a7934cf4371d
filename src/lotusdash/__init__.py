"""Operator console for Lotusim: vessel spawning and live vessel telemetry."""

__version__ = "0.1.0"
