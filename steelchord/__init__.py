"""Pedal steel guitar chord finder and voice-leading optimiser."""

__version__ = "0.1.0"
