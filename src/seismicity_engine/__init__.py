"""Seismicity Engine - tuning, training and interpretation of induced-seismicity models."""

__version__ = "0.1.0"
