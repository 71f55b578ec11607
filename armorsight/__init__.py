"""Armor plate detection and tracking from light-bar pairs in video frames."""

__version__ = "0.1.0"

__all__ = ["armor", "geometry", "detector", "kalman", "tracker", "pipeline"]