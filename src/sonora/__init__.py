"""Sonora - resilient client layer for a speech-synthesis REST API"""

__version__ = "0.1.0"
