"""Internet radio playout controller."""

__version__ = "0.1.0"
