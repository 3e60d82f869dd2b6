"""68-point facial landmark detection with explicit tensor lifecycle."""

__version__ = "0.1.0"
