"""agritwin: day-stepped digital twin of a single cropped plot."""

__version__ = "0.1.0"
