"""Template-driven vlog creation: recording, timeline editing and export."""

__version__ = "0.1.0"
