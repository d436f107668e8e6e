"""Path resolution, tree removal and error handling confined beneath a base directory."""

__version__ = "0.1.0"