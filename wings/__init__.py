"""Sandboxed path resolution and tree removal, byte-counting streams and a console log handler."""

__version__ = "0.1.0"