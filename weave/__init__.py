"""Weave: capture documents and links, extract their text and distil insights."""

__version__ = "0.1.0"
