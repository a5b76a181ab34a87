"""Concrete implementations of the ``weave.interfaces`` contracts."""
