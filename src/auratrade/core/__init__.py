"""Core utilities for auratrade."""
from .symbols import INSTRUMENTS, display_name, resolve

__all__ = ["INSTRUMENTS", "display_name", "resolve"]
