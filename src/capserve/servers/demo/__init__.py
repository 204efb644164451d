"""Demo capabilities."""

from .capabilities import register_demo

__all__ = ["register_demo"]
