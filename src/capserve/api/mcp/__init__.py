"""Capability server and its FastMCP transport adapter."""

from .app import CapabilityServer
from .server import FastMcpServerAdapter

__all__ = [
    "CapabilityServer",
    "FastMcpServerAdapter",
]
