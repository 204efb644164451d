"""capserve - Model Context Protocol capability server."""

__version__ = "0.1.0"
