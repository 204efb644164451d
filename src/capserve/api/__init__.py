"""Server-facing API for capserve."""
