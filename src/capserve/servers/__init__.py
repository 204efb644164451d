"""Bundled capability providers."""
