"""Core functionality for capserve."""
