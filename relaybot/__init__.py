"""Relaybot - provider routing for a personal AI assistant runtime."""

__version__ = "0.1.0"
