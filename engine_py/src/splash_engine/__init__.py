"""Splash card game: rules engine, relay and client session."""

__version__ = "1.0.0"
