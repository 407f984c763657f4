"""Lobby, card engine and real-time gateway for the Last Card game."""

__version__ = "1.0.0"
