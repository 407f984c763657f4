"""Lobby, identity and activity services."""
