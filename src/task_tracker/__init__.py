"""Collaborative task tracker with assignment notifications and realtime updates."""

__version__ = "1.0.0"
