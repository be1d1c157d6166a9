"""MOYOFY: bar jukebox backend (YouTube search + shared playlist)."""

__version__ = "0.1.0"
