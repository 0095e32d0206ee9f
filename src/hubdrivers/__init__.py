"""Pluggable storage drivers for the hub."""

__version__ = "0.1.0"
