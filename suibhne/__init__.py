"""Suibhne - a local daemon bridging protected resources to command-line clients."""

__version__ = "0.1.0"
