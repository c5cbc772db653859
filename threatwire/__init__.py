"""Threatwire: live threat-intelligence event stream."""

__version__ = "0.1.0"
