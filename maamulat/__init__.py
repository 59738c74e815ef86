"""Maamulat — daily spiritual habit tracker engine."""

__version__ = "0.1.0"
