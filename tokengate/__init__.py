"""Tokengate - scoped API access token service."""

__version__ = "0.1.0"
