"""Authenticating, authorizing proxy for the Transmission RPC API."""

__version__ = "0.1.0"
