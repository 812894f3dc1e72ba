"""Stable-token to native-asset swaps with cached on-chain pricing."""

__version__ = "0.1.0"
