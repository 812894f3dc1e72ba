"""Pricing routers package."""

from . import prices

__all__ = ["prices"]
