"""Basket service: per-user shopping baskets and checkout event publication."""

__version__ = "0.1.0"
