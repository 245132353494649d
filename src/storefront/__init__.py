"""Storefront checkout core: cart pricing and the order lifecycle."""

__version__ = "0.1.0"
