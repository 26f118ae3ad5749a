"""Ordering module."""

from .cart import Cart, CartService, parse_order

__all__ = ["Cart", "CartService", "parse_order"]
