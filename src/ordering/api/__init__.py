"""Ordering domain API package."""

from ordering.api.routes import admin_router, order_router

__all__ = ["order_router", "admin_router"]
