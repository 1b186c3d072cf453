"""Ordering API package."""

from ordering.api.routes import admin_router, delivery_router, order_router, restaurant_router

__all__ = ["order_router", "restaurant_router", "delivery_router", "admin_router"]
