"""
Models package
"""
from storefront.models.product import Category, Product
from storefront.models.order import Order, OrderItem, OrderStatus, ProcessedEvent

__all__ = ["Category", "Product", "Order", "OrderItem", "OrderStatus", "ProcessedEvent"]
