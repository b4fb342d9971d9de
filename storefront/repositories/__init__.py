"""
Repositories package
"""
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.order_repository import OrderRepository, ProcessedEventRepository

__all__ = ["ProductRepository", "OrderRepository", "ProcessedEventRepository"]
