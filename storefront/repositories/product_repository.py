"""
Product Repository - Data Access Layer
"""
from typing import Iterable, List
from sqlalchemy.orm import Session
from sqlalchemy import update

from storefront.models.product import Product


class ProductRepository:
    """Repository for Product reads and stock mutation"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def get_many(self, product_ids: Iterable[str]) -> List[Product]:
        """Fetch all products whose id is in product_ids in one query"""
        ids = list(set(product_ids))
        if not ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(ids)).all()
    
    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """
        Conditionally subtract quantity from a product's stock
        
        Issues a single UPDATE guarded by ``stock >= quantity`` and does not
        commit; the caller owns the transaction.
        
        Returns:
            True if a row was updated, False if the product is missing or
            has less than quantity in stock
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
