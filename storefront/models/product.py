"""
SQLAlchemy Product and Category models
"""
import uuid

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


class Category(Base):
    """Product category"""
    
    __tablename__ = "categories"
    
    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    
    products = relationship("Product", back_populates="category")
    
    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class Product(Base):
    """Product database model"""
    
    __tablename__ = "products"
    
    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    price_in_cents = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    category = relationship("Category", back_populates="products")
    
    # Constraints
    __table_args__ = (
        CheckConstraint('price_in_cents >= 0', name='check_price_non_negative'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )
    
    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price_in_cents={self.price_in_cents}, stock={self.stock})>"
