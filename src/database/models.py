"""
Database Models - Olist Snapshot Schema

Read models for the relational store the delivery reports are computed from.
Table and column names follow the public Olist e-commerce dataset:

- orders: order lifecycle with estimated and actual delivery dates
- order_items: order lines referencing products
- products: product catalogue with Portuguese category codes
- product_category_name_translation: category code -> English name
- order_reviews: customer review scores

No foreign keys are declared; the snapshot is loaded as-is and orphan rows are
dropped by the inner joins in the aggregator.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status values found in the snapshot"""
    CREATED = "created"
    APPROVED = "approved"
    INVOICED = "invoiced"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    UNAVAILABLE = "unavailable"
    CANCELED = "canceled"


# =============================================================================
# TABLES
# =============================================================================

class Order(Base):
    """
    Orders Table

    One row per order. Either delivery date may be missing for orders that
    never reached the customer.
    """
    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_status: Mapped[Optional[str]] = mapped_column(String(20))
    order_estimated_delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    order_delivered_customer_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_orders_status", "order_status"),
    )


class OrderItem(Base):
    """Order lines; one order has one or more items"""
    __tablename__ = "order_items"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_item_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_order_items_product", "product_id"),
    )


class Product(Base):
    """Product catalogue"""
    __tablename__ = "products"

    product_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_category_name: Mapped[Optional[str]] = mapped_column(String(100))


class CategoryTranslation(Base):
    """Portuguese category code to English category name"""
    __tablename__ = "product_category_name_translation"

    product_category_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    product_category_name_english: Mapped[str] = mapped_column(String(100), nullable=False)


class OrderReview(Base):
    """
    Customer Reviews

    review_id is not unique across orders in the source data, so the key
    is (review_id, order_id).
    """
    __tablename__ = "order_reviews"

    review_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    review_score: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        Index("ix_order_reviews_order", "order_id"),
    )


# Snapshot collection name -> table model
TABLE_MODELS = {
    "orders": Order,
    "order_items": OrderItem,
    "products": Product,
    "category_translations": CategoryTranslation,
    "reviews": OrderReview,
}
