"""Database models for companies, menus, locations and orders.

These models describe the schema used by the application. They are kept
isolated from any application wiring so that they can be used in tests or
seed scripts independently."""

from __future__ import annotations

from datetime import timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from .domain import OrderSource, OrderStatus

Base = declarative_base()


def _values(enum_cls):
    return [member.value for member in enum_cls]


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite stores no offset, so values are written as UTC and tagged with UTC
    again when read back.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Company(Base):
    """Restaurant brand owning a product catalog and locations."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(UTCDateTime(), server_default=func.now())

    locations = relationship("Location", back_populates="company")
    products = relationship("Product", back_populates="company")


class Location(Base):
    """A kitchen that prepares orders."""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)

    company = relationship("Company", back_populates="locations")
    offerings = relationship("LocationProduct", back_populates="location")


class Product(Base):
    """Company-wide menu item with a fixed base preparation time."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    base_prep_time_seconds = Column(Integer, nullable=False)

    company = relationship("Company", back_populates="products")


class LocationProduct(Base):
    """A product offered at a specific location."""

    __tablename__ = "location_products"

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    location = relationship("Location", back_populates="offerings")
    product = relationship("Product", lazy="joined")


class Order(Base):
    """Customer order placed at a location."""

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_location_status", "location_id", "status"),
        Index("ix_orders_location_created", "location_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    source = Column(
        Enum(OrderSource, values_callable=_values, native_enum=False),
        nullable=False,
    )
    status = Column(String, nullable=False, default=OrderStatus.RECEIVED.value)
    estimated_ready_at = Column(UTCDateTime(), nullable=False)
    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(
        UTCDateTime(), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(UTCDateTime(), nullable=True)

    items = relationship("OrderItem", back_populates="order", lazy="selectin")


class OrderItem(Base):
    """Line item linking an order to an offering."""

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_order_items_qty"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    location_product_id = Column(
        Integer, ForeignKey("location_products.id"), nullable=False
    )
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    offering = relationship("LocationProduct", lazy="selectin")
