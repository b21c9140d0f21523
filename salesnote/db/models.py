"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float, Text, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class VendorRecord(Base):
    """Vendor (customer) catalog row."""

    __tablename__ = "vendors"

    id = Column(String, primary_key=True)
    organization_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    position = Column(Integer, default=0, nullable=False)  # store order


class InventoryRecord(Base):
    """Inventory catalog row."""

    __tablename__ = "inventory_items"

    id = Column(String, primary_key=True)
    organization_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    quantity = Column(Float, default=0, nullable=False)
    unit_price = Column(Float, default=0, nullable=False)
    min_price = Column(Float, default=0, nullable=False)
    max_price = Column(Float, default=0, nullable=False)
    location = Column(String, nullable=True)
    position = Column(Integer, default=0, nullable=False)


class Order(Base):
    """Confirmed order written by the sales assistant."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String, index=True, nullable=False)
    vendor_id = Column(String, nullable=True)  # resolved customer, if any
    items = Column(JSON, nullable=False)  # list of line item dicts
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Task(Base):
    """Follow-up task written by the sales assistant."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String, index=True, nullable=False)
    vendor_id = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
