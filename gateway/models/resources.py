### Description ###
# CRM Gateway - Multi-tenant External API
# - CRM Resource Models -
# Date: 10/17/2026
# Python: 3.11
####################

"""
CRM Resource Models

Tenant-owned entities exposed through /v1:
- Contact, Product, Card, Appointment, Task

Every row belongs to exactly one tenant. The gateway always filters by
tenant_id in addition to whatever the caller asks for.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declared_attr

from gateway.database import Base
from gateway.models.tenant import new_id
from gateway.utils import utcnow


class TenantScopedMixin:
    """Columns shared by every tenant-owned resource table"""

    id = Column(String(36), primary_key=True, default=new_id)

    @declared_attr
    def tenant_id(cls):
        return Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Column values keyed by column name"""
        return {column.name: getattr(self, column.key) for column in self.__table__.columns}

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, tenant_id={self.tenant_id})>"


class Contact(TenantScopedMixin, Base):
    __tablename__ = "contacts"

    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(20), nullable=True)
    company = Column(String(100), nullable=True)
    custom_fields = Column(JSON, default=dict, nullable=False)


class Product(TenantScopedMixin, Base):
    __tablename__ = "products"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(100), nullable=True)
    price = Column(Float, nullable=True)
    cost = Column(Float, nullable=True)
    stock_quantity = Column(Integer, default=0, nullable=False)
    min_stock_level = Column(Integer, default=0, nullable=False)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    custom_fields = Column(JSON, default=dict, nullable=False)


class Card(TenantScopedMixin, Base):
    """Sales pipeline card (deal)"""

    __tablename__ = "cards"

    title = Column(String(200), nullable=False)
    value = Column(Float, default=0, nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    contact_id = Column(String(36), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True, index=True)
    custom_fields = Column(JSON, default=dict, nullable=False)


class Appointment(TenantScopedMixin, Base):
    __tablename__ = "appointments"

    title = Column(String(200), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    location = Column(String(255), nullable=True)
    status = Column(String(20), default="scheduled", nullable=False)
    contact_id = Column(String(36), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True, index=True)
    card_id = Column(String(36), ForeignKey("cards.id", ondelete="SET NULL"), nullable=True, index=True)


class Task(TenantScopedMixin, Base):
    __tablename__ = "tasks"

    title = Column(String(200), nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending | in_progress | completed
    due_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    assigned_to = Column(String(36), nullable=True)  # User id in the identity system
    contact_id = Column(String(36), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True, index=True)
    card_id = Column(String(36), ForeignKey("cards.id", ondelete="SET NULL"), nullable=True, index=True)
