### Description ###
# CRM Gateway - Multi-tenant External API
# - Tenant Model -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Tenant Model

Represents an isolated customer account of the CRM.
Tenants are provisioned by the identity system; the gateway only reads
them and scopes every key, webhook and resource row by tenant id.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from gateway.database import Base
from gateway.utils import utcnow


def new_id() -> str:
    """New random UUID string used as primary key"""
    return str(uuid.uuid4())


class Tenant(Base):
    """Tenant model - an isolated CRM account."""

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    api_keys = relationship("ApiKey", back_populates="tenant", cascade="all, delete-orphan")
    webhooks = relationship("Webhook", back_populates="tenant", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}')>"
