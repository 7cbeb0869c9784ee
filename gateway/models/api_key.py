### Description ###
# CRM Gateway - Multi-tenant External API
# - API Key Model -
# Date: 10/17/2026
# Python: 3.11
####################

"""
API Key Model

Stores API keys with:
- Hashed key value (bcrypt) - the actual key is only shown once on creation
- Key prefix for identification ("sk_live_" + 8 chars stored plaintext)
- Per-minute rate limit
- Expiration support
"""

import secrets
from datetime import datetime
from typing import Optional

import bcrypt as _bcrypt
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from gateway.database import Base
from gateway.models.tenant import new_id
from gateway.utils import utcnow

KEY_SCHEME = "sk_live_"
KEY_PREFIX_LENGTH = len(KEY_SCHEME) + 8
DEFAULT_BCRYPT_ROUNDS = 12


def hash_key(plaintext: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a key using bcrypt"""
    return _bcrypt.hashpw(plaintext.encode(), _bcrypt.gensalt(rounds=rounds)).decode()


def verify_key_hash(plaintext: str, hashed: str) -> bool:
    """Verify a plaintext key against a hash"""
    return _bcrypt.checkpw(plaintext.encode(), hashed.encode())


def generate_api_key() -> str:
    """
    Generate a secure random API key.

    Format: sk_live_{64 hex chars}
    The key is exactly 72 bytes, the most bcrypt will hash.

    Returns:
        New API key string
    """
    return f"{KEY_SCHEME}{secrets.token_hex(32)}"


class ApiKey(Base):
    """
    API Key model - a tenant's programmatic credential.

    The actual key is hashed with bcrypt and cannot be retrieved.
    Only the prefix is stored in plaintext for identification.
    """

    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)  # e.g., "Zapier", "ERP sync"

    # Key storage - only prefix is visible, full key is hashed
    key_prefix = Column(String(32), nullable=False, index=True)  # "sk_live_xxxxxxxx"
    key_hash = Column(String(255), nullable=False)  # bcrypt hash

    rate_limit_per_minute = Column(Integer, default=60, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    # Tracking
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_used_at = Column(DateTime, nullable=True)

    tenant = relationship("Tenant", back_populates="api_keys")

    def __repr__(self):
        return f"<ApiKey(id={self.id}, name='{self.name}', prefix='{self.key_prefix}')>"

    @classmethod
    def create_key(
        cls,
        tenant_id: str,
        name: str,
        rate_limit_per_minute: int = 60,
        expires_at: Optional[datetime] = None,
        rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ) -> tuple["ApiKey", str]:
        """
        Create a new API key with a generated secret.

        Returns both the ApiKey model instance and the plaintext key.
        The plaintext key should be shown to the user once and never stored.

        Args:
            tenant_id: ID of the owning tenant
            name: Human-readable name for the key
            rate_limit_per_minute: Requests per minute (default 60)
            expires_at: Optional expiration datetime (naive UTC)
            rounds: bcrypt cost factor

        Returns:
            Tuple of (ApiKey instance, plaintext key string)
        """
        plaintext_key = generate_api_key()

        api_key = cls(
            id=new_id(),
            tenant_id=tenant_id,
            name=name,
            key_prefix=plaintext_key[:KEY_PREFIX_LENGTH],
            key_hash=hash_key(plaintext_key, rounds=rounds),
            rate_limit_per_minute=rate_limit_per_minute,
            is_active=True,
            expires_at=expires_at,
            created_at=utcnow(),
        )

        return api_key, plaintext_key

    def verify_key(self, plaintext_key: str) -> bool:
        """
        Verify a plaintext key against this key's hash.

        Args:
            plaintext_key: The key to verify

        Returns:
            True if the key matches, False otherwise
        """
        return verify_key_hash(plaintext_key, self.key_hash)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True when expires_at is set and already passed"""
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """
        Check if this key is valid (active and not expired).

        Returns:
            True if the key can be used, False otherwise
        """
        return bool(self.is_active) and not self.is_expired(now)
