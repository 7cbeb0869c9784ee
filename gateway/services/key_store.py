### Description ###
# CRM Gateway - Multi-tenant External API
# - API Key Store -
# Date: 10/17/2026
# Python: 3.11
####################

"""
API Key Store

Issues, verifies and tracks usage of tenant API keys.

Keys are hashed with bcrypt (salted, adaptive). A presented key is first
narrowed to the active keys sharing its display prefix, then checked with
bcrypt against each candidate. The plaintext is never stored or compared.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gateway.models import ApiKey
from gateway.models.api_key import DEFAULT_BCRYPT_ROUNDS, KEY_PREFIX_LENGTH, KEY_SCHEME
from gateway.utils import utcnow

logger = logging.getLogger(__name__)


class KeyStore:
    """
    Persistence and verification for ApiKey rows.

    Args:
        session_factory: Storage client shared by the gateway components
        bcrypt_rounds: Cost factor for newly issued keys
    """

    def __init__(self, session_factory: sessionmaker, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.session_factory = session_factory
        self.bcrypt_rounds = bcrypt_rounds

    def issue(
        self,
        session: Session,
        tenant_id: str,
        name: str,
        rate_limit_per_minute: int = 60,
        expires_at: Optional[datetime] = None,
    ) -> tuple[ApiKey, str]:
        """
        Create and persist a key for a tenant.

        Returns:
            Tuple of (ApiKey, plaintext key). The plaintext is not kept anywhere.
        """
        api_key, plaintext = ApiKey.create_key(
            tenant_id=tenant_id,
            name=name,
            rate_limit_per_minute=rate_limit_per_minute,
            expires_at=expires_at,
            rounds=self.bcrypt_rounds,
        )
        session.add(api_key)
        session.commit()
        session.refresh(api_key)

        logger.info("Issued API key %s... for tenant %s", api_key.key_prefix, tenant_id)
        return api_key, plaintext

    def verify(self, presented_key: str | None) -> Optional[ApiKey]:
        """
        Resolve a presented key to its stored record.

        Never raises: malformed keys, storage failures and mismatches all
        return None.
        """
        if not presented_key or not presented_key.startswith(KEY_SCHEME):
            return None
        if len(presented_key) <= KEY_PREFIX_LENGTH:
            return None

        try:
            with self.session_factory() as session:
                candidates = (
                    session.query(ApiKey)
                    .filter(
                        ApiKey.key_prefix == presented_key[:KEY_PREFIX_LENGTH],
                        ApiKey.is_active.is_(True),
                    )
                    .all()
                )
                for candidate in candidates:
                    if candidate.verify_key(presented_key):
                        return candidate
        except SQLAlchemyError:
            logger.exception("API key lookup failed")
        except ValueError:
            # bcrypt rejects inputs longer than 72 bytes
            pass

        return None

    def touch(self, api_key_id: str) -> None:
        """Record a successful use. Failures are logged, never raised."""
        try:
            with self.session_factory() as session:
                session.query(ApiKey).filter(ApiKey.id == api_key_id).update(
                    {ApiKey.last_used_at: utcnow()}, synchronize_session=False
                )
                session.commit()
        except SQLAlchemyError:
            logger.warning("Could not update last_used_at for API key %s", api_key_id, exc_info=True)
