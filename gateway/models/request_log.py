### Description ###
# CRM Gateway - Multi-tenant External API
# - API Request Log Model -
# Date: 10/17/2026
# Python: 3.11
####################

"""
API Request Log Model

Append-only record of every gateway request:
- Who: API key/tenant that made the request (empty when rejected)
- What: HTTP method, path, response status
- When: Timestamp
- How long: Response time
"""

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from gateway.database import Base
from gateway.models.tenant import new_id
from gateway.utils import utcnow


class ApiRequestLog(Base):
    """
    Request log model - one row per /v1 request, never updated.

    Used for:
    - Security auditing
    - Usage analytics in the dashboard
    - Debugging integrations
    """

    __tablename__ = "api_request_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), nullable=True)  # Correlates with X-Request-ID

    # Who made the request (no foreign keys: rows outlive deleted keys)
    tenant_id = Column(String(36), nullable=True)
    api_key_id = Column(String(36), nullable=True)

    # Request details
    method = Column(String(10), nullable=False)
    path = Column(String(500), nullable=False)
    ip_address = Column(String(100), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # Response details
    status_code = Column(Integer, nullable=False)
    response_time_ms = Column(Float, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_api_request_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_api_request_logs_key_created", "api_key_id", "created_at"),
    )

    def __repr__(self):
        return f"<ApiRequestLog(id={self.id}, method='{self.method}', path='{self.path}', status={self.status_code})>"

    @classmethod
    def create_from_request(
        cls,
        method: str,
        path: str,
        status_code: int,
        response_time_ms: float,
        tenant_id: str | None = None,
        api_key_id: str | None = None,
        request_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> "ApiRequestLog":
        """
        Create a request log entry from request details.

        Returns:
            ApiRequestLog instance (not yet committed to database)
        """
        return cls(
            request_id=request_id,
            tenant_id=tenant_id,
            api_key_id=api_key_id,
            method=method,
            path=path[:500],
            status_code=status_code,
            response_time_ms=response_time_ms,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
        )
