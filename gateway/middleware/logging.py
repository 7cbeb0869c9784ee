### Description ###
# CRM Gateway - Multi-tenant External API
# - Request Logging Middleware -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Request Logging Middleware

Logs gateway requests with attribution information:
- Who: tenant and API key (when authentication succeeded)
- What: method and path
- Result: status code, response time

Every /v1 request gets a row in api_request_logs, including 401, 404,
429 and 500 responses. Writing the row is best-effort and never changes
the response.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Optional

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from gateway.config import get_api_settings
from gateway.models import ApiRequestLog

logger = logging.getLogger(__name__)

settings = get_api_settings()


def get_client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging gateway requests

    Captures:
    - Request ID (UUID), returned as X-Request-ID
    - Method and path
    - Tenant and API key ids
    - Client IP and user agent
    - Response status and time
    """

    def _should_log_to_db(self, request: Request) -> bool:
        """Only gateway traffic is recorded; CORS preflights are not"""
        if request.method == "OPTIONS":
            return False
        return request.url.path.startswith(settings.api_prefix)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors still count as a request; the app's 500
            # handler renders the response
            response_time = (time.perf_counter() - start_time) * 1000
            logger.error(f"[{request_id}] {method} {path} | status=500 | time={response_time:.2f}ms")
            if self._should_log_to_db(request):
                await self._save_request_log(request, request_id, 500, response_time)
            raise

        status_code = response.status_code
        response_time = (time.perf_counter() - start_time) * 1000  # ms

        context = getattr(request.state, "tenant_context", None)
        log_entry = (
            f"[{request_id}] "
            f"{method} {path} "
            f"| tenant={context.tenant_id if context else '-'} "
            f"| status={status_code} "
            f"| time={response_time:.2f}ms"
        )

        # Log at appropriate level
        if status_code >= 500:
            logger.error(log_entry)
        elif status_code >= 400:
            logger.warning(log_entry)
        else:
            logger.info(log_entry)

        response.headers["X-Request-ID"] = request_id

        if self._should_log_to_db(request):
            await self._save_request_log(request, request_id, status_code, response_time)

        return response

    async def _save_request_log(
        self,
        request: Request,
        request_id: str,
        status_code: int,
        response_time_ms: float,
    ) -> None:
        context = getattr(request.state, "tenant_context", None)
        entry = ApiRequestLog.create_from_request(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            response_time_ms=response_time_ms,
            tenant_id=context.tenant_id if context else None,
            api_key_id=context.api_key_id if context else None,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        session_factory = getattr(request.app.state, "session_factory", None)
        if session_factory is None:
            return
        await run_in_threadpool(self._write, session_factory, entry)

    @staticmethod
    def _write(session_factory, entry: ApiRequestLog) -> None:
        """Save log entry in its own session"""
        try:
            with session_factory() as session:
                session.add(entry)
                session.commit()
        except SQLAlchemyError as e:
            # Log the error but don't fail the request
            logger.error(f"Failed to save request log: {e!s}")
