### Description ###
# CRM Gateway - Multi-tenant External API
# - Gateway Router -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Gateway API Endpoints

A single route serves every CRM resource:

    GET    /v1/{resource}          list (filters, cursor pagination, include)
    GET    /v1/{resource}/{id}     get one
    POST   /v1/{resource}          create (201)
    PUT    /v1/{resource}/{id}     partial update
    PATCH  /v1/{resource}/{id}     partial update
    DELETE /v1/{resource}/{id}     delete (204)

Authentication runs first, then the per-key rate limit, then the
resource handler. Handlers do blocking storage work, so they run in the
threadpool.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from gateway.dependencies import get_registry
from gateway.errors import MethodNotAllowedError, NotFoundError, ValidationError
from gateway.middleware.auth import TenantContext, get_tenant_context
from gateway.middleware.rate_limit import get_api_key_identifier, get_key_rate_limit, limiter
from gateway.schemas.responses import PaginationMeta, envelope
from gateway.services.query import parse_includes, parse_query
from gateway.services.resources import ResourceRegistry

router = APIRouter()

GATEWAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def parse_path(path: str) -> tuple[str, Optional[str]]:
    """
    Split "contacts/abc" into ("contacts", "abc").

    Raises:
        NotFoundError: Empty path or more than two segments
    """
    segments = [segment for segment in path.split("/") if segment]
    if not segments or len(segments) > 2:
        raise NotFoundError("Resource not found")
    resource = segments[0]
    item_id = segments[1] if len(segments) == 2 else None
    return resource, item_id


async def read_json_body(request: Request) -> Any:
    """Request body as parsed JSON; malformed JSON is a 400"""
    raw = await request.body()
    if not raw.strip():
        raise ValidationError("Request body is required")
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError("Request body must be valid JSON")


@router.api_route(
    "/{path:path}",
    methods=GATEWAY_METHODS,
    summary="CRM resources",
    description="CRUD on contacts, products, cards, appointments and tasks",
)
@limiter.limit(get_key_rate_limit, key_func=get_api_key_identifier)
async def handle_resource(
    request: Request,
    path: str,
    background_tasks: BackgroundTasks,
    context: TenantContext = Depends(get_tenant_context),
    registry: ResourceRegistry = Depends(get_registry),
) -> Response:
    """Dispatch a /v1 request to its resource handler"""
    resource, item_id = parse_path(path)
    handler = registry.get(resource)
    method = request.method

    if method == "GET":
        if item_id is not None:
            includes = parse_includes(request.query_params.get("include"))
            row = await run_in_threadpool(handler.get, context, item_id, includes)
            return JSONResponse(envelope(row))

        query = parse_query(request.query_params.multi_items())
        page = await run_in_threadpool(handler.list, context, query)
        pagination = PaginationMeta(total=page.total, limit=page.limit, next_cursor=page.next_cursor)
        return JSONResponse(envelope(page.rows, pagination))

    if method == "POST" and item_id is None:
        body = await read_json_body(request)
        row = await run_in_threadpool(handler.create, context, body, background_tasks)
        return JSONResponse(envelope(row), status_code=status.HTTP_201_CREATED)

    if method in ("PUT", "PATCH") and item_id is not None:
        body = await read_json_body(request)
        row = await run_in_threadpool(handler.update, context, item_id, body, background_tasks)
        return JSONResponse(envelope(row))

    if method == "DELETE" and item_id is not None:
        await run_in_threadpool(handler.delete, context, item_id, background_tasks)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    raise MethodNotAllowedError()
