### Description ###
# CRM Gateway - Multi-tenant External API
# - FastAPI Dependencies -
# Date: 10/17/2026
# Python: 3.11
####################

"""
FastAPI Dependencies

Gateway components are built once per application (see
main.configure_gateway) and stored on app.state. These dependencies hand
them to endpoints, so tests can swap the storage client per app.
"""

from fastapi import Request

from gateway.services.key_store import KeyStore
from gateway.services.resources import ResourceRegistry


def get_registry(request: Request) -> ResourceRegistry:
    """Resource registry for the /v1 router"""
    return request.app.state.registry


def get_key_store(request: Request) -> KeyStore:
    return request.app.state.key_store
