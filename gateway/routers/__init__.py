### Description ###
# CRM Gateway - Multi-tenant External API
# - Routers Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Routers Package

- gateway: /v1 resource endpoints (API key auth)
- dashboard: API key, webhook and log management (Bearer JWT)
"""

from .dashboard import router as dashboard_router
from .gateway import router as gateway_router

__all__ = ["dashboard_router", "gateway_router"]
