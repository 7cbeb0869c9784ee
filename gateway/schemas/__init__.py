### Description ###
# CRM Gateway - Multi-tenant External API
# - Schemas Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Schemas Package

Contains Pydantic models for request/response validation:
- resources: CRM resource request bodies
- dashboard: API key, webhook and log schemas
- responses: Envelope and error schemas
"""

from .responses import Envelope, ErrorResponse, PaginationMeta, envelope

__all__ = [
    "Envelope",
    "ErrorResponse",
    "PaginationMeta",
    "envelope",
]
