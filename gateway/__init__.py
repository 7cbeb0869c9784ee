### Description ###
# CRM Gateway - Multi-tenant External API
# - Gateway Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
CRM Gateway Package

This package contains the FastAPI application that exposes the CRM's
tenant-scoped resources (contacts, products, appointments, tasks, cards)
to external integrations through API keys and webhooks.
"""

__version__ = "1.0.0"
