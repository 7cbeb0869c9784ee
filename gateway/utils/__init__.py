"""
Utility module for CRM Gateway
"""

from .clock import parse_timestamp, utcnow
from .custom_logger import setup_logger

__all__ = [
    "parse_timestamp",
    "setup_logger",
    "utcnow",
]
