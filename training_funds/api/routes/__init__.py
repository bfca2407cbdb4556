"""
API Routes Package

Contains all route modules for the training funds API.
"""

from .decisions import router as decisions_router
from .fund_requests import router as fund_requests_router

__all__ = [
    "decisions_router",
    "fund_requests_router",
]
