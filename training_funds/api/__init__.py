"""
FastAPI Backend for Training Funds Requests

Provides the submission API and the approver decision pages.
"""

from .main import app

__all__ = ["app"]
