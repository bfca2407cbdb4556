"""
Fund Request Module

Cost breakdown, request ids, record storage and lifecycle rules for
training funds requests.
"""

from .cost_breakdown import CostBreakdown, CostItem, compute_breakdown
from .excel_generator import DisbursementSheetGenerator
from .lifecycle import TRANSITIONS, apply_decision, validate_decision
from .models import Decision, FundingRequest, RequestStatus
from .request_ids import RequestIdAllocator, generate_decision_token
from .request_store import FundingRequestStore

__all__ = [
    # Models
    "FundingRequest",
    "RequestStatus",
    "Decision",
    # Cost breakdown
    "CostBreakdown",
    "CostItem",
    "compute_breakdown",
    # Identifiers
    "RequestIdAllocator",
    "generate_decision_token",
    # Storage
    "FundingRequestStore",
    # Lifecycle
    "TRANSITIONS",
    "apply_decision",
    "validate_decision",
    # Disbursement workbook
    "DisbursementSheetGenerator",
]
