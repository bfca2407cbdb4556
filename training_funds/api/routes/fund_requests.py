"""
Fund Requests API Routes

Provides endpoints for submitting and viewing training funds requests.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from ...exceptions import FundingRequestError
from ...fund_request.cost_breakdown import compute_breakdown
from ...workflow import FundingRequestService
from ..auth import ROLE_APPROVER, ROLE_DISBURSER, Identity, get_current_identity
from ..dependencies import get_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fund-requests", tags=["fund-requests"])

Amount = str | float | int | None


class FundRequestSubmission(BaseModel):
    """Input model for a training funds request form."""

    model_config = ConfigDict(extra="allow")

    requester_name: str | None = None
    department_position: str | None = None
    email: str | None = None
    phone: str | None = None
    training_description: str | None = None
    training_dates: str | None = None
    training_location: str | None = None
    registration_fee: Amount = None
    hotel_cost: Amount = None
    flight_cost: Amount = None
    mileage_needed: bool = False
    mileage_miles: Amount = None
    mileage_total: Amount = None
    meals_needed: bool = False
    meals_total: Amount = None
    pay_ahead_registration: bool = False
    pay_ahead_hotel: bool = False
    pay_ahead_flight: bool = False
    dept_vehicle: bool = False
    dept_vehicle_details: str | None = None
    additional_notes: str | None = None


class SubmissionResponse(BaseModel):
    """Response to a successful submission."""

    success: bool
    requestId: str
    message: str


class FundRequestStatus(BaseModel):
    """Status view of a funding request."""

    id: str
    status: str
    submittedAt: datetime
    submittedBy: str
    decidedAt: datetime | None
    comments: str | None
    formData: dict[str, Any]
    breakdown: dict[str, Any]


@router.post("", response_model=SubmissionResponse)
def submit_fund_request(
    submission: FundRequestSubmission,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    service: FundingRequestService = Depends(get_service),
) -> SubmissionResponse:
    """Submit a new training funds request.

    Args:
        submission: Form fields
        request: Incoming request (for the decision link base URL)
        identity: Authenticated requester
        service: Workflow service

    Returns:
        Request id of the stored request
    """
    form_data = submission.model_dump(exclude_none=True)
    form_data.setdefault("email", identity.email)
    form_data.setdefault("requester_name", identity.name)

    try:
        result = service.submit(form_data, identity.email, base_url=str(request.base_url))
    except FundingRequestError as e:
        logger.error(f"Error processing training request from {identity.email}: {e.message}")
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return SubmissionResponse(
        success=True,
        requestId=result.request_id,
        message="Request submitted successfully",
    )


@router.get("/{request_id}", response_model=FundRequestStatus)
def get_fund_request(
    request_id: str,
    identity: Identity = Depends(get_current_identity),
    service: FundingRequestService = Depends(get_service),
) -> FundRequestStatus:
    """Get a funding request's status and breakdown.

    Visible to the submitter, approvers and disbursers.
    """
    try:
        record = service.get(request_id)
    except FundingRequestError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    if record is None:
        raise HTTPException(status_code=404, detail="Request not found")

    own_request = identity.email.lower() in (record.submitted_by.lower(), record.requester_email.lower())
    if not (own_request or identity.has_role(ROLE_APPROVER) or identity.has_role(ROLE_DISBURSER)):
        raise HTTPException(status_code=403, detail="Not allowed to view this request")

    return FundRequestStatus(
        id=record.id,
        status=record.status.value,
        submittedAt=record.submitted_at,
        submittedBy=record.submitted_by,
        decidedAt=record.decided_at,
        comments=record.comments,
        formData=dict(record.form_data),
        breakdown=compute_breakdown(record.form_data).to_dict(),
    )
