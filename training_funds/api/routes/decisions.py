"""
Decision Routes

Serves the decision form reached from the approver email and records the
submitted decision.
"""

import logging

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import HTMLResponse

from ...config import WorkflowConfig
from ...exceptions import (
    AlreadyDecided,
    CommentsRequired,
    FundingRequestError,
    InvalidToken,
    MissingFields,
    RequestNotFound,
)
from ...fund_request.cost_breakdown import compute_breakdown
from ...fund_request.lifecycle import tokens_match
from ...workflow import FundingRequestService
from ..dependencies import get_config, get_service
from ..pages import confirmation_page, decision_form_page, message_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["decisions"])


def error_page(error: FundingRequestError) -> HTMLResponse:
    """Render a workflow error as an HTML page with its status code."""
    if isinstance(error, CommentsRequired):
        content = message_page("Comments Required", error.message, back_link=True)
    elif isinstance(error, AlreadyDecided):
        content = message_page("Already Processed", error.message)
    elif isinstance(error, InvalidToken):
        content = message_page("Invalid Link", "Invalid token")
    elif isinstance(error, RequestNotFound):
        content = message_page("Not Found", "Request not found")
    else:
        content = message_page("Unable to Record Decision", error.message, back_link=error.http_status == 400)
    return HTMLResponse(content, status_code=error.http_status)


@router.get("/decide", response_class=HTMLResponse)
def decision_form(
    request_id: str | None = Query(None, alias="requestId"),
    token: str | None = Query(None),
    service: FundingRequestService = Depends(get_service),
    config: WorkflowConfig = Depends(get_config),
) -> HTMLResponse:
    """Render the decision form for a pending request."""
    missing = [name for name, value in (("requestId", request_id), ("token", token)) if not value]
    if missing:
        return error_page(MissingFields(missing))

    try:
        record = service.get(request_id)
        if record is None:
            raise RequestNotFound(request_id)
        if not tokens_match(record.decision_token, token):
            raise InvalidToken()
        if record.status.is_terminal:
            raise AlreadyDecided(request_id, record.status.value)
    except FundingRequestError as e:
        return error_page(e)

    content = decision_form_page(record, compute_breakdown(record.form_data), token, config.currency_symbol)
    return HTMLResponse(content)


@router.post("/decide", response_class=HTMLResponse)
def submit_decision(
    request_id: str | None = Form(None, alias="requestId"),
    token: str | None = Form(None),
    decision: str | None = Form(None),
    comments: str | None = Form(None),
    service: FundingRequestService = Depends(get_service),
) -> HTMLResponse:
    """Record an approver's decision.

    Returns:
        Confirmation page (200) or an error page with the matching status
    """
    missing = [
        name
        for name, value in (("requestId", request_id), ("token", token), ("decision", decision))
        if not value
    ]
    if missing:
        return error_page(MissingFields(missing))

    try:
        result = service.decide(request_id, token, decision, comments or "")
    except FundingRequestError as e:
        logger.warning(f"Decision on {request_id} refused: {e.message}")
        return error_page(e)

    return HTMLResponse(confirmation_page(result.record))
