"""
Request Lifecycle Module

Validates decisions and applies status transitions to funding requests.
A decision is authorized solely by the token sent in the decision link.
"""

import hmac
import logging
from datetime import datetime

from ..exceptions import (
    AlreadyDecided,
    CommentsRequired,
    InvalidDecision,
    InvalidToken,
    RequestNotFound,
)
from .models import Decision, FundingRequest, RequestStatus

logger = logging.getLogger(__name__)

# (current status, decision) -> new status. Terminal states have no edges.
TRANSITIONS = {
    (RequestStatus.PENDING, Decision.ACCEPTED): RequestStatus.ACCEPTED,
    (RequestStatus.PENDING, Decision.SENT_BACK): RequestStatus.SENT_BACK,
    (RequestStatus.PENDING, Decision.REJECTED): RequestStatus.REJECTED,
}


def parse_decision(value: str | Decision | None) -> Decision:
    """Convert a raw decision value into a Decision.

    Raises:
        InvalidDecision: If the value is not a known decision
    """
    if isinstance(value, Decision):
        return value
    try:
        return Decision(value)
    except ValueError:
        raise InvalidDecision(value) from None


def validate_decision(decision: str | Decision | None, comments: str | None) -> tuple[Decision, str]:
    """Check the decision fields before touching the store.

    Returns:
        Tuple of (decision, stripped comments)

    Raises:
        InvalidDecision: Unknown decision value
        CommentsRequired: Blank comments on send back or reject
    """
    parsed = parse_decision(decision)
    comments = (comments or "").strip()

    if parsed.requires_comments and not comments:
        raise CommentsRequired()

    return parsed, comments


def tokens_match(expected: str, provided: str | None) -> bool:
    """Constant-time token comparison."""
    if not provided:
        return False
    return hmac.compare_digest(expected.encode(), provided.encode())


def apply_decision(
    record: FundingRequest | None,
    request_id: str,
    token: str | None,
    decision: Decision,
    comments: str,
    decided_at: datetime,
) -> FundingRequest:
    """Resolve a pending request.

    Args:
        record: Current stored record, or None if absent
        request_id: Id the decision was submitted for
        token: Token from the decision link
        decision: Validated decision
        comments: Validated comments
        decided_at: Decision timestamp

    Returns:
        The resolved record

    Raises:
        RequestNotFound: No record with this id
        InvalidToken: Token does not match the record
        AlreadyDecided: Record is no longer pending
    """
    if record is None:
        raise RequestNotFound(request_id)

    if not tokens_match(record.decision_token, token):
        logger.warning(f"Invalid token submitted for request {request_id}")
        raise InvalidToken()

    new_status = TRANSITIONS.get((record.status, decision))
    if new_status is None:
        logger.warning(f"Request {request_id} already {record.status.value}, ignoring {decision.value}")
        raise AlreadyDecided(request_id, record.status.value)

    return record.with_decision(new_status, decided_at, comments)
