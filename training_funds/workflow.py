"""
Funding Request Workflow Module

Orchestrates submission and decision of funding requests: id allocation,
persistence, state transitions and notifications.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping
from urllib.parse import urlencode

from .config import WorkflowConfig
from .exceptions import ValidationError
from .fund_request.cost_breakdown import compute_breakdown
from .fund_request.lifecycle import apply_decision, validate_decision
from .fund_request.models import Decision, FundingRequest, RequestStatus
from .fund_request.request_ids import RequestIdAllocator, generate_decision_token, utc_now
from .fund_request.request_store import FundingRequestStore
from .notifications.dispatcher import DispatchReport, NotificationDispatcher

logger = logging.getLogger(__name__)


def decision_url(base_url: str, request_id: str, token: str) -> str:
    """Build the emailed link to the decision form."""
    query = urlencode({"requestId": request_id, "token": token})
    return f"{base_url.rstrip('/')}/decide?{query}"


@dataclass
class SubmissionResult:
    """Result of a successful submission."""

    record: FundingRequest
    notifications: DispatchReport

    @property
    def request_id(self) -> str:
        return self.record.id


@dataclass
class DecisionResult:
    """Result of a successful decision."""

    record: FundingRequest
    notifications: DispatchReport

    @property
    def status(self) -> RequestStatus:
        return self.record.status


class FundingRequestService:
    """Submission and decision workflow for funding requests."""

    def __init__(
        self,
        store: FundingRequestStore,
        dispatcher: NotificationDispatcher,
        config: WorkflowConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the service.

        Args:
            store: Funding request store adapter
            dispatcher: Notification dispatcher
            config: Workflow configuration
            clock: Returns the current time
        """
        self.store = store
        self.dispatcher = dispatcher
        self.config = config
        self.clock = clock
        self.allocator = RequestIdAllocator(store, clock)

    def submit(
        self,
        form_data: Mapping[str, Any],
        submitted_by: str,
        base_url: str | None = None,
    ) -> SubmissionResult:
        """Submit a new funding request.

        The request is stored as pending and the approvers are notified.

        Args:
            form_data: Submitted form fields
            submitted_by: Verified email of the submitting identity
            base_url: Base URL for the decision link (config takes precedence)

        Returns:
            SubmissionResult

        Raises:
            ValidationError: Requester email is missing or malformed, or an amount is out of range
            ConfigurationError: Approvers or disbursers are not configured
            StoreUnavailable: The store could not be reached
            NotifierUnavailable: The approvers could not be notified
        """
        email = str(form_data.get("email") or submitted_by or "").strip()
        if not email:
            raise ValidationError("Requester email is required")

        # Out-of-range amounts are refused before an id is spent
        compute_breakdown(form_data)

        self.config.require_audiences()

        link_base = self.config.base_url or base_url
        if not link_base:
            raise ValidationError("Base URL for the decision link is unknown")

        request_id = self.allocator.allocate(email)
        record = FundingRequest(
            id=request_id,
            form_data={**form_data, "email": email},
            decision_token=generate_decision_token(),
            submitted_at=self.clock(),
            submitted_by=submitted_by,
        )
        self.store.create(record)

        logger.info(
            f"Training funds request submitted: {request_id} by {submitted_by} "
            f"(approvers: {', '.join(self.config.approver_emails)})"
        )

        report = self.dispatcher.notify_submitted(
            record, decision_url(link_base, request_id, record.decision_token)
        )
        return SubmissionResult(record, report)

    def decide(
        self,
        request_id: str,
        token: str,
        decision: str | Decision,
        comments: str | None = None,
    ) -> DecisionResult:
        """Apply an approver's decision to a pending request.

        Args:
            request_id: Request id from the decision link
            token: Token from the decision link
            decision: 'accepted', 'sent_back' or 'rejected'
            comments: Approver comments (required unless accepting)

        Returns:
            DecisionResult with the committed record and notification outcomes

        Raises:
            InvalidDecision, CommentsRequired: Invalid decision fields
            RequestNotFound: Unknown request id
            InvalidToken: Token does not match
            AlreadyDecided: Request is no longer pending
            StoreUnavailable: The store could not be reached
        """
        parsed, comments = validate_decision(decision, comments)
        decided_at = self.clock()

        record = self.store.update(
            request_id,
            lambda current: apply_decision(current, request_id, token, parsed, comments, decided_at),
        )
        logger.info(f"Request {request_id} marked as {record.status.value}")

        report = self.dispatcher.notify_decided(record)
        for delivery in report.failed:
            logger.error(
                f"Request {request_id} is {record.status.value} but the {delivery.audience} "
                f"was not notified: {delivery.error}"
            )

        return DecisionResult(record, report)

    def get(self, request_id: str) -> FundingRequest | None:
        """Load a request by id."""
        return self.store.get(request_id)
