"""
Funding Request Models

Core record and status types for the request lifecycle.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class RequestStatus(Enum):
    """Request status enum."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    SENT_BACK = "sent_back"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Decision(Enum):
    """Decision an approver can make on a pending request."""
    ACCEPTED = "accepted"
    SENT_BACK = "sent_back"
    REJECTED = "rejected"

    @property
    def requires_comments(self) -> bool:
        return self is not Decision.ACCEPTED


def _freeze(form_data: Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(form_data, MappingProxyType):
        return form_data
    return MappingProxyType(dict(form_data))


@dataclass(frozen=True)
class FundingRequest:
    """A submitted funding request and its decision state."""

    id: str
    form_data: Mapping[str, Any]
    decision_token: str
    submitted_at: datetime
    submitted_by: str
    status: RequestStatus = RequestStatus.PENDING
    decided_at: datetime | None = None
    comments: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "form_data", _freeze(self.form_data))
        if self.status.is_terminal and self.decided_at is None:
            raise ValueError(f"Request {self.id} is {self.status.value} without decided_at")
        if not self.status.is_terminal and (self.decided_at is not None or self.comments is not None):
            raise ValueError(f"Pending request {self.id} cannot carry decision fields")

    @property
    def requester_email(self) -> str:
        return str(self.form_data.get("email") or self.submitted_by)

    @property
    def requester_name(self) -> str:
        return str(self.form_data.get("requester_name") or self.requester_email)

    def with_decision(self, status: RequestStatus, decided_at: datetime, comments: str) -> "FundingRequest":
        """Return a copy resolved to a terminal status."""
        return replace(self, status=status, decided_at=decided_at, comments=comments)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "formData": dict(self.form_data),
            "decisionToken": self.decision_token,
            "status": self.status.value,
            "submittedAt": self.submitted_at.isoformat(),
            "submittedBy": self.submitted_by,
            "decidedAt": self.decided_at.isoformat() if self.decided_at else None,
            "comments": self.comments,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FundingRequest":
        decided_at = data.get("decidedAt")
        return cls(
            id=data["id"],
            form_data=data.get("formData", {}),
            decision_token=data["decisionToken"],
            status=RequestStatus(data.get("status", "pending")),
            submitted_at=datetime.fromisoformat(data["submittedAt"]),
            submitted_by=data["submittedBy"],
            decided_at=datetime.fromisoformat(decided_at) if decided_at else None,
            comments=data.get("comments"),
        )
