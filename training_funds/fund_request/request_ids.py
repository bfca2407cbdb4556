"""
Request Identifier Module

Allocates request ids of the form ``<username>-<YYYYMMDD>-<sequence>``
(e.g. ``alice-20250315-2``) and generates decision tokens.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Callable

from ..exceptions import ValidationError
from .request_store import FundingRequestStore

logger = logging.getLogger(__name__)

# 32 random bytes, hex encoded
TOKEN_BYTES = 32


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_decision_token() -> str:
    """Generate an unguessable token for the decision link."""
    return secrets.token_hex(TOKEN_BYTES)


def requester_local_part(email: str) -> str:
    """Return the part of an email address before the first ``@``.

    Raises:
        ValidationError: If the address has no ``@``
    """
    if not email or "@" not in email:
        raise ValidationError(f"Invalid requester email: {email!r}")
    return email.split("@", 1)[0]


class RequestIdAllocator:
    """Allocates unique, sortable request ids per requester per day."""

    def __init__(self, store: FundingRequestStore, clock: Callable[[], datetime] = utc_now):
        """Initialize the allocator.

        Args:
            store: Store adapter holding the sequence counters
            clock: Returns the current time (UTC is used for the date part)
        """
        self.store = store
        self.clock = clock

    def allocate(self, email: str) -> str:
        """Allocate the next request id for a requester.

        Args:
            email: Requester email address

        Returns:
            Request id such as ``alice-20250315-1``
        """
        local_part = requester_local_part(email)
        date_str = self.clock().astimezone(timezone.utc).strftime("%Y%m%d")

        sequence = self.store.next_sequence(local_part, date_str)
        request_id = f"{local_part}-{date_str}-{sequence}"

        logger.debug(f"Allocated request id {request_id}")
        return request_id
