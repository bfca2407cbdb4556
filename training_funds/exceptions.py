"""
Funding Request Errors

Typed errors raised by the workflow engine. Routes translate them into
HTTP responses using ``http_status``.
"""


class FundingRequestError(Exception):
    """Base class for all workflow errors."""

    http_status = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or "")
        self.message = message or (self.__class__.__doc__ or "").strip()


class ValidationError(FundingRequestError):
    """Submitted fields are invalid."""

    http_status = 400


class MissingFields(ValidationError):
    """Missing required fields."""

    def __init__(self, fields: list[str]):
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = fields


class InvalidDecision(ValidationError):
    """Invalid decision value."""

    def __init__(self, value: str | None):
        super().__init__(f"Invalid decision value: {value!r}")
        self.value = value


class CommentsRequired(ValidationError):
    """Please provide comments when sending back or rejecting a request."""


class RequestNotFound(FundingRequestError):
    """Request not found."""

    http_status = 404

    def __init__(self, request_id: str):
        super().__init__(f"Request not found: {request_id}")
        self.request_id = request_id


class InvalidToken(FundingRequestError):
    """Invalid token."""

    http_status = 403


class AlreadyDecided(FundingRequestError):
    """The request has already been processed."""

    http_status = 400

    def __init__(self, request_id: str, status: str):
        super().__init__(f"Request {request_id} has already been {status.replace('_', ' ')}")
        self.request_id = request_id
        self.status = status


class DuplicateRequestError(FundingRequestError):
    """A request with this id already exists."""

    http_status = 409

    def __init__(self, request_id: str):
        super().__init__(f"Request already exists: {request_id}")
        self.request_id = request_id


class StoreUnavailable(FundingRequestError):
    """The request store is unavailable."""

    http_status = 503


class NotifierUnavailable(FundingRequestError):
    """Failed to send notification email."""

    http_status = 502


class ConfigurationError(FundingRequestError):
    """The service is not configured correctly."""

    http_status = 500
