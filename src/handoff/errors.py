"""Errors raised while responding to interactions.

Errors are classified so callers can branch on the kind of failure:

- ``TransportError``: the request to the API failed (network, rate limit,
  permissions, server errors).
- ``PayloadValidationError``: the payload is not valid for the operation
  it was sent with. Fix the payload rather than retrying.
- ``DeserializeError``: a response body could not be parsed into a message.
- ``LastMessageNotTracked``: a tracking-dependent operation was called on a
  handle created without last-message tracking.
"""

from __future__ import annotations

# Discord JSON error codes
UNKNOWN_INTERACTION = 10062
INTERACTION_ALREADY_ACKNOWLEDGED = 40060
INVALID_FORM_BODY = 50035


class HandoffError(Exception):
    pass


class TransportError(HandoffError):
    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        status: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.status = status
        self.code = code


class RateLimited(TransportError):
    def __init__(
        self,
        retry_after: float,
        *,
        method: str | None = None,
        is_global: bool = False,
    ) -> None:
        super().__init__(
            f"rate limited, retry after {retry_after}", method=method, status=429
        )
        self.retry_after = float(retry_after)
        self.is_global = is_global


class InteractionAlreadyAcknowledged(TransportError):
    pass


class UnknownInteraction(TransportError):
    pass


class PayloadValidationError(HandoffError):
    def __init__(self, field: str | None, reason: str) -> None:
        super().__init__(f"{field}: {reason}" if field else reason)
        self.field = field
        self.reason = reason


class DeserializeError(HandoffError):
    def __init__(self, message: str, *, body: bytes | None = None) -> None:
        super().__init__(message)
        self.body = body


class LastMessageNotTracked(HandoffError):
    def __init__(self) -> None:
        super().__init__("tried to use the last message when it isn't tracked")
