"""
decentranet/errors.py
---------------------
Error taxonomy shared by the store, the runtime services and the API.

Every error carries enough context (collection, entity id, voter id)
for the caller to build an actionable message. Routers translate these
into HTTP status codes in decentranet.api.common.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DecentraNetError(Exception):
    """Base class for all core failures."""

    code = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.context}


class InvalidValue(DecentraNetError, ValueError):
    code = "invalid_value"


class DuplicateVote(DecentraNetError):
    code = "duplicate_vote"


class SelfVote(DecentraNetError):
    code = "self_vote"


class NotFound(DecentraNetError, LookupError):
    code = "not_found"


class StoreIOError(DecentraNetError):
    code = "store_io_error"


class PublishError(DecentraNetError):
    """One failed call to the external publish endpoint."""

    code = "publish_error"

    def __init__(self, message: str, *, endpoint: Optional[str] = None, status: Optional[int] = None, **context: Any) -> None:
        super().__init__(message, endpoint=endpoint, status=status, **context)
        self.endpoint = endpoint
        self.status = status


class HubbleUnavailable(PublishError):
    code = "hubble_unavailable"
