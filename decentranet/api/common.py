"""
decentranet/api/common.py
-------------------------
Shared router helpers: caller identity, service lookup on app.state and
translation of core errors into HTTPException.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Type

from fastapi import Header, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel

from ..errors import DecentraNetError, DuplicateVote, InvalidValue, NotFound, PublishError, SelfVote, StoreIOError

FID_HEADER = "X-DecentraNet-Fid"

STATUS_FOR: Dict[Type[DecentraNetError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidValue: status.HTTP_400_BAD_REQUEST,
    DuplicateVote: status.HTTP_409_CONFLICT,
    SelfVote: status.HTTP_403_FORBIDDEN,
    StoreIOError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    PublishError: status.HTTP_502_BAD_GATEWAY,
}


class Body(BaseModel):
    """Request body base: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VoteBody(Body):
    value: StrictInt


def status_for(exc: DecentraNetError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_FOR:
            return STATUS_FOR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http(exc: DecentraNetError) -> HTTPException:
    return HTTPException(status_code=status_for(exc), detail=exc.to_dict())


@contextmanager
def core_errors() -> Iterator[None]:
    """Re-raise any DecentraNetError from the block as an HTTPException."""
    try:
        yield
    except DecentraNetError as e:
        raise to_http(e) from e


async def current_fid(
    x_decentranet_fid: str = Header(
        ...,
        alias=FID_HEADER,
        description="Farcaster id of the caller, supplied by the auth proxy.",
    )
) -> int:
    try:
        fid = int(x_decentranet_fid)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{FID_HEADER} must be a numeric fid",
        ) from None
    if fid <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"{FID_HEADER} must be positive")
    return fid


def service(request: Request, name: str) -> Any:
    return getattr(request.app.state, name)
