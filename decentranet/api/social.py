"""
decentranet/api/social.py
-------------------------
Local casts and follows, queued for publishing by /sync/casts and
/sync/follows.

Routes
------
- GET  /casts?fid=
- POST /casts
- POST /users/follow
- GET  /users/{fid}/following
- GET  /users/{fid}/followers
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import Field

from ..runtime.social import MAX_CAST_CHARS, SocialService
from .common import Body, core_errors, current_fid, service

router = APIRouter(tags=["social"])


def _social(request: Request) -> SocialService:
    return service(request, "social")


class CastCreate(Body):
    text: str = Field(..., max_length=MAX_CAST_CHARS)
    mentions: List[int] = Field(default_factory=list)
    embeds: List[str] = Field(default_factory=list)


class FollowBody(Body):
    target_fid: int = Field(..., gt=0)


@router.get("/casts")
def list_casts(request: Request, fid: Optional[int] = Query(None)):
    with core_errors():
        casts = _social(request).list_casts(fid)
    return {"ok": True, "casts": [c.to_json_dict() for c in casts]}


@router.post("/casts", status_code=status.HTTP_201_CREATED)
def create_cast(payload: CastCreate, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        cast = _social(request).create_cast(fid, payload.text, payload.mentions, payload.embeds)
    return {"ok": True, "cast": cast.to_json_dict()}


@router.post("/users/follow")
def follow(payload: FollowBody, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        svc = _social(request)
        link = svc.follow(fid, payload.target_fid)
        following = svc.following(fid)
    return {"ok": True, "follow": link.to_json_dict(), "following": len(following)}


@router.get("/users/{fid}/following")
def get_following(fid: int, request: Request):
    with core_errors():
        fids = _social(request).following(fid)
    return {"ok": True, "fid": fid, "following": fids}


@router.get("/users/{fid}/followers")
def get_followers(fid: int, request: Request):
    with core_errors():
        fids = _social(request).followers(fid)
    return {"ok": True, "fid": fid, "followers": fids}
