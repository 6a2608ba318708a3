"""
decentranet/api/forum.py
------------------------
Forum categories, topics, threaded replies and votes.

Routes
------
- GET  /forum/categories
- GET  /forum/topics?categoryId=...
- POST /forum/topics
- GET  /forum/topics/{topic_id}          (counts a view)
- POST /forum/topics/{topic_id}/vote
- POST /forum/replies
- POST /forum/replies/{reply_id}/vote
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import Field

from ..runtime.forum import ForumService
from ..runtime.threads import thread_depths
from ..runtime.votes import tally
from .common import Body, VoteBody, core_errors, current_fid, service

router = APIRouter(prefix="/forum", tags=["forum"])


def _forum(request: Request) -> ForumService:
    return service(request, "forum")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TopicCreate(Body):
    title: str = Field(..., max_length=300)
    content: str
    category_id: str
    tags: List[str] = Field(default_factory=list)
    author_name: Optional[str] = None


class ReplyCreate(Body):
    topic_id: str
    content: str
    parent_id: Optional[str] = None
    author_name: Optional[str] = None


def _with_tally(record) -> Dict[str, Any]:
    return {**record.to_json_dict(), **tally(record)}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/categories")
def list_categories(request: Request):
    return {"ok": True, "categories": _forum(request).list_categories()}


@router.get("/topics")
def list_topics(request: Request, category_id: Optional[str] = Query(None, alias="categoryId")):
    with core_errors():
        topics = _forum(request).list_topics(category_id)
    return {"ok": True, "topics": [_with_tally(t) for t in topics]}


@router.post("/topics", status_code=status.HTTP_201_CREATED)
def create_topic(payload: TopicCreate, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        topic = _forum(request).create_topic(
            fid,
            payload.title,
            payload.content,
            payload.category_id,
            tags=payload.tags,
            author_name=payload.author_name,
        )
    return {"ok": True, "topic": topic.to_json_dict()}


@router.get("/topics/{topic_id}")
def get_topic(topic_id: str, request: Request):
    with core_errors():
        topic, replies = _forum(request).view_topic(topic_id)
    depths = thread_depths(replies)
    return {
        "ok": True,
        "topic": _with_tally(topic),
        "replies": [{**_with_tally(r), "depth": depths[r.id]} for r in replies],
    }


@router.post("/topics/{topic_id}/vote")
def vote_topic(topic_id: str, payload: VoteBody, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        topic = _forum(request).vote_topic(topic_id, fid, payload.value)
    return {"ok": True, "id": topic.id, **tally(topic)}


@router.post("/replies", status_code=status.HTTP_201_CREATED)
def create_reply(payload: ReplyCreate, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        reply = _forum(request).create_reply(
            payload.topic_id,
            fid,
            payload.content,
            parent_id=payload.parent_id,
            author_name=payload.author_name,
        )
    return {"ok": True, "reply": reply.to_json_dict()}


@router.post("/replies/{reply_id}/vote")
def vote_reply(reply_id: str, payload: VoteBody, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        reply = _forum(request).vote_reply(reply_id, fid, payload.value)
    return {"ok": True, "id": reply.id, **tally(reply)}
