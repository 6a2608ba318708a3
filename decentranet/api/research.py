"""
decentranet/api/research.py
---------------------------
Research contributions and peer review.

Routes
------
- GET  /research/contributions?authorFid=&tags=a,b&status=
- POST /research/contributions
- GET  /research/contributions/{contribution_id}
- GET  /research/contributions/{contribution_id}/reviews
- POST /research/contributions/{contribution_id}/reviews
- POST /research/reviews/{review_id}/vote
- POST /research/contributions/{contribution_id}/farcaster
- POST /research/contributions/{contribution_id}/nominate
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import Field, StrictInt

from ..models import Collaborator, ContributionLink
from ..runtime.research import ResearchService
from ..runtime.votes import tally
from .common import Body, VoteBody, core_errors, current_fid, service

router = APIRouter(prefix="/research", tags=["research"])


def _research(request: Request) -> ResearchService:
    return service(request, "research")


class ContributionCreate(Body):
    title: str = Field(..., max_length=300)
    abstract: str
    content: str
    tags: List[str] = Field(default_factory=list)
    links: List[ContributionLink] = Field(default_factory=list)
    collaborators: List[Collaborator] = Field(default_factory=list)
    author_name: Optional[str] = None


class ReviewCreate(Body):
    content: str
    rating: StrictInt
    reviewer_name: Optional[str] = None


class NominationBody(Body):
    category: Optional[str] = None


class FarcasterHashBody(Body):
    farcaster_hash: str


@router.get("/contributions")
def list_contributions(
    request: Request,
    author_fid: Optional[int] = Query(None, alias="authorFid"),
    tags: Optional[str] = Query(None, description="Comma separated; any match"),
    status_: Optional[str] = Query(None, alias="status"),
):
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    with core_errors():
        items = _research(request).list_contributions(author_fid=author_fid, tags=tag_list, status=status_)
    return {"ok": True, "contributions": [c.to_json_dict() for c in items]}


@router.post("/contributions", status_code=status.HTTP_201_CREATED)
def create_contribution(payload: ContributionCreate, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        contribution = _research(request).create_contribution(
            fid,
            payload.title,
            payload.abstract,
            payload.content,
            tags=payload.tags,
            links=[link.model_dump() for link in payload.links],
            collaborators=[c.model_dump() for c in payload.collaborators],
            author_name=payload.author_name,
        )
    return {"ok": True, "contribution": contribution.to_json_dict()}


@router.get("/contributions/{contribution_id}")
def get_contribution(contribution_id: str, request: Request):
    with core_errors():
        contribution = _research(request).get_contribution(contribution_id)
    return {"ok": True, "contribution": contribution.to_json_dict()}


@router.get("/contributions/{contribution_id}/reviews")
def list_reviews(contribution_id: str, request: Request):
    with core_errors():
        svc = _research(request)
        svc.get_contribution(contribution_id)
        reviews = svc.reviews_for(contribution_id)
    return {"ok": True, "reviews": [{**r.to_json_dict(), **tally(r)} for r in reviews]}


@router.post("/contributions/{contribution_id}/reviews", status_code=status.HTTP_201_CREATED)
def submit_review(contribution_id: str, payload: ReviewCreate, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        svc = _research(request)
        review = svc.submit_review(
            contribution_id,
            fid,
            payload.content,
            payload.rating,
            reviewer_name=payload.reviewer_name,
        )
        contribution = svc.get_contribution(contribution_id)
    return {"ok": True, "review": review.to_json_dict(), "contribution": contribution.to_json_dict()}


@router.post("/reviews/{review_id}/vote")
def vote_review(review_id: str, payload: VoteBody, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        review = _research(request).vote_review(review_id, fid, payload.value)
    return {"ok": True, "id": review.id, **tally(review)}


@router.post("/contributions/{contribution_id}/farcaster")
def link_farcaster_cast(
    contribution_id: str,
    payload: FarcasterHashBody,
    request: Request,
    fid: int = Depends(current_fid),
):
    """Record the hash of a cast the author published for this contribution."""
    with core_errors():
        svc = _research(request)
        contribution = svc.get_contribution(contribution_id)
        if contribution.author_fid != fid:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"only the author of {contribution_id} can link its cast",
            )
        contribution = svc.set_farcaster_hash(contribution_id, payload.farcaster_hash)
    return {"ok": True, "contribution": contribution.to_json_dict()}


@router.post("/contributions/{contribution_id}/nominate")
def nominate_contribution(
    contribution_id: str,
    request: Request,
    payload: Optional[NominationBody] = None,
    fid: int = Depends(current_fid),
):
    with core_errors():
        contribution = _research(request).nominate(contribution_id, fid, payload.category if payload else None)
    return {"ok": True, "contribution": contribution.to_json_dict()}
