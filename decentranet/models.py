"""
decentranet/models.py
---------------------
Typed records for every collection the node persists.

Records are pydantic models. Python attributes are snake_case; the JSON
files keep the camelCase keys the web frontend reads and writes, e.g.

    {"id": "reply-1712-ab12", "topicId": "topic-1", "authorFid": 42,
     "timestamp": 1712000000000, "parentId": "reply-1700-ff00",
     "votes": [{"userId": 7, "value": 1, "timestamp": 1712000100000}]}

All timestamps are integer milliseconds since the epoch.
"""

from __future__ import annotations

import time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    return int(time.time() * 1000)


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Votes and votable entities
# ---------------------------------------------------------------------------


class Vote(Record):
    voter_id: int = Field(alias="userId")
    value: Literal[1, -1]
    timestamp: int


class Entity(Record):
    """Common shape of a topic, reply or review."""

    id: str
    author_fid: int
    content: str
    timestamp: int
    votes: List[Vote] = Field(default_factory=list)


class Topic(Entity):
    title: str
    category_id: str
    author_name: Optional[str] = None
    last_reply_timestamp: Optional[int] = None
    last_reply_author_fid: Optional[int] = None
    last_reply_author_name: Optional[str] = None
    reply_count: int = 0
    view_count: int = 0
    is_pinned: bool = False
    is_locked: bool = False
    tags: List[str] = Field(default_factory=list)
    farcaster_hash: Optional[str] = None


class Reply(Entity):
    topic_id: str
    author_name: Optional[str] = None
    parent_id: Optional[str] = None
    is_answer: bool = False
    farcaster_hash: Optional[str] = None


class Review(Entity):
    contribution_id: str
    author_fid: int = Field(alias="reviewerFid")
    author_name: Optional[str] = Field(default=None, alias="reviewerName")
    rating: int = Field(ge=1, le=5)
    verification_proof: Optional[str] = None


# ---------------------------------------------------------------------------
# Research contributions
# ---------------------------------------------------------------------------


class ContributionLink(Record):
    type: Literal["paper", "dataset", "code", "external"]
    url: str
    description: Optional[str] = None


class Collaborator(Record):
    fid: int
    name: Optional[str] = None
    role: str


ContributionStatus = Literal["draft", "published", "peer_reviewed", "verified"]
ReviewStatus = Literal["pending", "reviewing", "approved", "rejected"]


class Contribution(Record):
    id: str
    title: str
    abstract: str
    content: str
    author_fid: int
    author_name: Optional[str] = None
    timestamp: int
    tags: List[str] = Field(default_factory=list)
    links: List[ContributionLink] = Field(default_factory=list)
    status: ContributionStatus = "published"
    review_status: Optional[ReviewStatus] = None
    peer_reviews: List[str] = Field(default_factory=list)
    nominations: List[int] = Field(default_factory=list)
    collaborators: List[Collaborator] = Field(default_factory=list)
    verification_proof: Optional[str] = None
    farcaster_hash: Optional[str] = None


# ---------------------------------------------------------------------------
# Tokens and reputation
# ---------------------------------------------------------------------------

TokenReason = Literal["contribution", "review", "upvote", "nomination", "grant", "other"]
TOKEN_REASONS = ("contribution", "review", "upvote", "nomination", "grant", "other")


class TokenTransaction(Record):
    id: str
    from_fid: Optional[int] = None
    to_fid: int
    amount: float = Field(gt=0)
    reason: TokenReason
    contribution_id: Optional[str] = None
    timestamp: int
    tx_hash: Optional[str] = None


class SpecializationScore(Record):
    field: str
    score: float = 0.0


class ContributionStat(Record):
    type: str
    count: int = 0
    score: float = 0.0


class UserReputation(Record):
    fid: int
    reputation_score: float = 0.0
    specializations: List[SpecializationScore] = Field(default_factory=list)
    contributions: List[ContributionStat] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return str(self.fid)


# ---------------------------------------------------------------------------
# Social graph / casts
# ---------------------------------------------------------------------------


class Cast(Record):
    id: str
    fid: int
    text: str
    mentions: List[int] = Field(default_factory=list)
    embeds: List[str] = Field(default_factory=list)
    timestamp: int
    hash: Optional[str] = None


class Follow(Record):
    id: str
    follower_fid: int
    following_fid: int
    timestamp: int
    synced: bool = False
    farcaster_hash: Optional[str] = None


# ---------------------------------------------------------------------------
# Sync reporting
# ---------------------------------------------------------------------------


class SyncBatchResult(Record):
    category: str
    total: int = 0
    synced: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class CategoryStats(Record):
    total: int = 0
    synced: int = 0
    failed: int = 0


class SyncAllResult(Record):
    success: bool = False
    stats: Dict[str, CategoryStats] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)

    def add(self, batch: SyncBatchResult) -> None:
        self.stats[batch.category] = CategoryStats(
            total=batch.total, synced=batch.synced, failed=batch.failed
        )
        self.errors.extend(batch.errors)
