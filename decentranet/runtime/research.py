"""
decentranet/runtime/research.py
-------------------------------
Research contributions, peer reviews and review votes.

Reward flow (amounts from the `rewards` config section):

- publishing a contribution pays the author and every collaborator,
- each review pays the reviewer,
- the Nth review (default 3) moves the contribution to `peer_reviewed`;
  if the average rating then reaches the threshold (default 4.0) it is
  `verified`, the author gets a bonus and every reviewer a share,
- an upvote on a review pays the reviewer, funded by the voter's fid,
- a nomination pays the author, funded by the nominator's fid.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from ..errors import DuplicateVote, InvalidValue, NotFound, SelfVote
from ..models import Collaborator, Contribution, ContributionLink, Review, now_ms
from ..storage.record_store import CONTRIBUTIONS, REVIEWS, RecordStore
from .reputation import ReputationBook
from .tokens import TokenLedger
from .votes import VoteLedger

log = logging.getLogger(__name__)

DEFAULT_REWARDS: Dict[str, float] = {
    "contribution_author": 50,
    "contribution_author_reputation": 20,
    "collaborator": 20,
    "collaborator_reputation": 10,
    "review": 15,
    "review_reputation": 10,
    "verified_author": 100,
    "verified_reviewer": 20,
    "upvote": 2,
    "upvote_reputation": 2,
    "nomination": 25,
    "nomination_reputation": 15,
    "reviews_for_peer_review": 3,
    "verify_min_avg_rating": 4.0,
}


def verification_proof(contribution: Contribution) -> str:
    """Deterministic content hash standing in for an on-chain proof."""
    body = json.dumps(
        {
            "id": contribution.id,
            "title": contribution.title,
            "abstract": contribution.abstract,
            "content": contribution.content,
            "authorFid": contribution.author_fid,
            "timestamp": contribution.timestamp,
        },
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")
    return "0x" + hashlib.sha256(body).hexdigest()


class ResearchService:
    def __init__(
        self,
        store: RecordStore,
        tokens: TokenLedger,
        reputation: ReputationBook,
        rewards: Optional[Dict[str, float]] = None,
        votes: Optional[VoteLedger] = None,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.reputation = reputation
        self.rewards = {**DEFAULT_REWARDS, **(rewards or {})}
        self.votes = votes or VoteLedger()

    def _contributions(self) -> List[Contribution]:
        return list(self.store.load(CONTRIBUTIONS))  # type: ignore[arg-type]

    def _reviews(self) -> List[Review]:
        return list(self.store.load(REVIEWS))  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def create_contribution(
        self,
        author_fid: int,
        title: str,
        abstract: str,
        content: str,
        tags: Sequence[str] = (),
        links: Sequence[Dict[str, Any]] = (),
        collaborators: Sequence[Dict[str, Any]] = (),
        author_name: Optional[str] = None,
    ) -> Contribution:
        for name, value in (("title", title), ("abstract", abstract), ("content", content)):
            if not (value or "").strip():
                raise InvalidValue(f"contribution {name} is required")

        contribution = Contribution(
            id=str(uuid.uuid4()),
            title=title.strip(),
            abstract=abstract,
            content=content,
            author_fid=author_fid,
            author_name=author_name,
            timestamp=now_ms(),
            tags=[t for t in tags if t],
            links=[ContributionLink.model_validate(link) for link in links],
            status="published",
            review_status="pending",
            collaborators=[Collaborator.model_validate(c) for c in collaborators],
        )
        contributions = self._contributions()
        contributions.append(contribution)
        self.store.save(CONTRIBUTIONS, contributions)

        field = contribution.tags[0] if contribution.tags else None
        r = self.rewards
        self.reputation.update(author_fid, r["contribution_author_reputation"], "paper", field)
        self.tokens.award(author_fid, r["contribution_author"], "contribution", contribution_id=contribution.id)
        for c in contribution.collaborators:
            self.reputation.update(c.fid, r["collaborator_reputation"], "collaboration", field)
            self.tokens.award(c.fid, r["collaborator"], "contribution", contribution_id=contribution.id)

        log.info("[RESEARCH] contribution %s published by %s", contribution.id, author_fid)
        return contribution

    def get_contribution(self, contribution_id: str) -> Contribution:
        return self.store.get(CONTRIBUTIONS, contribution_id)  # type: ignore[return-value]

    def list_contributions(
        self,
        author_fid: Optional[int] = None,
        tags: Optional[Sequence[str]] = None,
        status: Optional[str] = None,
    ) -> List[Contribution]:
        result = list(reversed(self._contributions()))
        if author_fid:
            result = [c for c in result if c.author_fid == author_fid]
        if tags:
            result = [c for c in result if any(t in c.tags for t in tags)]
        if status:
            result = [c for c in result if c.status == status]
        return sorted(result, key=lambda c: c.timestamp, reverse=True)

    def set_farcaster_hash(self, contribution_id: str, farcaster_hash: str) -> Contribution:
        if not (farcaster_hash or "").strip():
            raise InvalidValue("farcasterHash is required", entity_id=contribution_id)
        contributions = self._contributions()
        contribution = next((c for c in contributions if c.id == contribution_id), None)
        if contribution is None:
            raise NotFound(f"contribution '{contribution_id}' not found", entity_id=contribution_id)
        contribution.farcaster_hash = farcaster_hash.strip()
        self.store.save(CONTRIBUTIONS, contributions)
        return contribution

    def nominate(self, contribution_id: str, nominator_fid: int, category: Optional[str] = None) -> Contribution:
        """
        Nominate someone else's contribution. One nomination per fid;
        the category defaults to the first tag, then "research".
        """
        contributions = self._contributions()
        contribution = next((c for c in contributions if c.id == contribution_id), None)
        if contribution is None:
            raise NotFound(f"contribution '{contribution_id}' not found", entity_id=contribution_id)
        if nominator_fid == contribution.author_fid:
            raise SelfVote(
                f"fid {nominator_fid} cannot nominate their own contribution",
                entity_id=contribution_id,
                voter_id=nominator_fid,
            )
        if nominator_fid in contribution.nominations:
            raise DuplicateVote(
                f"fid {nominator_fid} already nominated {contribution_id}",
                entity_id=contribution_id,
                voter_id=nominator_fid,
            )

        contribution.nominations.append(nominator_fid)
        self.store.save(CONTRIBUTIONS, contributions)

        field = (category or "").strip() or (contribution.tags[0] if contribution.tags else "research")
        r = self.rewards
        self.tokens.award(
            contribution.author_fid,
            r["nomination"],
            "nomination",
            from_fid=nominator_fid,
            contribution_id=contribution_id,
        )
        self.reputation.update(contribution.author_fid, r["nomination_reputation"], "nomination", field)
        log.info("[RESEARCH] contribution %s nominated by %s (%s)", contribution_id, nominator_fid, field)
        return contribution

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def reviews_for(self, contribution_id: str) -> List[Review]:
        reviews = [r for r in reversed(self._reviews()) if r.contribution_id == contribution_id]
        return sorted(reviews, key=lambda r: r.timestamp, reverse=True)

    def submit_review(
        self,
        contribution_id: str,
        reviewer_fid: int,
        content: str,
        rating: int,
        reviewer_name: Optional[str] = None,
    ) -> Review:
        contributions = self._contributions()
        contribution = next((c for c in contributions if c.id == contribution_id), None)
        if contribution is None:
            raise NotFound(f"contribution '{contribution_id}' not found", entity_id=contribution_id)

        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidValue(f"rating must be an integer between 1 and 5, got {rating!r}", entity_id=contribution_id)
        if not (content or "").strip():
            raise InvalidValue("review content is required", entity_id=contribution_id)
        if reviewer_fid == contribution.author_fid:
            raise SelfVote(
                f"fid {reviewer_fid} cannot review their own contribution",
                entity_id=contribution_id,
                voter_id=reviewer_fid,
            )

        reviews = self._reviews()
        existing = next(
            (r for r in reviews if r.contribution_id == contribution_id and r.author_fid == reviewer_fid),
            None,
        )
        if existing is not None:
            raise DuplicateVote(
                f"fid {reviewer_fid} already reviewed {contribution_id} (review {existing.id})",
                entity_id=contribution_id,
                voter_id=reviewer_fid,
            )

        review = Review(
            id=str(uuid.uuid4()),
            contribution_id=contribution_id,
            author_fid=reviewer_fid,
            author_name=reviewer_name or f"User {reviewer_fid}",
            content=content,
            rating=rating,
            timestamp=now_ms(),
        )
        reviews.append(review)
        self.store.save(REVIEWS, reviews)

        contribution.peer_reviews.append(review.id)
        if contribution.review_status == "pending":
            contribution.review_status = "reviewing"

        r = self.rewards
        contribution_reviews = [rv for rv in reviews if rv.contribution_id == contribution_id]
        verified = False
        if len(contribution.peer_reviews) >= int(r["reviews_for_peer_review"]) and contribution.status != "verified":
            contribution.status = "peer_reviewed"
            avg = sum(rv.rating for rv in contribution_reviews) / len(contribution_reviews)
            if avg >= float(r["verify_min_avg_rating"]):
                contribution.verification_proof = verification_proof(contribution)
                contribution.status = "verified"
                contribution.review_status = "approved"
                verified = True
        self.store.save(CONTRIBUTIONS, contributions)

        field = contribution.tags[0] if contribution.tags else None
        self.reputation.update(reviewer_fid, r["review_reputation"], "review", field)
        self.tokens.award(reviewer_fid, r["review"], "review", contribution_id=contribution_id)

        if verified:
            log.info("[RESEARCH] contribution %s verified proof=%s", contribution_id, contribution.verification_proof)
            self.tokens.award(contribution.author_fid, r["verified_author"], "contribution", contribution_id=contribution_id)
            for rv in contribution_reviews:
                self.tokens.award(rv.author_fid, r["verified_reviewer"], "review", contribution_id=contribution_id)

        return review

    def vote_review(self, review_id: str, voter_fid: int, value: int) -> Review:
        reviews = self._reviews()
        review = next((r for r in reviews if r.id == review_id), None)
        if review is None:
            raise NotFound(f"review '{review_id}' not found", entity_id=review_id)

        self.votes.add_vote(review, voter_fid, value)
        self.store.save(REVIEWS, reviews)

        if value == 1:
            r = self.rewards
            self.tokens.award(
                review.author_fid,
                r["upvote"],
                "upvote",
                from_fid=voter_fid,
                contribution_id=review.contribution_id,
            )
            self.reputation.update(review.author_fid, r["upvote_reputation"], "upvote")
        return review
