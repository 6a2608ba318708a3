"""
decentranet/runtime/votes.py
----------------------------
Vote ledger for topics, replies and reviews.

Each entity keeps an append-only list of votes; a voter may vote once
per entity and never on their own entity. The score is the plain sum of
vote values, so insertion order never matters.

    ledger = VoteLedger()
    ledger.add_vote(review, voter_id=7, value=1)
    ledger.score(review)        # -> 1
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, TypeVar

from ..errors import DuplicateVote, InvalidValue, SelfVote
from ..models import Entity, Vote, now_ms

VOTE_VALUES = (1, -1)

E = TypeVar("E", bound=Entity)


def score(entity: Entity) -> int:
    return sum(v.value for v in entity.votes)


def tally(entity: Entity) -> Dict[str, int]:
    up = sum(1 for v in entity.votes if v.value == 1)
    down = sum(1 for v in entity.votes if v.value == -1)
    return {"score": up - down, "upvotes": up, "downvotes": down}


def find_vote(entity: Entity, voter_id: int) -> Optional[Vote]:
    for v in entity.votes:
        if v.voter_id == voter_id:
            return v
    return None


class VoteLedger:
    """
    Applies the voting rules to a single entity in memory.

    The ledger never touches storage: callers load the entity, call
    add_vote() and save the collection back. A rejected vote raises
    before anything is appended, so the entity is left unchanged.
    """

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock

    def add_vote(self, entity: E, voter_id: int, value: int) -> E:
        # bool is an int subclass; True must not count as an upvote
        if isinstance(value, bool) or value not in VOTE_VALUES:
            raise InvalidValue(
                f"vote value must be 1 or -1, got {value!r}",
                entity_id=entity.id,
                voter_id=voter_id,
            )

        existing = find_vote(entity, voter_id)
        if existing is not None:
            raise DuplicateVote(
                f"voter {voter_id} already voted {existing.value:+d} on {entity.id}",
                entity_id=entity.id,
                voter_id=voter_id,
            )

        if voter_id == entity.author_fid:
            raise SelfVote(
                f"voter {voter_id} is the author of {entity.id}",
                entity_id=entity.id,
                voter_id=voter_id,
            )

        entity.votes.append(Vote(voter_id=voter_id, value=value, timestamp=self._clock()))
        return entity

    score = staticmethod(score)
    tally = staticmethod(tally)
