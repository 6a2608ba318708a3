"""
decentranet/runtime/forum.py
----------------------------
Forum topics and threaded replies on top of the record store.

Every public method is one load / modify / save cycle on the
collections it touches; no records are held between calls.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import InvalidValue, NotFound
from ..models import Reply, Topic, now_ms
from ..storage.record_store import REPLIES, TOPICS, RecordStore
from .threads import sort_thread
from .votes import VoteLedger

log = logging.getLogger(__name__)


def _new_id(prefix: str, ts: int) -> str:
    return f"{prefix}-{ts}-{secrets.token_hex(3)}"


def _activity(topic: Topic) -> int:
    return topic.last_reply_timestamp or topic.timestamp


class ForumService:
    def __init__(
        self,
        store: RecordStore,
        categories: Sequence[Dict[str, Any]] = (),
        votes: Optional[VoteLedger] = None,
        thread_depth: Optional[int] = None,
    ) -> None:
        self.store = store
        self.categories = list(categories)
        self.votes = votes or VoteLedger()
        self.thread_depth = thread_depth

    # ------------------------------------------------------------------
    # Categories / topics
    # ------------------------------------------------------------------

    def _topics(self) -> List[Topic]:
        return list(self.store.load(TOPICS))  # type: ignore[arg-type]

    def _replies(self) -> List[Reply]:
        return list(self.store.load(REPLIES))  # type: ignore[arg-type]

    @staticmethod
    def _find(records, record_id: str, kind: str):
        for rec in records:
            if rec.id == record_id:
                return rec
        raise NotFound(f"{kind} '{record_id}' not found", entity_id=record_id)

    def list_categories(self) -> List[Dict[str, Any]]:
        counts: Dict[str, int] = {}
        for t in self._topics():
            counts[t.category_id] = counts.get(t.category_id, 0) + 1
        return [{**c, "topicCount": counts.get(c["id"], 0)} for c in self.categories]

    def list_topics(self, category_id: Optional[str] = None) -> List[Topic]:
        topics = self._topics()
        if category_id:
            topics = [t for t in topics if t.category_id == category_id]
        topics.sort(key=_activity, reverse=True)
        # stable: pinned topics float up, activity order kept within each group
        topics.sort(key=lambda t: not t.is_pinned)
        return topics

    def create_topic(
        self,
        author_fid: int,
        title: str,
        content: str,
        category_id: str,
        tags: Sequence[str] = (),
        author_name: Optional[str] = None,
    ) -> Topic:
        if not (title or "").strip():
            raise InvalidValue("topic title is required")
        if not (content or "").strip():
            raise InvalidValue("topic content is required")
        if self.categories and category_id not in {c["id"] for c in self.categories}:
            raise NotFound(f"category '{category_id}' not found", entity_id=category_id)

        ts = now_ms()
        topic = Topic(
            id=_new_id("topic", ts),
            title=title.strip(),
            content=content,
            author_fid=author_fid,
            author_name=author_name,
            category_id=category_id,
            timestamp=ts,
            tags=[t.strip() for t in tags if t and t.strip()],
        )
        topics = self._topics()
        topics.append(topic)
        self.store.save(TOPICS, topics)
        log.info("[FORUM] topic %s created by %s in %s", topic.id, author_fid, category_id)
        return topic

    def view_topic(self, topic_id: str) -> Tuple[Topic, List[Reply]]:
        """Return the topic with its replies in thread order; counts one view."""
        topics = self._topics()
        topic = self._find(topics, topic_id, "topic")
        topic.view_count += 1
        self.store.save(TOPICS, topics)

        replies = [r for r in self._replies() if r.topic_id == topic_id]
        return topic, sort_thread(replies, max_depth=self.thread_depth)

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def create_reply(
        self,
        topic_id: str,
        author_fid: int,
        content: str,
        parent_id: Optional[str] = None,
        author_name: Optional[str] = None,
        is_answer: bool = False,
    ) -> Reply:
        if not (content or "").strip():
            raise InvalidValue("reply content is required", entity_id=topic_id)

        topics = self._topics()
        topic = self._find(topics, topic_id, "topic")
        if topic.is_locked:
            raise InvalidValue(f"topic '{topic_id}' is locked", entity_id=topic_id)

        replies = self._replies()
        if parent_id and parent_id != topic_id:
            parent = next((r for r in replies if r.id == parent_id), None)
            if parent is None or parent.topic_id != topic_id:
                raise NotFound(
                    f"parent reply '{parent_id}' not found in topic '{topic_id}'",
                    entity_id=parent_id,
                )

        ts = now_ms()
        reply = Reply(
            id=_new_id("reply", ts),
            topic_id=topic_id,
            content=content,
            author_fid=author_fid,
            author_name=author_name,
            timestamp=ts,
            # a reply addressed to the topic itself is top-level
            parent_id=parent_id if parent_id and parent_id != topic_id else None,
            is_answer=is_answer,
        )
        replies.append(reply)
        self.store.save(REPLIES, replies)

        topic.reply_count += 1
        topic.last_reply_timestamp = ts
        topic.last_reply_author_fid = author_fid
        topic.last_reply_author_name = author_name
        self.store.save(TOPICS, topics)
        log.info("[FORUM] reply %s on %s by %s", reply.id, topic_id, author_fid)
        return reply

    # ------------------------------------------------------------------
    # Votes
    # ------------------------------------------------------------------

    def vote_topic(self, topic_id: str, voter_fid: int, value: int) -> Topic:
        topics = self._topics()
        topic = self._find(topics, topic_id, "topic")
        self.votes.add_vote(topic, voter_fid, value)
        self.store.save(TOPICS, topics)
        return topic

    def vote_reply(self, reply_id: str, voter_fid: int, value: int) -> Reply:
        replies = self._replies()
        reply = self._find(replies, reply_id, "reply")
        self.votes.add_vote(reply, voter_fid, value)
        self.store.save(REPLIES, replies)
        return reply
