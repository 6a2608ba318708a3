"""
decentranet/runtime/farcaster_sync.py
-------------------------------------
Publishes local content to a Farcaster Hubble node.

Each category is one batch: load the collection, publish every item that
is not yet synced through run_batch(), write the returned hashes back
and save the collection once. Failures are per item and end up in the
batch result; the node being down is reported, never papered over.

Category order in sync_all() matters: topics and replies must carry a
hash before votes on them can be published as reactions.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import NotFound, PublishError
from ..hubble.client import HubbleClient
from ..models import CategoryStats, Cast, Contribution, Entity, Follow, Reply, SyncAllResult, SyncBatchResult, Topic, Vote
from ..storage.record_store import CASTS, CONTRIBUTIONS, FOLLOWS, REPLIES, TOPICS, RecordStore
from .sync_report import looks_synced, run_batch
from .threads import sort_thread

log = logging.getLogger(__name__)

NEYNAR_MESSAGE = (
    "Sync to Farcaster is not available when using Neynar API. "
    "Use Neynar SDK or API directly to post content."
)

SYNC_ORDER = ("casts", "topics", "research", "replies", "votes", "follows")


def _clip(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def topic_cast_text(topic: Topic) -> str:
    return f"{topic.title}\n\n{_clip(topic.content, 280)}"


def contribution_cast_text(contribution: Contribution) -> str:
    text = f"Research: {contribution.title}\n\n{_clip(contribution.abstract, 240)}"
    if contribution.tags:
        text += "\n\nTags: " + ", ".join(contribution.tags)
    return text


def batch_succeeded(batch: SyncBatchResult) -> bool:
    """Something was published, or there was nothing to publish."""
    return batch.synced > 0 or (batch.total == 0 and not batch.errors)


class FarcasterSync:
    def __init__(
        self,
        store: RecordStore,
        hubble: HubbleClient,
        delay: float = 0.0,
        neynar_enabled: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.hubble = hubble
        self.delay = float(delay)
        self.neynar_enabled = neynar_enabled
        self._sleep = sleep
        self._handlers: Dict[str, Callable[[], SyncBatchResult]] = {
            "casts": self.sync_casts,
            "topics": self.sync_topics,
            "research": self.sync_research,
            "replies": self.sync_replies,
            "votes": self.sync_votes,
            "follows": self.sync_follows,
        }

    # ------------------------------------------------------------------
    # Preflight
    # ------------------------------------------------------------------

    def preflight(self) -> Optional[str]:
        """Return a reason the node cannot be synced to, or None."""
        if self.neynar_enabled:
            return NEYNAR_MESSAGE
        try:
            self.hubble.info()
        except PublishError as e:
            return e.message
        return None

    def _batch(self, category: str, items, publish, **kw) -> SyncBatchResult:
        return run_batch(category, items, publish, delay=self.delay, sleep=self._sleep, **kw)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def sync_topics(self) -> SyncBatchResult:
        topics: List[Topic] = self.store.load(TOPICS)  # type: ignore[assignment]

        def publish(topic: Topic) -> str:
            return self.hubble.submit_cast(topic.author_fid, topic_cast_text(topic), label=f"topic {topic.id}")

        def record(topic: Topic, hash_value: str) -> None:
            topic.farcaster_hash = hash_value

        result = self._batch("topics", topics, publish, is_synced=lambda t: looks_synced(t.farcaster_hash), on_published=record)
        self.store.save(TOPICS, topics)
        return result

    def sync_research(self) -> SyncBatchResult:
        contributions: List[Contribution] = self.store.load(CONTRIBUTIONS)  # type: ignore[assignment]

        def publish(c: Contribution) -> str:
            return self.hubble.submit_cast(c.author_fid, contribution_cast_text(c), label=f"contribution {c.id}")

        def record(c: Contribution, hash_value: str) -> None:
            c.farcaster_hash = hash_value

        result = self._batch(
            "research", contributions, publish, is_synced=lambda c: looks_synced(c.farcaster_hash), on_published=record
        )
        self.store.save(CONTRIBUTIONS, contributions)
        return result

    def sync_casts(self) -> SyncBatchResult:
        casts: List[Cast] = self.store.load(CASTS)  # type: ignore[assignment]

        def publish(cast: Cast) -> str:
            return self.hubble.submit_cast(cast.fid, cast.text, cast.mentions, cast.embeds, label=f"cast {cast.id}")

        def record(cast: Cast, hash_value: str) -> None:
            cast.hash = hash_value

        result = self._batch("casts", casts, publish, is_synced=lambda c: looks_synced(c.hash), on_published=record)
        self.store.save(CASTS, casts)
        return result

    def sync_replies(self) -> SyncBatchResult:
        topics = {t.id: t for t in self.store.load(TOPICS)}
        replies: List[Reply] = self.store.load(REPLIES)  # type: ignore[assignment]
        by_id = {r.id: r for r in replies}
        # parents before children so a child sees its parent's fresh hash
        ordered = sort_thread(replies)

        def publish(reply: Reply) -> str:
            # a parent_id naming the topic, or no reply we know, means top-level
            parent = by_id.get(reply.parent_id) if reply.parent_id and reply.parent_id != reply.topic_id else None
            if parent is not None and parent.id != reply.id:
                if not looks_synced(parent.farcaster_hash):
                    raise PublishError(f"Parent reply {reply.parent_id} not yet synced for {reply.id}")
                target = {"fid": parent.author_fid, "hash": parent.farcaster_hash}
            else:
                topic = topics.get(reply.topic_id)
                if topic is None:
                    raise PublishError(f"Topic {reply.topic_id} not found for reply {reply.id}")
                if not looks_synced(topic.farcaster_hash):
                    raise PublishError(f"Topic {reply.topic_id} not yet synced for reply {reply.id}")
                target = {"fid": topic.author_fid, "hash": topic.farcaster_hash}
            return self.hubble.submit_cast(reply.author_fid, reply.content, parent=target, label=f"reply {reply.id}")

        def record(reply: Reply, hash_value: str) -> None:
            reply.farcaster_hash = hash_value

        result = self._batch("replies", ordered, publish, is_synced=lambda r: looks_synced(r.farcaster_hash), on_published=record)
        self.store.save(REPLIES, replies)
        return result

    def sync_votes(self) -> SyncBatchResult:
        """Votes on topics and replies become Farcaster reactions."""
        items: List[Tuple[Entity, Vote]] = []
        for collection in (TOPICS, REPLIES):
            for entity in self.store.load(collection):
                items.extend((entity, vote) for vote in entity.votes)  # type: ignore[attr-defined]

        def publish(item: Tuple[Entity, Vote]) -> str:
            entity, vote = item
            target_hash = getattr(entity, "farcaster_hash", None)
            if not looks_synced(target_hash):
                raise PublishError(f"Vote from user {vote.voter_id} targets {entity.id}, which is not yet synced")
            return self.hubble.submit_reaction(
                vote.voter_id,
                vote.value,
                {"fid": entity.author_fid, "hash": target_hash},
                label=f"vote on {entity.id}",
            )

        return self._batch("votes", items, publish, describe=lambda item: f"vote {item[1].voter_id}->{item[0].id}")

    def sync_follows(self) -> SyncBatchResult:
        follows: List[Follow] = self.store.load(FOLLOWS)  # type: ignore[assignment]

        def publish(f: Follow) -> str:
            return self.hubble.submit_link(f.follower_fid, f.following_fid, label=f"follow {f.follower_fid}->{f.following_fid}")

        def record(f: Follow, hash_value: str) -> None:
            f.synced = True
            f.farcaster_hash = hash_value

        result = self._batch("follows", follows, publish, is_synced=lambda f: f.synced, on_published=record)
        self.store.save(FOLLOWS, follows)
        return result

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def sync_category(self, category: str) -> SyncBatchResult:
        handler = self._handlers.get(category)
        if handler is None:
            raise NotFound(f"unknown sync category '{category}'", entity_id=category)
        reason = self.preflight()
        if reason:
            log.warning("[SYNC] %s skipped: %s", category, reason)
            return SyncBatchResult(category=category, errors=[reason])
        return handler()

    def sync_all(self) -> SyncAllResult:
        result = SyncAllResult(stats={category: CategoryStats() for category in SYNC_ORDER})

        reason = self.preflight()
        if reason:
            log.warning("[SYNC] sync-all skipped: %s", reason)
            result.errors.append(reason)
            return result

        batches = [self._handlers[category]() for category in SYNC_ORDER]
        for batch in batches:
            result.add(batch)
        result.success = any(b.synced > 0 for b in batches)
        log.info(
            "[SYNC] sync-all done: %s",
            ", ".join(f"{b.category} {b.synced}/{b.total}" for b in batches),
        )
        return result
