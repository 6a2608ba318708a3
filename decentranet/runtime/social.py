"""
decentranet/runtime/social.py
-----------------------------
Local casts and the follow graph.

Both collections are written here and published later by
FarcasterSync (sync_casts / sync_follows); nothing in this module talks
to a hub.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence

from ..errors import InvalidValue
from ..models import Cast, Follow, now_ms
from ..storage.record_store import CASTS, FOLLOWS, RecordStore

log = logging.getLogger(__name__)

MAX_CAST_CHARS = 320


class SocialService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Casts
    # ------------------------------------------------------------------

    def create_cast(
        self,
        fid: int,
        text: str,
        mentions: Sequence[int] = (),
        embeds: Sequence[str] = (),
    ) -> Cast:
        if not (text or "").strip():
            raise InvalidValue("cast text is required")
        if len(text) > MAX_CAST_CHARS:
            raise InvalidValue(f"cast text is {len(text)} characters, limit is {MAX_CAST_CHARS}")

        cast = Cast(
            id=str(uuid.uuid4()),
            fid=fid,
            text=text,
            mentions=list(mentions),
            embeds=[e for e in embeds if e],
            timestamp=now_ms(),
        )
        casts: List[Cast] = list(self.store.load(CASTS))  # type: ignore[arg-type]
        casts.append(cast)
        self.store.save(CASTS, casts)
        log.info("[SOCIAL] cast %s by %s", cast.id, fid)
        return cast

    def list_casts(self, fid: Optional[int] = None) -> List[Cast]:
        casts = [c for c in reversed(self.store.load(CASTS)) if fid is None or c.fid == fid]
        return sorted(casts, key=lambda c: c.timestamp, reverse=True)  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    # Follows
    # ------------------------------------------------------------------

    def _follows(self) -> List[Follow]:
        return list(self.store.load(FOLLOWS))  # type: ignore[arg-type]

    def follow(self, follower_fid: int, following_fid: int) -> Follow:
        """Record a follow; following someone twice returns the existing link."""
        if follower_fid == following_fid:
            raise InvalidValue("cannot follow yourself", fid=follower_fid)

        follows = self._follows()
        for f in follows:
            if f.follower_fid == follower_fid and f.following_fid == following_fid:
                return f

        link = Follow(
            id=str(uuid.uuid4()),
            follower_fid=follower_fid,
            following_fid=following_fid,
            timestamp=now_ms(),
        )
        follows.append(link)
        self.store.save(FOLLOWS, follows)
        log.info("[SOCIAL] %s follows %s", follower_fid, following_fid)
        return link

    def following(self, fid: int) -> List[int]:
        return [f.following_fid for f in self._follows() if f.follower_fid == fid]

    def followers(self, fid: int) -> List[int]:
        return [f.follower_fid for f in self._follows() if f.following_fid == fid]
