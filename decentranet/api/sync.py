"""
decentranet/api/sync.py
-----------------------
Farcaster sync API.

Each call builds a HubbleClient for the requested node (the configured
one unless `hubbleUrl` is given), runs the sync and closes the client.
A node that cannot be reached is reported in the result body, not as an
HTTP error: the sync itself ran and found nothing it could do.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request

from ..runtime.farcaster_sync import FarcasterSync, batch_succeeded
from .common import Body, core_errors

router = APIRouter(prefix="/sync", tags=["sync"])


class SyncRequest(Body):
    hubble_url: Optional[str] = None


def _syncer(request: Request, hubble_url: Optional[str]) -> FarcasterSync:
    state = request.app.state
    return FarcasterSync(
        state.store,
        state.hubble_factory(hubble_url),
        delay=state.sync_delay,
        neynar_enabled=state.neynar_enabled,
    )


# /all is registered before /{category} so it is not captured as a category
@router.post("/all")
def sync_all(request: Request, payload: Optional[SyncRequest] = None):
    syncer = _syncer(request, payload.hubble_url if payload else None)
    try:
        with core_errors():
            result = syncer.sync_all()
    finally:
        syncer.hubble.close()
    return result.to_json_dict()


@router.post("/{category}")
def sync_category(category: str, request: Request, payload: Optional[SyncRequest] = None):
    syncer = _syncer(request, payload.hubble_url if payload else None)
    try:
        with core_errors():
            batch = syncer.sync_category(category)
    finally:
        syncer.hubble.close()
    return {
        "success": batch_succeeded(batch),
        "stats": {"total": batch.total, "synced": batch.synced, "failed": batch.failed},
        "errors": batch.errors,
    }
