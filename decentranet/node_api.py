from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config as config_mod
from .api import forum, research, social, sync, tokens
from .hubble.client import HubbleClient
from .runtime.forum import ForumService
from .runtime.reputation import ReputationBook
from .runtime.research import ResearchService
from .runtime.social import SocialService
from .runtime.tokens import TokenLedger
from .settings import settings
from .storage.record_store import RecordStore

log = logging.getLogger(__name__)


def _hubble_factory(cfg: Dict[str, Any], session: Optional[requests.Session]) -> Callable[[Optional[str]], HubbleClient]:
    default_url = config_mod.get_hubble_url(cfg)
    timeout = config_mod.get_hubble_timeout(cfg)

    def make(url: Optional[str] = None) -> HubbleClient:
        return HubbleClient(url or default_url, timeout=timeout, session=session)

    return make


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    repo_root: Optional[str] = None,
    hubble_session: Optional[requests.Session] = None,
) -> FastAPI:
    """
    Build the DecentraNet API.

    `cfg` defaults to load_config(repo_root or settings.REPO_ROOT).
    `hubble_session` is shared by every HubbleClient the sync routes
    create; when None each client opens and closes its own.
    """
    if cfg is None:
        cfg = config_mod.load_config(repo_root or settings.REPO_ROOT)

    app = FastAPI(title="DecentraNet API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config_mod.get_cors_origins(cfg),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = RecordStore(config_mod.get_data_dir(cfg))
    ledger = TokenLedger(store)
    book = ReputationBook(store)

    app.state.cfg = cfg
    app.state.store = store
    app.state.tokens = ledger
    app.state.reputation = book
    app.state.forum = ForumService(
        store,
        categories=config_mod.get_categories(cfg),
        thread_depth=config_mod.get_thread_depth(cfg),
    )
    app.state.research = ResearchService(store, ledger, book, rewards=config_mod.get_rewards(cfg))
    app.state.social = SocialService(store)
    app.state.hubble_factory = _hubble_factory(cfg, hubble_session)
    app.state.sync_delay = config_mod.get_sync_delay(cfg)
    app.state.neynar_enabled = config_mod.neynar_enabled(cfg)

    # Routers
    app.include_router(forum.router)
    app.include_router(research.router)
    app.include_router(tokens.router)
    app.include_router(social.router)
    if settings.SYNC_ENABLED:
        app.include_router(sync.router)
    else:
        log.info("[SYNC] sync routes disabled by DECENTRANET_SYNC_ENABLED")

    @app.get("/health")
    def health():
        return {"ok": True, "dataDir": str(store.data_dir), "hubble": config_mod.get_hubble_url(cfg)}

    log.info("DecentraNet API ready (data=%s, hubble=%s)", store.data_dir, config_mod.get_hubble_url(cfg))
    return app
