"""
DecentraNet command line.

    decentranet serve [--host 0.0.0.0] [--port 3001]
    decentranet sync [all|topics|research|casts|replies|votes|follows] [--hubble-url URL]

Env toggles (see decentranet.config):
  DECENTRANET_ROOT       -> where decentranet_config.yaml and data/ live
  HUBBLE_HTTP_URL        -> Hubble node HTTP API
  USE_NEYNAR_API=1       -> refuse to sync (Neynar-hosted accounts)
"""

from __future__ import annotations

import argparse
import json
import sys

from . import config as config_mod
from .hubble.client import HubbleClient
from .runtime.farcaster_sync import SYNC_ORDER, FarcasterSync, batch_succeeded
from .settings import settings
from .storage.record_store import RecordStore


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="decentranet", description="DecentraNet node: forum, research and Farcaster sync")
    p.add_argument(
        "--root",
        default=settings.REPO_ROOT,
        help="Directory holding decentranet_config.yaml (default: $DECENTRANET_ROOT or cwd)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: server.host)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: server.port)")

    sync = sub.add_parser("sync", help="Publish local content to a Hubble node")
    sync.add_argument("category", nargs="?", default="all", choices=("all",) + SYNC_ORDER)
    sync.add_argument("--hubble-url", default=None, help="Override hubble.http_url")
    return p.parse_args(argv)


def _serve(cfg, args) -> int:
    import uvicorn

    from .node_api import create_app

    host = args.host or config_mod.get_bind_host(cfg)
    port = args.port or config_mod.get_bind_port(cfg)
    uvicorn.run(create_app(cfg), host=host, port=port, log_level="info")
    return 0


def _sync(cfg, args) -> int:
    store = RecordStore(config_mod.get_data_dir(cfg))
    url = args.hubble_url or config_mod.get_hubble_url(cfg)
    with HubbleClient(url, timeout=config_mod.get_hubble_timeout(cfg)) as hubble:
        syncer = FarcasterSync(
            store,
            hubble,
            delay=config_mod.get_sync_delay(cfg),
            neynar_enabled=config_mod.neynar_enabled(cfg),
        )
        if args.category == "all":
            result = syncer.sync_all()
            ok = result.success
            out = result.to_json_dict()
        else:
            batch = syncer.sync_category(args.category)
            ok = batch_succeeded(batch)
            out = batch.to_json_dict()

    print(json.dumps(out, indent=2))
    return 0 if ok else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = config_mod.load_config(args.root)
    config_mod.configure_logging(cfg)

    if args.command == "serve":
        return _serve(cfg, args)
    if args.command == "sync":
        return _sync(cfg, args)
    print(f"unknown command {args.command}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
