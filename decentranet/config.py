# decentranet/config.py
import copy
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

CONFIG_FILENAME = "decentranet_config.yaml"

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "storage": {"data_dir": "data"},
    "hubble": {
        "http_url": "http://localhost:2281",
        "timeout_sec": 5.0,
        # Neynar-hosted accounts cannot be written through a local Hubble
        "use_neynar": False,
    },
    "sync": {"delay_sec": 0.5},
    "logging": {"level": "INFO"},
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
    },
    "cors": {
        "origins": [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    },
    "forum": {
        # None = unlimited nesting; 2 = legacy two-level threads
        "thread_depth": None,
        "categories": [
            {"id": "general", "name": "General Discussion", "description": "General topics about DeSci and decentralized research", "order": 1},
            {"id": "research", "name": "Research", "description": "Discuss ongoing research and methodologies", "order": 2},
            {"id": "peer-review", "name": "Peer Review", "description": "Feedback on contributions under review", "order": 3},
            {"id": "funding", "name": "Funding & Grants", "description": "Research funding, grants and token incentives", "order": 4},
            {"id": "governance", "name": "Governance", "description": "Community governance proposals", "order": 5},
        ]
    },
    "rewards": {
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
    },
}

# -------- ENV overrides --------
_ENV_MAP = {
    ("storage", "data_dir"): ("DECENTRANET_DATA_DIR", str),
    ("hubble", "http_url"): ("HUBBLE_HTTP_URL", str),
    ("hubble", "timeout_sec"): ("HUBBLE_TIMEOUT_SEC", float),
    ("hubble", "use_neynar"): ("USE_NEYNAR_API", lambda v: v.strip().lower() in ("1", "true", "yes")),
    ("sync", "delay_sec"): ("DECENTRANET_SYNC_DELAY_SEC", float),
    ("logging", "level"): ("DECENTRANET_LOG_LEVEL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is not None:
            try:
                casted = cast(val)
            except ValueError:
                casted = val
            cfg.setdefault(section, {})
            cfg[section] = dict(cfg[section])
            cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/decentranet_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Also applies ENV overrides for certain keys.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            cfg = _deep_merge(cfg, data)
        except (OSError, yaml.YAMLError) as e:
            logging.getLogger(__name__).warning("ignoring unreadable %s: %s", path, e)

    cfg = _apply_env_overrides(cfg)

    origins = cfg.get("cors", {}).get("origins")
    if isinstance(origins, str):
        cfg["cors"]["origins"] = [origins]

    # relative data dirs resolve against the repo root, not the cwd
    data_dir = str(cfg["storage"].get("data_dir") or "data")
    if not os.path.isabs(data_dir):
        cfg["storage"]["data_dir"] = os.path.join(repo_root, data_dir)

    return cfg


def configure_logging(cfg: Dict[str, Any]) -> None:
    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(asctime)s [%(levelname)s] %(message)s")


# -------- Small helpers used by the app --------
def get_data_dir(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("storage", {}).get("data_dir", "data"))


def get_hubble_url(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("hubble", {}).get("http_url") or "http://localhost:2281").rstrip("/")


def get_hubble_timeout(cfg: Dict[str, Any]) -> float:
    return float(cfg.get("hubble", {}).get("timeout_sec", 5.0))


def neynar_enabled(cfg: Dict[str, Any]) -> bool:
    return bool(cfg.get("hubble", {}).get("use_neynar", False))


def get_sync_delay(cfg: Dict[str, Any]) -> float:
    return float(cfg.get("sync", {}).get("delay_sec", 0.0))


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "0.0.0.0"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 3001))


def get_cors_origins(cfg: Dict[str, Any]) -> List[str]:
    return list(cfg.get("cors", {}).get("origins", []))


def get_categories(cfg: Dict[str, Any]) -> List[Dict[str, Any]]:
    cats = cfg.get("forum", {}).get("categories", [])
    return sorted((dict(c) for c in cats), key=lambda c: int(c.get("order", 0)))


def get_rewards(cfg: Dict[str, Any]) -> Dict[str, float]:
    return dict(cfg.get("rewards", {}))


def get_thread_depth(cfg: Dict[str, Any]) -> Optional[int]:
    depth = cfg.get("forum", {}).get("thread_depth")
    return int(depth) if depth else None
