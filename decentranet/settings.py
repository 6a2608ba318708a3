from __future__ import annotations

import os


class Settings:
    # Where decentranet_config.yaml and the default data/ dir live
    REPO_ROOT: str = os.getenv("DECENTRANET_ROOT", os.getcwd())

    # Mount the /sync routers (disable on read-only mirrors)
    SYNC_ENABLED: bool = os.getenv("DECENTRANET_SYNC_ENABLED", "1").strip().lower() not in ("0", "false", "no")


settings = Settings()
