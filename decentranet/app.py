"""
decentranet/app.py
------------------
Thin entrypoint for running the DecentraNet FastAPI app via:

    uvicorn decentranet.app:app

All real route wiring lives in decentranet.node_api.
"""

from .config import configure_logging, load_config
from .node_api import create_app
from .settings import settings

cfg = load_config(settings.REPO_ROOT)
configure_logging(cfg)
app = create_app(cfg)


if __name__ == "__main__":
    # Convenience for: python -m decentranet.app
    import uvicorn

    from .config import get_bind_host, get_bind_port

    uvicorn.run(app, host=get_bind_host(cfg), port=get_bind_port(cfg))
