from .client import HubbleClient

__all__ = ["HubbleClient"]
