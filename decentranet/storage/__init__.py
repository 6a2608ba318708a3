from .record_store import COLLECTIONS, RecordStore

__all__ = ["COLLECTIONS", "RecordStore"]
