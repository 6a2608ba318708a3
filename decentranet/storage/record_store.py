from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Type, Union

from pydantic import ValidationError

from ..errors import NotFound, StoreIOError
from ..models import (
    Cast,
    Contribution,
    Follow,
    Record,
    Reply,
    Review,
    TokenTransaction,
    Topic,
    UserReputation,
)

log = logging.getLogger(__name__)

TOPICS = "forum-topics"
REPLIES = "forum-replies"
CONTRIBUTIONS = "research-contributions"
REVIEWS = "research-reviews"
TRANSACTIONS = "token-transactions"
REPUTATION = "reputation"
CASTS = "casts"
FOLLOWS = "follows"

# collection name -> record type; each collection is <name>.json under data_dir
COLLECTIONS: Dict[str, Type[Record]] = {
    TOPICS: Topic,
    REPLIES: Reply,
    CONTRIBUTIONS: Contribution,
    REVIEWS: Review,
    TRANSACTIONS: TokenTransaction,
    REPUTATION: UserReputation,
    CASTS: Cast,
    FOLLOWS: Follow,
}


class RecordStore:
    """
    Flat JSON record store: one file per collection, each a JSON list.

    Single-writer only. Every save() rewrites the whole file (temp file +
    replace), so a read-modify-write is a critical section owned by the
    caller. Nothing is cached between calls.
    """

    def __init__(self, data_dir: Union[str, Path] = "data") -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        self._model_for(collection)
        return self.data_dir / f"{collection}.json"

    def _model_for(self, collection: str) -> Type[Record]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise NotFound(f"unknown collection '{collection}'", collection=collection) from None

    def load(self, collection: str) -> List[Record]:
        model = self._model_for(collection)
        path = self.path_for(collection)
        if not path.exists():
            return []

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreIOError(f"cannot read collection '{collection}': {e}", collection=collection) from e
        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreIOError(f"collection '{collection}' is not valid JSON: {e}", collection=collection) from e
        if not isinstance(data, list):
            raise StoreIOError(
                f"collection '{collection}' must hold a JSON list, got {type(data).__name__}",
                collection=collection,
            )

        records: List[Record] = []
        for index, item in enumerate(data):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                raise StoreIOError(
                    f"record {index} of '{collection}' does not match {model.__name__}: {e.errors()[0]['msg']}",
                    collection=collection,
                    index=index,
                ) from e
        return records

    def save(self, collection: str, records: Sequence[Record]) -> None:
        model = self._model_for(collection)
        for index, rec in enumerate(records):
            if not isinstance(rec, model):
                raise StoreIOError(
                    f"record {index} is a {type(rec).__name__}, '{collection}' holds {model.__name__}",
                    collection=collection,
                    index=index,
                )

        path = self.path_for(collection)
        payload = json.dumps([rec.to_json_dict() for rec in records], indent=2, ensure_ascii=False)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StoreIOError(f"cannot write collection '{collection}': {e}", collection=collection) from e
        log.debug("saved %d records to %s", len(records), path)

    def get(self, collection: str, record_id: str) -> Record:
        for rec in self.load(collection):
            if rec.id == record_id:
                return rec
        raise NotFound(f"{collection} record '{record_id}' not found", collection=collection, entity_id=record_id)
