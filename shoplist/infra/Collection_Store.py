"""Collection persistence helpers (one JSON file per record, named by id)."""

import json
import logging
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from shoplist.infra.Blob_Store import DirectoryBlobStore
from shoplist.utilities.errors import NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SUFFIX = ".json"


def _encode(record: Dict[str, Any]) -> bytes:
    return json.dumps(record, indent=2, ensure_ascii=False).encode("utf-8")


class CollectionStore:
    """Named collections of JSON records stored under ``<collection>/<id>.json``.

    ``list`` never fails because of one bad file: unreadable JSON and records
    the parser rejects are logged and left out. ``save`` overwrites, ``delete``
    of a missing record is a no-op. No ordering is imposed.
    """

    def __init__(self, blobs: DirectoryBlobStore):
        self.blobs = blobs

    @staticmethod
    def _name(collection: str, record_id: str) -> str:
        if not record_id or '/' in record_id or '\\' in record_id or record_id.startswith('.'):
            raise NotFound(collection, record_id)
        return f"{collection}/{record_id}{_SUFFIX}"

    def _decode(self, name: str, raw: bytes, parse: Optional[Callable[[dict], T]]):
        try:
            data = json.loads(raw.decode("utf-8"))
            return parse(data) if parse else data
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping unreadable record {name}: {e}")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed record {name}: {e}")
        return None

    def list(self, collection: str, parse: Optional[Callable[[dict], T]] = None) -> List[Any]:
        records = []
        for name in self.blobs.list(collection):
            if not name.endswith(_SUFFIX):
                continue
            try:
                raw = self.blobs.read(name)
            except NotFound:
                # removed between listing and reading
                continue
            record = self._decode(name, raw, parse)
            if record is not None:
                records.append(record)
        return records

    def get(self, collection: str, record_id: str, parse: Optional[Callable[[dict], T]] = None):
        name = self._name(collection, record_id)
        try:
            raw = self.blobs.read(name)
        except NotFound:
            return None
        return self._decode(name, raw, parse)

    def save(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        self.blobs.write(self._name(collection, record_id), _encode(record))

    def delete(self, collection: str, record_id: str) -> bool:
        try:
            name = self._name(collection, record_id)
        except NotFound:
            return False
        return self.blobs.delete(name)

    # --- single well-known slot (not id-keyed) ------------------------------
    def read_slot(self, slot: str, parse: Optional[Callable[[dict], T]] = None):
        try:
            raw = self.blobs.read(slot)
        except NotFound:
            return None
        return self._decode(slot, raw, parse)

    def write_slot(self, slot: str, record: Dict[str, Any]) -> None:
        self.blobs.write(slot, _encode(record))

    def clear_slot(self, slot: str) -> bool:
        return self.blobs.delete(slot)


class Repository(Generic[T]):
    """Strongly typed view of one collection: records go through ``from_dict``/``to_dict``."""

    def __init__(self, store: CollectionStore, collection: str, from_dict: Callable[[dict], T]):
        self.store = store
        self.collection = collection
        self.from_dict = from_dict

    def all(self) -> List[T]:
        return self.store.list(self.collection, self.from_dict)

    def raw(self) -> List[dict]:
        return self.store.list(self.collection)

    def get(self, record_id: str) -> Optional[T]:
        return self.store.get(self.collection, record_id, self.from_dict)

    def require(self, record_id: str, kind: str) -> T:
        record = self.get(record_id)
        if record is None:
            raise NotFound(kind, record_id)
        return record

    def save(self, record) -> None:
        self.store.save(self.collection, record.id, record.to_dict())

    def delete(self, record_id: str) -> bool:
        return self.store.delete(self.collection, record_id)
