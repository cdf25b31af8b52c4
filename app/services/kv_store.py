# File: app/services/kv_store.py

"""
Per-user key-value store backed by the kv_entries table.

Values are any JSON-serializable object. `list` accepts a glob-style
pattern ("roomify_project_*") and returns the matching keys sorted.
"""

import fnmatch
import json
import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


def normalize_key_listing(result: Any) -> List[str]:
    """
    Collapse the shapes a key listing can come back in to a list of keys.

    Accepts a list of keys, an object with a "keys" list, or a mapping
    whose keys are the store keys. Anything else yields [].
    """
    if isinstance(result, list):
        return [str(k) for k in result]
    if isinstance(result, dict):
        keys = result.get("keys")
        if isinstance(keys, list):
            return [str(k) for k in keys]
        return [str(k) for k in result.keys()]
    return []


class KeyValueStore:
    def __init__(self, db: Session, owner_uuid: str):
        self.db = db
        self.owner_uuid = owner_uuid

    def _entry(self, key: str) -> Optional[KVEntry]:
        stmt = select(KVEntry).where(
            KVEntry.owner_uuid == self.owner_uuid,
            KVEntry.key == key,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get(self, key: str) -> Any:
        """Return the decoded value for `key`, or None when absent."""
        entry = self._entry(key)
        if entry is None:
            return None
        return json.loads(entry.value)

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        entry = self._entry(key)
        if entry is None:
            self.db.add(KVEntry(owner_uuid=self.owner_uuid, key=key, value=encoded))
        else:
            entry.value = encoded
        self.db.commit()

    def list(self, pattern: str = "*") -> List[str]:
        stmt = select(KVEntry.key).where(KVEntry.owner_uuid == self.owner_uuid)
        keys: Iterable[str] = self.db.execute(stmt).scalars().all()
        return sorted(k for k in keys if fnmatch.fnmatchcase(k, pattern))
