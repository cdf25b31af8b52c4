# File: app/services/file_store.py

"""
Per-user file store on local disk.

Paths are POSIX-style and relative to the user's directory under
settings.storage_root, e.g. "roomify-hosting/projects/42/source.png".
"""

import logging
from pathlib import Path, PurePosixPath

from app.core.config import settings

logger = logging.getLogger(__name__)


class FileStore:
    def __init__(self, owner_uuid: str, storage_root: str | Path | None = None):
        base = Path(storage_root or settings.storage_root)
        self.owner_uuid = owner_uuid
        self.root = (base / owner_uuid).resolve()

    def resolve(self, path: str) -> Path:
        """Map a store path to a location on disk, refusing traversal."""
        rel = PurePosixPath(path.strip("/"))
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"Invalid store path: {path}")
        return self.root.joinpath(*rel.parts)

    def mkdir(self, path: str, create_missing_parents: bool = True) -> Path:
        """Create a directory. Existing directories are left alone."""
        target = self.resolve(path)
        target.mkdir(parents=create_missing_parents, exist_ok=True)
        return target

    def write(self, path: str, content: bytes, overwrite: bool = True) -> Path:
        target = self.resolve(path)
        if target.exists() and not overwrite:
            raise FileExistsError(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug("[FILES] Wrote %d bytes to %s", len(content), target)
        return target

    def read(self, path: str) -> bytes:
        return self.resolve(path).read_bytes()

    def exists(self, path: str) -> bool:
        try:
            return self.resolve(path).exists()
        except ValueError:
            return False
