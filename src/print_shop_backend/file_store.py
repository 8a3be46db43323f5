"""
Uploaded file persistence: blobs under the upload directory, metadata in ``files.json``.

A blob and its metadata record are written one after the other with no
transactional link. A crash in between leaves an orphaned blob, which the
next "delete all" does not see because it only walks metadata records.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .json_store import JsonListStore, Record
from .models import FileRecord
from .utils import ensure_directory, epoch_millis, generate_blob_name

logger = logging.getLogger(__name__)

PUBLIC_UPLOAD_PREFIX = "/uploads"


class FileStore:
    """
    Metadata list plus blob directory for uploaded documents.

    Attributes:
        upload_root: Directory that holds the blobs
        max_upload_bytes: Per-file size ceiling enforced by the upload route
    """

    def __init__(
        self,
        metadata_path: Path,
        upload_root: Path,
        max_upload_bytes: int,
        clock: Callable[[], int] = epoch_millis,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = JsonListStore(metadata_path, label="files")
        self.upload_root = ensure_directory(upload_root)
        self.max_upload_bytes = max_upload_bytes
        self._clock = clock
        self._rng = rng or random.Random()

    @property
    def path(self) -> Path:
        return self._store.path

    def new_blob_path(self, filename: str) -> Tuple[str, Path]:
        """Reserve a unique blob name for ``filename``; returns ``(name, path)``."""
        name = generate_blob_name(filename, clock=self._clock, rng=self._rng)
        return name, self.upload_root / name

    def build_record(self, filename: str, size: int, content_type: str, blob_name: str) -> FileRecord:
        return FileRecord(
            name=filename,
            size=size,
            type=content_type,
            path=f"{PUBLIC_UPLOAD_PREFIX}/{blob_name}",
            serverPath=str(self.upload_root / blob_name),
        )

    def add_records(self, records: List[FileRecord]) -> List[Record]:
        """Append metadata for freshly written blobs, preserving submission order."""
        new_entries = [record.model_dump(by_alias=True) for record in records]

        def _extend(existing: List[Record]) -> List[Record]:
            existing.extend(new_entries)
            return new_entries

        added = self._store.mutate(_extend)
        logger.info(f"Files uploaded successfully: {len(added)}")
        return added

    def discard_blob(self, blob_path: Path) -> None:
        try:
            blob_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error(f"Error discarding partial upload {blob_path}: {exc}")

    def list_files(self) -> List[Record]:
        return self._store.read_all()

    def delete_all(self) -> int:
        """
        Delete every referenced blob, then empty the metadata list.

        Individual blob failures are logged and skipped; the metadata list is
        cleared regardless. Returns the number of blobs actually removed.
        """
        removed = 0
        for record in self._store.read_all():
            server_path = record.get("serverPath")
            if not server_path:
                continue
            try:
                Path(server_path).unlink()
                removed += 1
            except OSError as exc:
                logger.error(f"Error deleting file: {server_path}: {exc}")

        self._store.clear()
        logger.info(f"All files deleted ({removed} blobs removed)")
        return removed
