"""
Flat JSON-file persistence for list-shaped collections.

Every operation reads the entire file, and every mutation rewrites the entire
file. Nothing is cached between calls and nothing is locked: two concurrent
read-modify-write cycles on the same file race, and whichever writes last
wins. Callers that need the lost-update semantics spelled out can use
``read_all``/``write_all`` directly.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, TypeVar

from .errors import StoreError
from .utils import ensure_directory

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
T = TypeVar("T")


class JsonListStore:
    """
    A JSON array on disk, addressed as a whole.

    A missing file reads as an empty list. Any other read, parse or write
    failure is raised as ``StoreError``.
    """

    def __init__(self, path: Path, label: str) -> None:
        self.path = path
        self.label = label
        ensure_directory(path.parent)

    def read_all(self) -> List[Record]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.error(f"Error reading {self.label} from {self.path}: {exc}")
            raise StoreError(f"Failed to read {self.label}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(f"Corrupt {self.label} store at {self.path}: {exc}")
            raise StoreError(f"Failed to read {self.label}") from exc

        if not isinstance(data, list):
            logger.error(f"{self.path} does not contain a JSON array")
            raise StoreError(f"Failed to read {self.label}")
        return data

    def write_all(self, records: List[Record]) -> None:
        try:
            self.path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.error(f"Error writing {self.label} to {self.path}: {exc}")
            raise StoreError(f"Failed to write {self.label}") from exc

    def mutate(self, change: Callable[[List[Record]], T]) -> T:
        """
        Run one read-modify-write cycle.

        ``change`` receives the full list, may modify it in place and returns
        the value handed back to the caller. The list is written back only if
        ``change`` returns normally.
        """
        records = self.read_all()
        result = change(records)
        self.write_all(records)
        return result

    def clear(self) -> None:
        self.write_all([])
