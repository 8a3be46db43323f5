"""
Utility functions for file system operations, identifiers and timestamps.

This module provides helper functions for:
- Sanitizing client-supplied filenames for safe filesystem usage
- Ensuring directory creation
- Generating collision-resistant blob names and order identifiers
- Producing ISO-8601 timestamps in the format the front-end expects
"""

from __future__ import annotations

import random
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

# Pattern to match characters that are not safe for filesystem paths
# Allows: alphanumeric characters, dots, underscores, and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")

# Upper bound for the random suffix of generated blob names
BLOB_SUFFIX_RANGE = 10**9

# Upper bound for the random tiebreak of generated order ids
ORDER_TIEBREAK_RANGE = 10**4


def sanitize_filename(filename: str, fallback: str = "document") -> str:
    """
    Generate a filesystem-safe filename from a client-supplied one.

    Directory components are dropped, unsafe characters in the stem are
    replaced with hyphens and the extension is kept (lowercased) when it is
    itself safe.

    Args:
        filename: The original filename as sent by the client
        fallback: Stem to use if sanitization leaves nothing

    Returns:
        A filesystem-safe filename

    Example:
        >>> sanitize_filename("My Report (final).PDF")
        "My-Report-final.pdf"
        >>> sanitize_filename("../../etc/passwd")
        "passwd"
    """
    # Strip both separator styles; browsers on Windows may send full paths
    base = Path(filename.replace("\\", "/")).name
    path = Path(base)
    suffix = path.suffix.lower() if SANITIZE_PATTERN.search(path.suffix[1:]) is None else ""
    stem = path.stem if suffix else base
    cleaned = SANITIZE_PATTERN.sub("-", stem.strip()).strip("-_.")
    return f"{cleaned or fallback}{suffix}"


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining

    Raises:
        OSError: If directory creation fails due to permissions or other I/O errors
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a UTC timestamp as ISO-8601 with millisecond precision and a ``Z`` suffix.

    Example:
        >>> utc_timestamp(datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))
        "2024-05-01T09:30:00.000Z"
    """
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_blob_name(
    filename: str,
    clock: Callable[[], int] = epoch_millis,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Build a unique on-disk name for an uploaded file.

    The name is ``<epoch ms>-<random 0..1e9>-<sanitized original name>``, so
    two uploads of the same file never overwrite each other in practice.
    """
    rng = rng or random
    return f"{clock()}-{rng.randrange(BLOB_SUFFIX_RANGE)}-{sanitize_filename(filename)}"


def generate_order_id(
    clock: Callable[[], int] = epoch_millis,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Build a time-based order identifier: ``ORD-<epoch ms>-<tiebreak>``.

    Uniqueness is probabilistic only. Two calls in the same millisecond that
    draw the same tiebreak produce the same id, and the order store accepts
    the duplicate.
    """
    rng = rng or random
    return f"ORD-{clock()}-{rng.randrange(ORDER_TIEBREAK_RANGE):04d}"
