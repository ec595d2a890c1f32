"""
Snapshot Loader

Reads the configured snapshot file once at startup. Any failure is
logged and degrades to "no snapshot" so the server always starts.
"""

import logging
import os
from typing import Optional

from .decoder import decode_snapshot
from .errors import SnapshotDecodeError
from .models import Snapshot

logger = logging.getLogger(__name__)


def load_snapshot(dir: Optional[str], dbfilename: Optional[str]) -> Optional[Snapshot]:
    """
    Load and decode a snapshot file.

    Args:
        dir: Directory containing the snapshot
        dbfilename: Snapshot file name

    Returns:
        The decoded Snapshot, or None if it is not configured, missing,
        unreadable or malformed
    """
    if not dir or not dbfilename:
        logger.info("No snapshot configured, starting with an empty dataset")
        return None

    path = os.path.join(dir, dbfilename)
    if not os.path.isfile(path):
        logger.info(f"Snapshot {path} does not exist, starting with an empty dataset")
        return None

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        logger.warning(f"Could not read snapshot {path}: {exc}")
        return None

    try:
        snapshot = decode_snapshot(data)
    except SnapshotDecodeError as exc:
        logger.warning(
            f"Could not decode snapshot {path} ({type(exc).__name__}: {exc}), "
            f"starting with an empty dataset"
        )
        return None

    key_count = sum(len(db.entries) for db in snapshot.databases)
    logger.info(
        f"Loaded snapshot {path}: version {snapshot.version}, "
        f"{len(snapshot.databases)} databases, {key_count} keys"
    )
    return snapshot
