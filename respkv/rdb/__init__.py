"""Snapshot (RDB) module for respkv."""

from .decoder import SnapshotDecoder, decode_snapshot
from .errors import SnapshotDecodeError
from .loader import load_snapshot
from .models import DB, KVPair, Snapshot

__all__ = [
    "DB",
    "KVPair",
    "Snapshot",
    "SnapshotDecodeError",
    "SnapshotDecoder",
    "decode_snapshot",
    "load_snapshot",
]
