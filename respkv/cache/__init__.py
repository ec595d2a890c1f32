"""Cache module for respkv."""

from .expiration import AbsoluteDeadline, DurableValue, NoExpiration, RelativeDeadline
from .store import KVStore

__all__ = [
    "AbsoluteDeadline",
    "DurableValue",
    "KVStore",
    "NoExpiration",
    "RelativeDeadline",
]
