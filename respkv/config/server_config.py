"""
Server Configuration

Immutable configuration answered by CONFIG GET. Built once at startup,
before any connection is accepted, and shared by reference afterwards.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .settings import settings


@dataclass(frozen=True)
class ServerConfig:
    """
    Snapshot location settings.

    Attributes:
        dir: Directory holding the snapshot file
        dbfilename: Snapshot file name inside ``dir``
    """
    dir: Optional[str] = None
    dbfilename: Optional[str] = None

    FIELDS = ("dir", "dbfilename")

    def get(self, name: str) -> Optional[str]:
        """
        Look up a configuration value by name.

        Args:
            name: "dir" or "dbfilename" (case-insensitive)

        Returns:
            The value, or None if it is unset or the name is unknown
        """
        name = name.lower()
        if name not in self.FIELDS:
            return None
        return getattr(self, name)

    def snapshot_path(self) -> Optional[str]:
        """Return the full snapshot path, or None if either part is unset."""
        if not self.dir or not self.dbfilename:
            return None
        return os.path.join(self.dir, self.dbfilename)

    @classmethod
    def from_args(cls, args) -> "ServerConfig":
        """Build from an argparse namespace, falling back to settings."""
        return cls(
            dir=getattr(args, "dir", None) or settings.DIR,
            dbfilename=getattr(args, "dbfilename", None) or settings.DBFILENAME,
        )
