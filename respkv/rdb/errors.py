"""Snapshot decoding exceptions."""


class SnapshotDecodeError(Exception):
    """
    Base class for every snapshot decoding failure.

    Attributes:
        offset: Cursor position at which decoding failed
    """

    def __init__(self, message: str, offset: int = 0):
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


class BadMagic(SnapshotDecodeError):
    """The file does not start with the REDIS magic bytes."""


class BadVersion(SnapshotDecodeError):
    """The version field is not four ASCII digits."""


class BadLengthEncoding(SnapshotDecodeError):
    """A plain length was required but a special encoding was found."""


class UnsupportedSpecialEncoding(SnapshotDecodeError):
    """A special encoding selector other than 0-3."""


class UnsupportedCompression(SnapshotDecodeError):
    """An LZF-compressed string (special encoding 3)."""


class UnsupportedValueType(SnapshotDecodeError):
    """A value type tag other than 0 (string)."""


class InvalidUtf8(SnapshotDecodeError):
    """String bytes that are not valid UTF-8."""


class TruncatedSnapshot(SnapshotDecodeError):
    """The input ended in the middle of a record."""
