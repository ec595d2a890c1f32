"""Protocol-level exceptions."""


class ProtocolDecodeError(Exception):
    """Raised when a frame cannot be decoded."""


class IncompleteFrameError(ProtocolDecodeError):
    """Raised when the buffer ends before a complete value was read."""


class UnclassifiedCommandError(Exception):
    """
    Raised when a well-formed value does not match any known command.

    Attributes:
        value: The offending wire value, kept for diagnostics
    """

    def __init__(self, value, reason: str = "unknown command"):
        super().__init__(f"{reason}: {value!r}")
        self.value = value
        self.reason = reason
