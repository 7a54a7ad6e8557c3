"""
Severity levels and the result objects returned by the public operations.

Callers register the three integers their own error handling uses
(e.g. 0 / positive / negative) with :meth:`StatusCodes.configure`; every
result then carries both the :class:`Severity` and the matching integer.
"""
import enum
from typing import NamedTuple, Optional, Tuple


class Severity(enum.IntEnum):
    NOERROR = 0
    SEVERE = 1
    FATAL = 2


class _StatusUnset:
    def __repr__(self):
        return "STATUS_UNSET"

    def __bool__(self):
        return False


# Reported in place of a status integer until the caller configures codes
STATUS_UNSET = _StatusUnset()


class StatusCodes:
    def __init__(self):
        self._codes = None

    def configure(self, no_error, severe, fatal):
        self._codes = {
            Severity.NOERROR: int(no_error),
            Severity.SEVERE: int(severe),
            Severity.FATAL: int(fatal),
        }

    @property
    def configured(self):
        return self._codes is not None

    def code_for(self, severity):
        if self._codes is None:
            return STATUS_UNSET
        return self._codes[Severity(severity)]

    def __repr__(self):
        if self._codes is None:
            return "StatusCodes(unconfigured)"
        codes = ", ".join(f"{s.name.lower()}={c}" for s, c in self._codes.items())
        return f"StatusCodes({codes})"


def truncate_message(message, message_length):
    """Bound *message* to *message_length* characters; never raises."""
    if message_length is None:
        return message
    return message[: max(int(message_length), 0)]


class LoadResult(NamedTuple):
    severity: Severity
    status: object
    message: str
    domain_dimensions: Optional[Tuple[int, int, int]] = None
    origin: Optional[Tuple[float, float, float]] = None
    spacing: Optional[Tuple[float, float, float]] = None
    time: Optional[float] = None

    @property
    def ok(self):
        return self.severity == Severity.NOERROR


class ExtractionResult(NamedTuple):
    severity: Severity
    status: object
    message: str

    @property
    def ok(self):
        return self.severity == Severity.NOERROR
