"""Error taxonomy shared by the binary and keyed codecs.

Every error carries a two-letter ``code`` used on low-bandwidth diagnostic
channels::

    InvalidHeader     -> "CH"
    MalformedPayload  -> "CP"
    BufferTooSmall    -> "CS"

Keyed-document errors name the offending field. An unknown ``type`` value is
an :class:`InvalidHeader`; the rest refine :class:`MalformedPayload`.
"""

from __future__ import annotations


class CommandError(ValueError):
    """Base class for all codec failures."""

    code: str = ""


class InvalidHeader(CommandError):
    """The header byte does not identify a known command."""

    code = "CH"

    def __init__(self, header: object, message: str | None = None) -> None:
        if message is None:
            message = f"Invalid header byte 0x{header:02X}"
        super().__init__(message)
        self.header = header


class MalformedPayload(CommandError):
    """The input is too short or inconsistent for the indicated command."""

    code = "CP"


class BufferTooSmall(CommandError):
    """The destination cannot hold the full frame."""

    code = "CS"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Buffer too small: need {required} bytes, have {available}"
        )
        self.required = required
        self.available = available


class InvalidStreamLength(MalformedPayload):
    """A Stream payload whose length is not a multiple of 3."""

    def __init__(self, length: int) -> None:
        super().__init__("byte length must be multiple of 3")
        self.length = length


class MissingField(MalformedPayload):
    def __init__(self, field: str) -> None:
        super().__init__(f"missing field: {field}")
        self.field = field


class UnknownField(MalformedPayload):
    def __init__(self, field: str) -> None:
        super().__init__(f"unknown field: {field}")
        self.field = field


class DuplicateField(MalformedPayload):
    def __init__(self, field: str) -> None:
        super().__init__(f"duplicate field: {field}")
        self.field = field


class UnexpectedCommandType(InvalidHeader):
    """A keyed ``type`` value that names no command."""

    def __init__(self, value: object) -> None:
        super().__init__(value, f"unexpected command type: {value!r}")
        self.value = value


class InvalidFieldValue(MalformedPayload):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"invalid value for {field}: {reason}")
        self.field = field
        self.reason = reason


def error_code(exc: CommandError) -> str:
    """Return the two-letter diagnostic code for a codec error."""
    return exc.code
