"""Keyed (self-describing) representation of commands.

A command maps to an ordered document with a ``type`` discriminator followed
by the variant's fields::

    {"type": "health"}
    {"type": "constant", "led_count": 1, "colour": [0, 126, 0]}
    {"type": "stream", "bytes": [0, 127, 0]}
    {"type": "pulse", "led_count": 5, "start": [0, 0, 0],
     "end": [127, 0, 127], "frames": 60, "period": 2000}

Field names follow the codec's naming convention (``snake`` or ``camel``);
the ``type`` key and its values are fixed.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..errors import (
    DuplicateField,
    InvalidFieldValue,
    InvalidStreamLength,
    MalformedPayload,
    MissingField,
    UnexpectedCommandType,
    UnknownField,
)
from ..models.command import Command, Constant, Health, Pulse, Stream

TYPE_KEY = "type"

COMMAND_KINDS: dict[str, type] = {
    cls.kind: cls for cls in (Health, Constant, Stream, Pulse)
}

ALL_FIELDS = ("led_count", "start", "end", "colour", "frames", "period", "bytes")

NAMING_CONVENTIONS = ("snake", "camel")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """``json`` object hook that refuses repeated keys."""
    doc: dict[str, Any] = {}
    for key, value in pairs:
        if key in doc:
            raise DuplicateField(key)
        doc[key] = value
    return doc


class KeyedCodec:
    """Converts commands to and from keyed documents.

    Args:
        naming: ``"snake"`` (``led_count``) or ``"camel"`` (``ledCount``).
            Applies to every field name; ``type`` and its values are fixed.
    """

    def __init__(self, naming: str = "snake") -> None:
        if naming not in NAMING_CONVENTIONS:
            raise ValueError(
                f"Unknown naming convention '{naming}'. "
                f"Valid: {list(NAMING_CONVENTIONS)}"
            )
        self.naming = naming
        convert = _camel if naming == "camel" else str
        self._names = {field: convert(field) for field in ALL_FIELDS}
        self._fields = {name: field for field, name in self._names.items()}

    def __repr__(self) -> str:
        return f"KeyedCodec(naming={self.naming!r})"

    def field_name(self, field: str) -> str:
        """External name of a canonical field under this codec's convention."""
        return self._names[field]

    # ─── ENCODE ───────────────────────────────────────────────────────

    def to_document(self, command: Command) -> dict[str, Any]:
        """Build the keyed document for ``command``.

        The result holds exactly the variant's fields, in declared order.
        """
        name = self._names
        if isinstance(command, Health):
            return {TYPE_KEY: command.kind}
        if isinstance(command, Constant):
            return {
                TYPE_KEY: command.kind,
                name["led_count"]: command.led_count,
                name["colour"]: list(command.colour),
            }
        if isinstance(command, Stream):
            return {
                TYPE_KEY: command.kind,
                name["bytes"]: list(command.payload),
            }
        if isinstance(command, Pulse):
            return {
                TYPE_KEY: command.kind,
                name["led_count"]: command.led_count,
                name["start"]: list(command.start),
                name["end"]: list(command.end),
                name["frames"]: command.frames,
                name["period"]: command.period,
            }
        raise TypeError(f"Not a command: {command!r}")

    def dumps(self, command: Command) -> str:
        """Encode ``command`` as compact JSON text."""
        return json.dumps(self.to_document(command), separators=(",", ":"))

    # ─── DECODE ───────────────────────────────────────────────────────

    def from_document(self, document: Mapping[str, Any]) -> Command:
        """Build a command from a keyed document.

        Key order does not matter. A document without ``type`` decodes as
        Health. Fields belonging to other variants are accepted and ignored;
        keys outside the known field set are not.

        Raises:
            UnknownField: A key that no variant defines.
            UnexpectedCommandType: ``type`` is not a known command.
            MissingField: A field the variant requires is absent.
            InvalidFieldValue: A field has the wrong shape or range.
            InvalidStreamLength: Stream bytes are not a multiple of 3.
        """
        if not isinstance(document, Mapping):
            raise MalformedPayload(
                f"Keyed document must be a mapping, got {type(document).__name__}"
            )

        values: dict[str, Any] = {}
        kind = "health"
        for key, value in document.items():
            if key == TYPE_KEY:
                if not isinstance(value, str) or value not in COMMAND_KINDS:
                    raise UnexpectedCommandType(value)
                kind = value
            elif key in self._fields:
                values[self._fields[key]] = value
            else:
                raise UnknownField(key)

        if kind == "health":
            return Health()

        if kind == "constant":
            colour = self._rgb("colour", self._require(values, "colour"))
            led_count = self._uint("led_count", self._require(values, "led_count"), 16)
            return Constant(led_count=led_count, colour=colour)

        if kind == "stream":
            return Stream(self._stream_bytes(self._require(values, "bytes")))

        start = self._rgb("start", self._require(values, "start"))
        end = self._rgb("end", self._require(values, "end"))
        frames = self._uint("frames", self._require(values, "frames"), 8)
        period = self._uint("period", self._require(values, "period"), 16)
        led_count = self._uint("led_count", self._require(values, "led_count"), 16)
        return Pulse(
            led_count=led_count,
            start=start,
            end=end,
            frames=frames,
            period=period,
        )

    def loads(self, text: str | bytes) -> Command:
        """Decode JSON text into a command.

        Raises:
            DuplicateField: A key appears more than once.
            MalformedPayload: The text is not valid UTF-8 JSON.
            CommandError: Any :meth:`from_document` failure.
        """
        try:
            document = json.loads(text, object_pairs_hook=_reject_duplicates)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedPayload(f"Invalid JSON: {e}") from e
        return self.from_document(document)

    # ─── FIELD VALIDATION ─────────────────────────────────────────────

    def _require(self, values: dict[str, Any], field: str) -> Any:
        if field not in values:
            raise MissingField(self._names[field])
        return values[field]

    def _uint(self, field: str, value: Any, bits: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidFieldValue(self._names[field], f"expected integer, got {value!r}")
        if not 0 <= value < (1 << bits):
            raise InvalidFieldValue(
                self._names[field], f"{value} out of range for u{bits}"
            )
        return value

    def _rgb(self, field: str, value: Any) -> tuple[int, int, int]:
        if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__len__"):
            raise InvalidFieldValue(self._names[field], f"expected [r, g, b], got {value!r}")
        if len(value) != 3:
            raise InvalidFieldValue(
                self._names[field], f"expected 3 channels, got {len(value)}"
            )
        r, g, b = (self._uint(field, channel, 8) for channel in value)
        return (r, g, b)

    def _stream_bytes(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        elif isinstance(value, (list, tuple)):
            data = bytes(self._uint("bytes", item, 8) for item in value)
        else:
            raise InvalidFieldValue(
                self._names["bytes"], f"expected a byte list, got {value!r}"
            )
        if len(data) % 3 != 0:
            raise InvalidStreamLength(len(data))
        return data
