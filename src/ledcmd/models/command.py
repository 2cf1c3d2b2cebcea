"""Command data model shared by the binary and keyed codecs.

A command is one of four immutable variants:

- :class:`Health` -- liveness check, no payload
- :class:`Constant` -- fill ``led_count`` LEDs with one colour
- :class:`Stream` -- raw (R, G, B) triplets, one per LED
- :class:`Pulse` -- fade ``led_count`` LEDs from ``start`` to ``end``

``Stream`` is generic over its payload storage. A decoder working over
caller memory produces ``Stream[memoryview]`` (no copy); :meth:`Stream.to_owned`
copies that view into ``Stream[bytes]`` when the source buffer will not
outlive the command.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, Iterator, TypeVar, Union

RGB = tuple[int, int, int]

Buffer = TypeVar("Buffer", bytes, bytearray, memoryview)


class _Describable:
    def __str__(self) -> str:
        return describe(self)


@dataclass(frozen=True)
class Health(_Describable):
    """Liveness check."""

    kind: ClassVar[str] = "health"


@dataclass(frozen=True)
class Constant(_Describable):
    """Fill ``led_count`` LEDs with a single colour."""

    kind: ClassVar[str] = "constant"

    led_count: int
    colour: RGB


@dataclass(frozen=True)
class Stream(_Describable, Generic[Buffer]):
    """Per-LED colour data, three bytes (R, G, B) per LED.

    The payload length must be a multiple of 3. Decoders enforce this;
    callers constructing a ``Stream`` directly are responsible for it.
    """

    kind: ClassVar[str] = "stream"

    payload: Buffer

    def __repr__(self) -> str:
        data = bytes(self.payload)
        return f"Stream(payload={data.hex(' ') if data else '(empty)'})"

    def __hash__(self) -> int:
        # Writable views are unhashable; hash the bytes they hold
        return hash(bytes(self.payload))

    @property
    def led_count(self) -> int:
        return len(self.payload) // 3

    def pixels(self) -> Iterator[RGB]:
        """Yield one ``(r, g, b)`` tuple per LED."""
        data = self.payload
        for i in range(0, len(data) - len(data) % 3, 3):
            yield (data[i], data[i + 1], data[i + 2])

    def to_owned(self) -> Stream[bytes]:
        """Copy the payload into an independent ``bytes`` object."""
        if isinstance(self.payload, bytes):
            return self
        return Stream(bytes(self.payload))


@dataclass(frozen=True)
class Pulse(_Describable):
    """Fade ``led_count`` LEDs from ``start`` to ``end``.

    The fade runs over ``frames`` steps spread across ``period`` time
    units; the unit is chosen by the controller.
    """

    kind: ClassVar[str] = "pulse"

    led_count: int
    start: RGB
    end: RGB
    frames: int
    period: int


Command = Union[Health, Constant, Stream, Pulse]


def to_owned(command: Command) -> Command:
    """Return ``command`` with any borrowed Stream payload copied."""
    if isinstance(command, Stream):
        return command.to_owned()
    return command


def describe(command: Command) -> str:
    """Compact diagnostic form, e.g. ``CC::L(1)::CO(0,126,0)``."""
    if isinstance(command, Health):
        return "CH"
    if isinstance(command, Constant):
        r, g, b = command.colour
        return f"CC::L({command.led_count})::CO({r},{g},{b})"
    if isinstance(command, Stream):
        return f"CS::LB({len(command.payload)})"
    if isinstance(command, Pulse):
        return f"CP::L({command.led_count})"
    raise TypeError(f"Not a command: {command!r}")
