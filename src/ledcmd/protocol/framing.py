"""Binary frame encoder and decoder.

Frame layout::

    +--------+------------------------------------------+
    | Header |                 Payload                  |
    | 1 byte |  fixed or variable length, big-endian    |
    +--------+------------------------------------------+

    'h'  Health    (none)
    'c'  Constant  u16 led_count | u8 R | u8 G | u8 B
    's'  Stream    N bytes, N % 3 == 0, (R, G, B) per LED
    'p'  Pulse     u16 led_count | RGB start | RGB end | u8 frames | u16 period

Decoding works over the caller's buffer: a Stream payload comes back as a
``memoryview`` into it. Use :func:`decode_owned` when the source buffer will
be reused or released before the command is consumed.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from ..errors import (
    BufferTooSmall,
    InvalidHeader,
    InvalidStreamLength,
    MalformedPayload,
)
from ..models.command import Command, Constant, Health, Pulse, Stream, to_owned

HEADER_HEALTH = ord("h")
HEADER_CONSTANT = ord("c")
HEADER_STREAM = ord("s")
HEADER_PULSE = ord("p")

HEADERS: dict[type, int] = {
    Health: HEADER_HEALTH,
    Constant: HEADER_CONSTANT,
    Stream: HEADER_STREAM,
    Pulse: HEADER_PULSE,
}

# Payload layouts, excluding the header byte
CONSTANT_FORMAT = struct.Struct(">H3B")      # led_count, R, G, B
PULSE_FORMAT = struct.Struct(">H3B3BBH")     # led_count, start, end, frames, period

HEALTH_SIZE = 1
CONSTANT_SIZE = 1 + CONSTANT_FORMAT.size     # 6
PULSE_SIZE = 1 + PULSE_FORMAT.size           # 12


def _payload_bytes(stream: Stream) -> bytes:
    """Copy a Stream payload out as plain bytes, whatever its item format."""
    try:
        with memoryview(stream.payload) as view:
            return view.tobytes()
    except TypeError as e:
        raise MalformedPayload(f"Stream payload is not a byte buffer: {e}") from e


def _payload_size(stream: Stream) -> int:
    try:
        with memoryview(stream.payload) as view:
            return view.nbytes
    except TypeError as e:
        raise MalformedPayload(f"Stream payload is not a byte buffer: {e}") from e


def size_in_bytes(command: Command) -> int:
    """Exact frame length for ``command``, header included."""
    if isinstance(command, Health):
        return HEALTH_SIZE
    if isinstance(command, Constant):
        return CONSTANT_SIZE
    if isinstance(command, Stream):
        return _payload_size(command) + 1
    if isinstance(command, Pulse):
        return PULSE_SIZE
    raise TypeError(f"Not a command: {command!r}")


def _pack_fields(command: Command) -> bytes:
    """Pack the fixed-size fields of a Constant or Pulse."""
    try:
        if isinstance(command, Constant):
            return CONSTANT_FORMAT.pack(command.led_count, *command.colour)
        return PULSE_FORMAT.pack(
            command.led_count,
            *command.start,
            *command.end,
            command.frames,
            command.period,
        )
    except (struct.error, TypeError) as e:
        raise MalformedPayload(
            f"Field out of range for {type(command).__name__}: {e}"
        ) from e


def encode_into(command: Command, buffer, offset: int = 0) -> int:
    """Write the frame for ``command`` into a writable buffer.

    Args:
        command: The command to encode.
        buffer: A writable bytes-like object (``bytearray``, ``memoryview``...).
        offset: Position in ``buffer`` at which the frame starts.

    Returns:
        The number of bytes written, always ``size_in_bytes(command)``.

    Raises:
        BufferTooSmall: If fewer than ``size_in_bytes(command)`` bytes are
            available from ``offset``. Nothing is written.
        MalformedPayload: If a field does not fit its wire width, or a
            Stream payload is not a byte buffer. Nothing is written.
        TypeError: If ``buffer`` is read-only.
    """
    size = size_in_bytes(command)
    header = HEADERS[type(command)]
    if isinstance(command, Health):
        body = b""
    elif isinstance(command, Stream):
        body = _payload_bytes(command)
    else:
        body = _pack_fields(command)

    # Byte view of the target, so slice assignment can never resize it
    with memoryview(buffer) as raw, raw.cast("B") as target:
        if target.readonly:
            raise TypeError("Cannot encode into a read-only buffer")
        available = len(target) - offset
        if available < size:
            raise BufferTooSmall(size, max(available, 0))
        target[offset] = header
        target[offset + 1 : offset + size] = body
    return size


def encode(command: Command) -> bytes:
    """Encode ``command`` into a newly allocated frame."""
    buf = bytearray(size_in_bytes(command))
    encode_into(command, buf)
    return bytes(buf)


def write_to(command: Command, stream: BinaryIO) -> int:
    """Write one frame to a binary file-like object and flush it.

    Returns:
        The frame size in bytes.
    """
    frame = encode(command)
    stream.write(frame)
    stream.flush()
    return len(frame)


def decode(data) -> Command:
    """Decode one frame without copying.

    Args:
        data: Any bytes-like object. A Stream payload is returned as a
            ``memoryview`` into it and stays valid only while ``data`` does.

    Raises:
        MalformedPayload: If ``data`` is empty or too short for its header,
            or a Stream payload length is not a multiple of 3.
        InvalidHeader: If the header byte is unknown.
    """
    view = memoryview(data).cast("B")
    if len(view) == 0:
        raise MalformedPayload("Empty frame")

    header = view[0]
    payload = view[1:]

    if header == HEADER_HEALTH:
        return Health()

    if header == HEADER_STREAM:
        if len(payload) % 3 != 0:
            raise InvalidStreamLength(len(payload))
        return Stream(payload)

    if header == HEADER_CONSTANT:
        if len(payload) < CONSTANT_FORMAT.size:
            raise MalformedPayload(
                f"Constant payload needs {CONSTANT_FORMAT.size} bytes, "
                f"got {len(payload)}"
            )
        led_count, r, g, b = CONSTANT_FORMAT.unpack_from(payload)
        return Constant(led_count=led_count, colour=(r, g, b))

    if header == HEADER_PULSE:
        if len(payload) < PULSE_FORMAT.size:
            raise MalformedPayload(
                f"Pulse payload needs {PULSE_FORMAT.size} bytes, "
                f"got {len(payload)}"
            )
        fields = PULSE_FORMAT.unpack_from(payload)
        return Pulse(
            led_count=fields[0],
            start=tuple(fields[1:4]),
            end=tuple(fields[4:7]),
            frames=fields[7],
            period=fields[8],
        )

    raise InvalidHeader(header)


def decode_owned(data) -> Command:
    """Decode one frame, copying any Stream payload out of ``data``."""
    return to_owned(decode(data))
