"""Ring buffer transport adapter.

Frames written to a :class:`RingBuffer` carry a 2-byte big-endian length
prefix so the reader can find frame boundaries::

    +----------+--------+----------------+
    |  Length  | Header |    Payload     |
    | 2 bytes  | 1 byte | per frame type |
    +----------+--------+----------------+

The length counts the header and payload, not the prefix itself.
"""

from __future__ import annotations

from ..errors import BufferTooSmall, MalformedPayload
from ..models.command import Command
from .framing import decode, decode_owned, encode, size_in_bytes

LENGTH_PREFIX_SIZE = 2
MAX_FRAME_SIZE = 0xFFFF


class RingBuffer:
    """A fixed-capacity circular byte buffer.

    ``extend`` appends at the head, ``del ring[:n]`` consumes from the tail;
    both are O(1) apart from the bytes actually copied.
    """

    def __init__(self, capacity: int = 1024) -> None:
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self._buffer = bytearray(capacity)
        self._capacity = capacity
        self._head = 0  # write position
        self._tail = 0  # read position
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def free(self) -> int:
        """Bytes that can still be written."""
        return self._capacity - self._size

    def __len__(self) -> int:
        return self._size

    def extend(self, data) -> None:
        """Append ``data``, all or nothing.

        Raises:
            BufferTooSmall: If ``data`` does not fit in the free space.
        """
        data_len = len(data)
        if data_len > self.free:
            raise BufferTooSmall(data_len, self.free)
        if data_len == 0:
            return

        space_before_wrap = self._capacity - self._head
        if data_len <= space_before_wrap:
            self._buffer[self._head : self._head + data_len] = data
            self._head = (self._head + data_len) % self._capacity
        else:
            # Wrap: two copies
            self._buffer[self._head :] = data[:space_before_wrap]
            remaining = data_len - space_before_wrap
            self._buffer[:remaining] = data[space_before_wrap:]
            self._head = remaining

        self._size += data_len

    def __getitem__(self, key):
        if isinstance(key, int):
            if key < 0:
                key += self._size
            if not 0 <= key < self._size:
                raise IndexError("Index out of range")
            return self._buffer[(self._tail + key) % self._capacity]

        if not isinstance(key, slice):
            raise TypeError("Indices must be integers or slices")

        start, stop, step = key.indices(self._size)
        if step != 1:
            raise ValueError("Step values other than 1 are not supported")
        length = max(stop - start, 0)
        phys_start = (self._tail + start) % self._capacity
        if phys_start + length <= self._capacity:
            return bytes(self._buffer[phys_start : phys_start + length])
        first = self._buffer[phys_start:]
        return bytes(first + self._buffer[: length - len(first)])

    def __delitem__(self, key) -> None:
        """Consume bytes from the front: ``del ring[:n]``."""
        if not isinstance(key, slice):
            raise TypeError("Only slice deletion is supported")
        start, stop, step = key.indices(self._size)
        if step != 1 or start != 0:
            raise ValueError("Only deletion from the front is supported")
        count = min(stop, self._size)
        self._tail = (self._tail + count) % self._capacity
        self._size -= count

    def clear(self) -> None:
        self._head = 0
        self._tail = 0
        self._size = 0


def write_frame(command: Command, ring: RingBuffer) -> int:
    """Write ``command`` to ``ring`` with its length prefix.

    Returns:
        ``size_in_bytes(command)``; the prefix is not counted.

    Raises:
        BufferTooSmall: If the ring cannot take prefix and frame together.
            Nothing is written.
        MalformedPayload: If the frame is too long for the 2-byte prefix.
    """
    size = size_in_bytes(command)
    if size > MAX_FRAME_SIZE:
        raise MalformedPayload(f"Frame of {size} bytes exceeds the length prefix")
    needed = LENGTH_PREFIX_SIZE + size
    if ring.free < needed:
        raise BufferTooSmall(needed, ring.free)
    ring.extend(size.to_bytes(LENGTH_PREFIX_SIZE, "big") + encode(command))
    return size


def read_frame(ring: RingBuffer, owned: bool = True) -> Command | None:
    """Consume and decode the next prefixed frame from ``ring``.

    Returns:
        The decoded command, or ``None`` if a complete frame has not
        arrived yet.

    Raises:
        CommandError: If the frame does not decode. The frame is consumed
            first so the next call starts at the following frame.
    """
    if len(ring) < LENGTH_PREFIX_SIZE:
        return None
    size = int.from_bytes(ring[:LENGTH_PREFIX_SIZE], "big")
    if len(ring) < LENGTH_PREFIX_SIZE + size:
        return None

    frame = ring[LENGTH_PREFIX_SIZE : LENGTH_PREFIX_SIZE + size]
    del ring[: LENGTH_PREFIX_SIZE + size]
    return decode_owned(frame) if owned else decode(frame)
