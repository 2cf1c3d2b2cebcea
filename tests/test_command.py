"""Tests for the command data model."""

import dataclasses

import pytest

from ledcmd.models.command import (
    Constant,
    Health,
    Pulse,
    Stream,
    describe,
    to_owned,
)


def test_commands_are_immutable():
    cmd = Constant(led_count=1, colour=(0, 126, 0))
    with pytest.raises(dataclasses.FrozenInstanceError):
        cmd.led_count = 2


def test_health_equality():
    assert Health() == Health()
    assert Health() != Constant(led_count=0, colour=(0, 0, 0))


def test_stream_led_count_and_pixels():
    stream = Stream(bytes([1, 2, 3, 4, 5, 6]))
    assert stream.led_count == 2
    assert list(stream.pixels()) == [(1, 2, 3), (4, 5, 6)]


def test_stream_pixels_from_view():
    data = b"\x00\x7f\x00"
    stream = Stream(memoryview(data))
    assert list(stream.pixels()) == [(0, 127, 0)]


def test_stream_to_owned_copies_view():
    source = bytearray(b"\x01\x02\x03")
    borrowed = Stream(memoryview(source))
    owned = borrowed.to_owned()
    assert isinstance(owned.payload, bytes)
    assert owned == borrowed
    source[0] = 0xFF
    assert owned.payload == b"\x01\x02\x03"


def test_stream_to_owned_keeps_owned_payload():
    owned = Stream(b"\x01\x02\x03")
    assert owned.to_owned() is owned


def test_to_owned_passes_fixed_variants_through():
    cmd = Pulse(led_count=1, start=(0, 0, 0), end=(1, 1, 1), frames=2, period=3)
    assert to_owned(cmd) is cmd
    assert to_owned(Health()) == Health()


def test_stream_repr():
    assert repr(Stream(b"\x00\x7f\x00")) == "Stream(payload=00 7f 00)"
    assert repr(Stream(b"")) == "Stream(payload=(empty))"


def test_describe_each_variant():
    """The same compact form is produced regardless of payload storage."""
    assert describe(Health()) == "CH"
    assert describe(Constant(led_count=1, colour=(0, 126, 0))) == "CC::L(1)::CO(0,126,0)"
    assert describe(Stream(bytes(9))) == "CS::LB(9)"
    assert describe(Stream(memoryview(bytes(9)))) == "CS::LB(9)"
    assert describe(
        Pulse(led_count=5, start=(0, 0, 0), end=(127, 0, 127), frames=60, period=2000)
    ) == "CP::L(5)"


def test_str_uses_describe():
    assert str(Constant(led_count=3, colour=(1, 2, 3))) == "CC::L(3)::CO(1,2,3)"
    assert str(Health()) == "CH"


def test_describe_rejects_non_command():
    with pytest.raises(TypeError):
        describe("not a command")


def test_stream_hash_matches_across_storage():
    """A Stream over writable memory hashes like its owned copy."""
    borrowed = Stream(memoryview(bytearray(b"\x01\x02\x03")))
    owned = Stream(b"\x01\x02\x03")
    assert hash(borrowed) == hash(owned)
    assert len({borrowed, owned}) == 1
