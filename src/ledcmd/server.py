"""MCP server entry point for ledcmd.

Exposes the binary and keyed codecs as tools, resources, and prompts via
the Model Context Protocol using the official Python MCP SDK with stdio
transport. Commands are passed in as keyed documents; frames come back as
hex strings.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import (
    BufferTooSmall,
    CommandError,
    InvalidHeader,
    MalformedPayload,
    error_code,
)
from .models.command import describe
from .protocol.framing import (
    HEADER_CONSTANT,
    HEADER_HEALTH,
    HEADER_PULSE,
    HEADER_STREAM,
    decode_owned,
    encode,
    size_in_bytes,
)
from .protocol.keyed import KeyedCodec
from .protocol.ring_buffer import LENGTH_PREFIX_SIZE, RingBuffer, write_frame

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ledcmd",
    instructions="Encode and decode LED controller commands",
)

_codec = KeyedCodec()


def _error(exc: CommandError) -> dict[str, str]:
    """Tool result for a codec failure."""
    logger.debug("Codec error %s: %s", error_code(exc), exc)
    return {"error": str(exc), "code": error_code(exc)}


def _parse_hex(frame: str) -> bytes:
    try:
        return bytes.fromhex(frame)
    except ValueError as e:
        raise MalformedPayload(f"Frame is not valid hex: {e}") from e


# ─── PROTOCOL TABLES ─────────────────────────────────────────────────

HEADER_TABLE = [
    {"header": chr(HEADER_HEALTH), "type": "health", "payload": "(none)", "size": 1},
    {
        "header": chr(HEADER_CONSTANT),
        "type": "constant",
        "payload": "u16 led_count, u8 R, u8 G, u8 B",
        "size": 6,
    },
    {
        "header": chr(HEADER_STREAM),
        "type": "stream",
        "payload": "N bytes, N % 3 == 0, (R, G, B) per LED",
        "size": "N + 1",
    },
    {
        "header": chr(HEADER_PULSE),
        "type": "pulse",
        "payload": "u16 led_count, u8x3 start, u8x3 end, u8 frames, u16 period",
        "size": 12,
    },
]

ERROR_TABLE = [
    {"code": InvalidHeader.code, "name": "InvalidHeader"},
    {"code": MalformedPayload.code, "name": "MalformedPayload"},
    {"code": BufferTooSmall.code, "name": "BufferTooSmall"},
]


# ─── CODEC TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def encode_command(command: dict[str, Any]) -> dict[str, Any]:
    """Encode a keyed command document into a binary frame.

    Args:
        command: Keyed document, e.g.
            {"type": "constant", "led_count": 10, "colour": [255, 0, 0]}.
    """
    try:
        cmd = _codec.from_document(command)
        frame = encode(cmd)
    except CommandError as e:
        return _error(e)
    return {"frame": frame.hex(), "size": len(frame)}


@mcp.tool()
def decode_frame(frame: str) -> dict[str, Any]:
    """Decode a hex-encoded binary frame into a keyed command document.

    Args:
        frame: Frame bytes as hex, e.g. "63000a ff0000".
    """
    try:
        cmd = decode_owned(_parse_hex(frame))
    except CommandError as e:
        return _error(e)
    return _codec.to_document(cmd)


@mcp.tool()
def frame_size(command: dict[str, Any]) -> dict[str, Any]:
    """Report the binary frame size of a keyed command document."""
    try:
        cmd = _codec.from_document(command)
    except CommandError as e:
        return _error(e)
    return {"size": size_in_bytes(cmd)}


@mcp.tool()
def describe_command(command: dict[str, Any]) -> dict[str, Any]:
    """Summarize a keyed command document in the compact diagnostic form."""
    try:
        cmd = _codec.from_document(command)
    except CommandError as e:
        return _error(e)
    return {"summary": describe(cmd)}


@mcp.tool()
def encode_prefixed(command: dict[str, Any]) -> dict[str, Any]:
    """Encode a command as a length-prefixed frame for ring buffer links.

    The 2-byte big-endian length precedes the frame and counts only the
    header and payload.
    """
    try:
        cmd = _codec.from_document(command)
        ring = RingBuffer(LENGTH_PREFIX_SIZE + size_in_bytes(cmd))
        write_frame(cmd, ring)
    except CommandError as e:
        return _error(e)
    return {"frame": ring[:].hex(), "size": len(ring)}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("ledcmd://protocol/headers")
def resource_headers() -> str:
    """Binary header bytes and payload layouts."""
    return json.dumps({"headers": HEADER_TABLE})


@mcp.resource("ledcmd://protocol/errors")
def resource_errors() -> str:
    """Two-letter diagnostic error codes."""
    return json.dumps({"errors": ERROR_TABLE})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def build_animation(description: str) -> str:
    """Guide the AI to express a lighting effect as controller commands.

    Args:
        description: The effect to build, e.g. "slow red breathing on 30 LEDs".
    """
    return f"""Build LED controller commands for: {description}
Consider:
- "constant" fills led_count LEDs with one colour
- "pulse" fades led_count LEDs from start to end over frames steps in period
- "stream" sets each LED individually; bytes holds R, G, B per LED
- "health" checks the controller is alive

Read ledcmd://protocol/headers for the frame layouts.
Use encode_command to produce each frame and describe_command to check it."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    global _codec
    logging.basicConfig(level=os.environ.get("LEDCMD_LOG_LEVEL", "INFO").upper())
    _codec = KeyedCodec(naming=os.environ.get("LEDCMD_NAMING", "snake"))
    logger.info("Starting ledcmd server (%r)", _codec)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
