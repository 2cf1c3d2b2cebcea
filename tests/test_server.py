"""Tests for the MCP tool functions."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("ledcmd.server", None)
        import ledcmd.server as server_mod

    return server_mod


@pytest.fixture
def server():
    return _get_server_module()


def test_encode_command(server):
    result = server.encode_command(
        {"type": "constant", "led_count": 1, "colour": [0, 126, 0]}
    )
    assert result == {"frame": "630001007e00", "size": 6}


def test_encode_command_error(server):
    result = server.encode_command({"type": "stream", "bytes": [127, 0]})
    assert result["code"] == "CP"
    assert "multiple of 3" in result["error"]


def test_encode_command_unknown_type(server):
    result = server.encode_command({"type": "strobe"})
    assert result["code"] == "CH"
    assert "strobe" in result["error"]


def test_decode_frame(server):
    result = server.decode_frame("70 0005 000000 7f007f 3c 07d0")
    assert result == {
        "type": "pulse",
        "led_count": 5,
        "start": [0, 0, 0],
        "end": [127, 0, 127],
        "frames": 60,
        "period": 2000,
    }


def test_decode_frame_invalid_header(server):
    assert server.decode_frame("ff")["code"] == "CH"


def test_decode_frame_bad_hex(server):
    assert server.decode_frame("zz")["code"] == "CP"


def test_decode_frame_empty(server):
    assert server.decode_frame("")["code"] == "CP"


def test_frame_size(server):
    assert server.frame_size({"type": "stream", "bytes": [0] * 30}) == {"size": 31}
    assert server.frame_size({"type": "health", "foo": 1})["code"] == "CP"


def test_describe_command(server):
    result = server.describe_command({"type": "health"})
    assert result == {"summary": "CH"}


def test_encode_prefixed(server):
    result = server.encode_prefixed({"type": "health"})
    assert result == {"frame": "000168", "size": 3}


def test_resources(server):
    headers = json.loads(server.resource_headers())["headers"]
    assert [h["header"] for h in headers] == ["h", "c", "s", "p"]
    errors = json.loads(server.resource_errors())["errors"]
    assert {e["name"]: e["code"] for e in errors} == {
        "InvalidHeader": "CH",
        "MalformedPayload": "CP",
        "BufferTooSmall": "CS",
    }


def test_build_animation_prompt(server):
    prompt = server.build_animation("red breathing")
    assert "red breathing" in prompt
    assert "encode_command" in prompt


def test_main_reads_environment(server, monkeypatch):
    monkeypatch.setenv("LEDCMD_NAMING", "camel")
    monkeypatch.setenv("LEDCMD_LOG_LEVEL", "debug")
    server.main()
    server.mcp.run.assert_called_once_with(transport="stdio")
    doc = server.decode_frame("630001007e00")
    assert doc == {"type": "constant", "ledCount": 1, "colour": [0, 126, 0]}
