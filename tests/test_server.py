"""Tests for linkwarden_mcp/server.py — JSON-RPC handling and the stdio request loop."""
import asyncio
import json
import logging

import pytest

from linkwarden_mcp.errors import TransportClosed, TransportError
from linkwarden_mcp.protocol import LATEST_PROTOCOL_VERSION
from linkwarden_mcp.server import ServerState, StdioServer
from linkwarden_mcp.tools import new_toolsets
from linkwarden_mcp.tools.executor import ToolExecutor
from linkwarden_mcp.tools.params import Validator
from linkwarden_mcp.tools.registry import Tool, ToolParam, ToolResult


async def _echo(ctx, request):
    args = {}
    result = Validator(request.arguments).required_string(args, "text").handle_errors_if_any()
    if result:
        return result
    return ToolResult.of_text(args["text"])


ECHO = Tool(name="echo", description="Echo text back.",
            params=[ToolParam("text", "string", "Text to echo.", required=True)], handler=_echo)


class FakeWriter:
    def __init__(self):
        self.messages = []

    async def write_line(self, data: bytes):
        assert data.endswith(b"\n")
        self.messages.append(json.loads(data))


class BrokenWriter:
    async def write_line(self, data: bytes):
        raise BrokenPipeError("broken pipe")


def rpc(method, id=None, params=None):
    msg = {"jsonrpc": "2.0", "method": method}
    if id is not None:
        msg["id"] = id
    if params is not None:
        msg["params"] = params
    return (json.dumps(msg) + "\n").encode()


def make_reader(*lines, eof=True):
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line)
    if eof:
        reader.feed_eof()
    return reader


@pytest.fixture
def server():
    return StdioServer(ToolExecutor([ECHO]), version="1.2.3")


# ──────────────────────────────────────────────────────────
# Message handling
# ──────────────────────────────────────────────────────────

class TestHandleMessage:
    @pytest.mark.asyncio
    async def test_initialize(self, server):
        resp = await server.handle_line(rpc("initialize", 1, {
            "protocolVersion": "2024-11-05",
            "clientInfo": {"name": "inspector", "version": "0.9"},
            "capabilities": {},
        }))
        assert resp["id"] == 1
        result = resp["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"] == {"name": "linkwarden-mcp", "version": "1.2.3"}
        assert "tools" in result["capabilities"]
        assert server.session.client.name == "inspector"

    @pytest.mark.asyncio
    async def test_initialize_unknown_version(self, server):
        resp = await server.handle_line(rpc("initialize", 1, {"protocolVersion": "1999-01-01"}))
        assert resp["result"]["protocolVersion"] == LATEST_PROTOCOL_VERSION

    @pytest.mark.asyncio
    async def test_initialized_notification(self, server):
        assert await server.handle_line(rpc("notifications/initialized")) is None
        assert server.session.initialized is True

    @pytest.mark.asyncio
    async def test_ping(self, server):
        resp = await server.handle_line(rpc("ping", "abc"))
        assert resp == {"jsonrpc": "2.0", "id": "abc", "result": {}}

    @pytest.mark.asyncio
    async def test_tools_list(self, server):
        resp = await server.handle_line(rpc("tools/list", 2))
        tools = resp["result"]["tools"]
        assert [t["name"] for t in tools] == ["echo"]
        assert tools[0]["inputSchema"]["required"] == ["text"]

    @pytest.mark.asyncio
    async def test_tools_call(self, server):
        resp = await server.handle_line(rpc("tools/call", 3, {"name": "echo", "arguments": {"text": "hi"}}))
        assert resp["result"] == {"content": [{"type": "text", "text": "hi"}], "isError": False}
        assert server.session.requests_handled == 1

    @pytest.mark.asyncio
    async def test_tools_call_validation_error(self, server):
        resp = await server.handle_line(rpc("tools/call", 3, {"name": "echo"}))
        assert resp["result"]["isError"] is True
        assert resp["result"]["content"][0]["text"] == "Validation errors:\n- missing required parameter: text"

    @pytest.mark.asyncio
    async def test_tools_call_non_object_arguments(self, server):
        resp = await server.handle_line(rpc("tools/call", 3, {"name": "echo", "arguments": [1]}))
        assert resp["result"]["isError"] is True
        assert "invalid arguments type" in resp["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        resp = await server.handle_line(rpc("tools/call", 4, {"name": "delete_everything"}))
        assert resp["result"]["isError"] is True
        assert resp["result"]["content"][0]["text"] == "unknown tool: delete_everything"

    @pytest.mark.asyncio
    async def test_tools_call_without_name(self, server):
        resp = await server.handle_line(rpc("tools/call", 5, {"arguments": {}}))
        assert resp["error"]["code"] == -32602
        assert resp["id"] == 5

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        resp = await server.handle_line(rpc("resources/list", 6))
        assert resp["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_parse_error(self, server):
        resp = await server.handle_line(b"{not json\n")
        assert resp == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}

    @pytest.mark.asyncio
    async def test_deeply_nested_line(self, server):
        resp = await server.handle_line(b"[" * 50000 + b"\n")
        assert resp == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, server):
        resp = await server.handle_line(b"\xff\xfe\n")
        assert resp["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_not_an_object(self, server):
        resp = await server.handle_line(b"[1, 2]\n")
        assert resp["error"]["code"] == -32600
        assert resp["id"] is None

    @pytest.mark.asyncio
    async def test_invalid_request_keeps_id(self, server):
        resp = await server.handle_line(b'{"id": 9, "method": "ping"}\n')
        assert resp["error"]["code"] == -32600
        assert resp["id"] == 9

    @pytest.mark.asyncio
    async def test_blank_line(self, server):
        assert await server.handle_line(b"   \n") is None

    @pytest.mark.asyncio
    async def test_set_level(self, server):
        pkg_logger = logging.getLogger("linkwarden_mcp")
        old_level = pkg_logger.level
        try:
            resp = await server.handle_line(rpc("logging/setLevel", 7, {"level": "debug"}))
            assert resp["result"] == {}
            assert pkg_logger.level == logging.DEBUG
        finally:
            pkg_logger.setLevel(old_level)

    @pytest.mark.asyncio
    async def test_set_level_invalid(self, server):
        resp = await server.handle_line(rpc("logging/setLevel", 7, {"level": "loud"}))
        assert resp["error"]["code"] == -32602


# ──────────────────────────────────────────────────────────
# Request loop
# ──────────────────────────────────────────────────────────

class TestListen:
    @pytest.mark.asyncio
    async def test_session_until_eof(self, server):
        reader = make_reader(
            rpc("initialize", 1, {"protocolVersion": LATEST_PROTOCOL_VERSION}),
            rpc("notifications/initialized"),
            b"\n",
            b"garbage\n",
            rpc("tools/call", 2, {"name": "echo", "arguments": {"text": "one"}}),
            rpc("tools/call", 3, {"name": "echo", "arguments": {"text": "two"}}),
        )
        writer = FakeWriter()

        with pytest.raises(TransportClosed):
            await server.listen(reader, writer)

        assert server.state is ServerState.STOPPED
        assert [m["id"] for m in writer.messages] == [1, None, 2, 3]
        assert writer.messages[1]["error"]["code"] == -32700
        assert writer.messages[3]["result"]["content"][0]["text"] == "two"

    @pytest.mark.asyncio
    async def test_nested_line_keeps_loop_running(self, server):
        reader = make_reader(b"[" * 50000 + b"\n", rpc("ping", 1))
        writer = FakeWriter()

        with pytest.raises(TransportClosed):
            await server.listen(reader, writer)

        assert writer.messages[0]["error"]["code"] == -32700
        assert writer.messages[1] == {"jsonrpc": "2.0", "id": 1, "result": {}}

    @pytest.mark.asyncio
    async def test_shutdown_while_idle(self, server):
        reader = make_reader(eof=False)
        task = asyncio.ensure_future(server.listen(reader, FakeWriter()))
        await asyncio.sleep(0.01)
        assert server.state is ServerState.RUNNING

        server.shutdown()
        await asyncio.wait_for(task, timeout=1)

        assert server.state is ServerState.STOPPED

    @pytest.mark.asyncio
    async def test_shutdown_drains_in_flight_request(self):
        started, release = asyncio.Event(), asyncio.Event()

        async def slow(ctx, request):
            started.set()
            await release.wait()
            return ToolResult.of_text("finished")

        server = StdioServer(ToolExecutor([Tool("slow", "Slow tool.", [], slow)]))
        reader = make_reader(
            rpc("tools/call", 1, {"name": "slow"}),
            rpc("tools/call", 2, {"name": "slow"}),
            eof=False,
        )
        writer = FakeWriter()
        task = asyncio.ensure_future(server.listen(reader, writer))

        await asyncio.wait_for(started.wait(), timeout=1)
        server.shutdown()
        assert server.state is ServerState.DRAINING
        release.set()
        await asyncio.wait_for(task, timeout=1)

        assert server.state is ServerState.STOPPED
        assert len(writer.messages) == 1
        assert writer.messages[0]["id"] == 1
        assert writer.messages[0]["result"]["content"][0]["text"] == "finished"

    @pytest.mark.asyncio
    async def test_write_failure(self, server):
        reader = make_reader(rpc("ping", 1))
        with pytest.raises(TransportError) as exc:
            await server.listen(reader, BrokenWriter())
        assert not isinstance(exc.value, TransportClosed)
        assert server.state is ServerState.STOPPED

    @pytest.mark.asyncio
    async def test_listen_only_once(self, server):
        with pytest.raises(TransportClosed):
            await server.listen(make_reader(), FakeWriter())
        with pytest.raises(RuntimeError):
            await server.listen(make_reader(), FakeWriter())


# ──────────────────────────────────────────────────────────
# Exposure policy through the full request path
# ──────────────────────────────────────────────────────────

class TestToolExposure:
    async def _call(self, group, name, arguments):
        server = StdioServer(ToolExecutor(group.exposed_tools()))
        resp = await server.handle_line(rpc("tools/call", 1, {"name": name, "arguments": arguments}))
        return resp["result"]

    @pytest.mark.asyncio
    async def test_tool_of_disabled_toolset_is_unknown(self, client, linkwarden):
        group = new_toolsets(client, ["search"])
        result = await self._call(group, "delete_tag_by_id", {"id": 3})

        assert result["isError"] is True
        assert result["content"][0]["text"] == "unknown tool: delete_tag_by_id"
        assert linkwarden.requests == []

    @pytest.mark.asyncio
    async def test_write_tool_hidden_when_read_only(self, client, linkwarden):
        group = new_toolsets(client, ["all"], read_only=True)
        result = await self._call(group, "delete_link_by_id", {"id": 8})

        assert result["isError"] is True
        assert result["content"][0]["text"] == "unknown tool: delete_link_by_id"
        assert linkwarden.requests == []

    @pytest.mark.asyncio
    async def test_read_tool_still_served_when_read_only(self, client, linkwarden):
        linkwarden.route("GET", "/api/v1/tags", json={"response": []})
        group = new_toolsets(client, ["tags"], read_only=True)
        result = await self._call(group, "get_all_tags", {})

        assert result["isError"] is False
        assert len(linkwarden.requests) == 1
