"""MCP stdio server — reads JSON-RPC requests line by line and dispatches tool calls."""
import asyncio
import enum
import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from . import __version__
from .errors import TransportClosed, TransportError
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SUPPORTED_PROTOCOL_VERSIONS,
    CallToolParams,
    InitializeParams,
    Request,
    RpcError,
    SetLevelParams,
    error_response,
    result_response,
)
from .session import ClientInfo, RequestContext, Session
from .tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

SERVER_NAME = "linkwarden-mcp"
STREAM_LIMIT = 16 * 1024 * 1024

# MCP logging levels -> stdlib levels
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


class ServerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class StdoutWriter:
    """Line writer over a raw file descriptor.

    Blocking writes run in a worker thread so a slow reader on the other end
    of the pipe never stalls the event loop.
    """

    def __init__(self, fd: int):
        self.fd = fd

    async def write_line(self, data: bytes):
        await asyncio.to_thread(self._write_all, data)

    def _write_all(self, data: bytes):
        view = memoryview(data)
        while view:
            written = os.write(self.fd, view)
            view = view[written:]


async def open_stdio_streams(stdin=None, stdout=None):
    """Wrap stdin in an asyncio.StreamReader and stdout in a StdoutWriter."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader(limit=STREAM_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, stdin)
    return reader, StdoutWriter(stdout.fileno())


class StdioServer:
    """Serves one MCP caller over a pair of byte streams.

    `reader` needs an async ``readline()`` (asyncio.StreamReader); `writer`
    needs an async ``write_line(bytes)``. Requests are handled strictly one
    at a time, in arrival order.
    """

    def __init__(self, executor: ToolExecutor, session: Optional[Session] = None,
                 name: str = SERVER_NAME, version: str = __version__):
        self.executor = executor
        self.session = session or Session()
        self.name = name
        self.version = version
        self.state = ServerState.IDLE
        self._stop = asyncio.Event()
        self._write_lock = asyncio.Lock()

        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "logging/setLevel": self._set_level,
        }

    # ──────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────

    async def listen(self, reader, writer):
        """Run the request loop until shutdown(), end of input or a stream failure.

        Returns normally after shutdown(). Raises TransportClosed at end of
        input and TransportError when reading or writing fails.
        """
        if self.state is not ServerState.IDLE:
            raise RuntimeError(f"server cannot listen from state {self.state.value}")
        self.state = ServerState.RUNNING
        logger.info(f"[{self.session.session_id}] {self.name} {self.version} listening on stdio "
                    f"({len(self.executor)} tools)")

        try:
            while not self._stop.is_set():
                line = await self._read_line(reader)
                if line is None:
                    break
                response = await self.handle_line(line)
                if response is not None:
                    await self._write(writer, response)
        finally:
            self.state = ServerState.STOPPED
            logger.info(f"[{self.session.session_id}] Server stopped after "
                        f"{self.session.requests_handled} requests in {self.session.uptime():.0f}s")

    def shutdown(self):
        """Stop reading new requests; an in-flight request still gets its response."""
        if self.state is ServerState.RUNNING:
            logger.info("Shutdown requested, draining")
            self.state = ServerState.DRAINING
        self._stop.set()

    async def _read_line(self, reader) -> Optional[bytes]:
        """Next input line, or None once shutdown() has been called."""
        read_task = asyncio.ensure_future(reader.readline())
        stop_task = asyncio.ensure_future(self._stop.wait())
        try:
            done, _ = await asyncio.wait({read_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()

        if read_task not in done:
            read_task.cancel()
            try:
                await read_task
            except asyncio.CancelledError:
                pass
            return None

        try:
            line = read_task.result()
        except (OSError, ValueError) as e:
            # ValueError: line longer than the stream limit
            raise TransportError(f"failed to read request: {e}") from e
        if not line:
            raise TransportClosed("input stream closed")
        return line

    async def _write(self, writer, message: Dict[str, Any]):
        data = json.dumps(message, ensure_ascii=False).encode("utf-8") + b"\n"
        async with self._write_lock:
            try:
                await writer.write_line(data)
            except OSError as e:
                raise TransportError(f"failed to write response: {e}") from e

    # ──────────────────────────────────────────────────────────
    # Message handling
    # ──────────────────────────────────────────────────────────

    async def handle_line(self, line: bytes) -> Optional[Dict[str, Any]]:
        """Decode one input line and handle it. Returns the response, if any."""
        try:
            text = line.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.warning("Dropping request line that is not valid UTF-8")
            return error_response(None, PARSE_ERROR, "Parse error")
        if not text:
            return None

        try:
            payload = json.loads(text)
        except (ValueError, RecursionError) as e:
            # RecursionError: nesting deeper than the decoder can follow
            logger.warning(f"Unparseable request: {e}")
            return error_response(None, PARSE_ERROR, "Parse error")
        return await self.handle_message(payload)

    async def handle_message(self, payload: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(payload, dict):
            return error_response(None, INVALID_REQUEST, "Invalid Request")
        try:
            request = Request.model_validate(payload)
        except ValidationError:
            request_id = payload.get("id")
            if not isinstance(request_id, (int, str)) or isinstance(request_id, bool):
                request_id = None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        idle = self.session.idle_seconds()
        self.session.touch()
        sid = self.session.session_id

        if request.is_notification:
            logger.debug(f"[{sid}] <- {request.method} (notification)")
            self._notify(request)
            return None

        logger.info(f"[{sid}] <- {request.method} id={request.id} (idle {idle:.1f}s)")
        t0 = time.monotonic()
        handler = self._methods.get(request.method)
        try:
            if handler is None:
                raise RpcError(METHOD_NOT_FOUND, f"Method not found: {request.method}")
            result = await handler(request)
        except RpcError as e:
            response = error_response(request.id, e.code, e.message, e.data)
        except Exception as e:
            logger.error(f"Request {request.method} failed: {e}", exc_info=True)
            response = error_response(request.id, INTERNAL_ERROR, "Internal error")
        else:
            response = result_response(request.id, result)

        self.session.requests_handled += 1
        elapsed = time.monotonic() - t0
        outcome = "error" if "error" in response else "ok"
        logger.info(f"[{sid}] -> {request.method} id={request.id} {outcome} in {elapsed:.2f}s")
        return response

    def _notify(self, request: Request):
        if request.method == "notifications/initialized":
            self.session.initialized = True
            logger.info(f"[{self.session.session_id}] Client initialized: "
                        f"{self.session.client.name} {self.session.client.version}".rstrip())

    # ──────────────────────────────────────────────────────────
    # Methods
    # ──────────────────────────────────────────────────────────

    async def _initialize(self, request: Request) -> Dict[str, Any]:
        try:
            params = InitializeParams.model_validate(request.params or {})
        except ValidationError as e:
            raise RpcError(INVALID_PARAMS, f"Invalid params: {e.error_count()} error(s)")

        if params.protocol_version in SUPPORTED_PROTOCOL_VERSIONS:
            version = params.protocol_version
        else:
            version = LATEST_PROTOCOL_VERSION
        self.session.client = ClientInfo(
            name=params.client_info.name,
            version=params.client_info.version,
            protocol_version=version,
        )
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}, "logging": {}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    async def _ping(self, request: Request) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, request: Request) -> Dict[str, Any]:
        return {"tools": self.executor.list_tools()}

    async def _call_tool(self, request: Request) -> Dict[str, Any]:
        try:
            params = CallToolParams.model_validate(request.params or {})
        except ValidationError:
            raise RpcError(INVALID_PARAMS, "Invalid params: tools/call needs a tool name")

        ctx = RequestContext(session=self.session, request_id=request.id)
        result = await self.executor.execute(params.name, params.arguments, ctx)
        return result.to_content()

    async def _set_level(self, request: Request) -> Dict[str, Any]:
        try:
            params = SetLevelParams.model_validate(request.params or {})
        except ValidationError:
            raise RpcError(INVALID_PARAMS, f"Invalid params: level must be one of {', '.join(LOG_LEVELS)}")
        logging.getLogger("linkwarden_mcp").setLevel(LOG_LEVELS[params.level])
        logger.info(f"Log level set to {params.level}")
        return {}
