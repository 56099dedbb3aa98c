"""MCP protocol engine: newline-delimited JSON-RPC over a pair of byte streams."""

import asyncio
import json
import logging
import sys
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import IO, Any

from mcp.types import (
    Implementation,
    InitializeResult,
    ListToolsResult,
    ServerCapabilities,
    ToolsCapability,
)
from pydantic import ValidationError

from .consts import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PACKAGE_VERSION,
    PARSE_ERROR,
    PROTOCOL_VERSION,
    SERVER_NAME,
)
from .exceptions import ProtocolError
from .models import (
    CallToolParams,
    ClientInfo,
    ErrorData,
    InitializeParams,
    JSONRPCRequest,
    JSONRPCResponse,
    RequestId,
)
from .registry import ToolRegistry

logger = logging.getLogger("asc-mcp.server")

INSTRUCTIONS = """
App Store Connect MCP server.

This MCP server allows you to:
1. Inspect apps, App Store versions and builds.
2. Manage TestFlight beta groups and beta testers.
3. Read and respond to customer reviews.

IDs are App Store Connect resource IDs: list the parent resource first
(e.g. list_apps before get_app_versions).
"""

MethodHandler = Callable[[Any], Awaitable[dict[str, Any]]]


@dataclass
class Session:
    """Per-connection handshake state. Never reset once initialized."""

    initialized: bool = False
    client_ready: bool = False
    client_info: ClientInfo | None = None
    protocol_version: str | None = None


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'request'}: {err['msg']}"
        for err in error.errors()
    )


def _echo_id(request_id: Any) -> RequestId | None:
    if isinstance(request_id, bool) or not isinstance(request_id, (int, str)):
        return None
    return request_id


def _dump(model) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class MCPServer:
    """JSON-RPC request/response lifecycle for one client connection.

    Responsibilities:
    - Read one line at a time and handle it to completion before the next
    - Gate tools/list and tools/call behind the initialize handshake
    - Answer requests in order; never answer notifications
    - Keep each bad line isolated: the loop only ends at end of input

    Writes are serialized by a lock so a response line is never interleaved
    with another one.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        reader: IO[bytes],
        writer: IO[bytes],
        *,
        server_name: str = SERVER_NAME,
        server_version: str = PACKAGE_VERSION,
    ):
        """Initialize MCPServer.

        Args:
            registry: Tools exposed to the client.
            reader: Binary input stream providing ``readline()``.
            writer: Binary output stream providing ``write()`` and ``flush()``.
            server_name: Name reported in the handshake.
            server_version: Version reported in the handshake.
        """
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self.session = Session()
        self._reader = reader
        self._writer = writer
        self._write_lock = threading.Lock()
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def run(self) -> None:
        """Process input lines until end of stream."""
        logger.info(f"MCP server {self.server_name} v{self.server_version} starting")
        while True:
            line = await asyncio.to_thread(self._reader.readline)
            if not line:
                logger.info("Client disconnected")
                return
            await self.handle_line(line)

    async def handle_line(self, line: bytes | str) -> None:
        """Handle one raw input line, emitting at most one response line."""
        if not line.strip():
            return

        try:
            message = json.loads(line)
        except ValueError as e:
            logger.warning(f"Unparseable input line: {e}")
            self._send_error(None, PARSE_ERROR, "Parse error", str(e))
            return

        if not isinstance(message, dict):
            logger.warning(f"Input line is a JSON {type(message).__name__}, not an object")
            self._send_error(None, PARSE_ERROR, "Parse error", "message must be a JSON object")
            return

        request_id = message.get("id")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            logger.warning(f"Rejecting message with jsonrpc={message.get('jsonrpc')!r}")
            if request_id is not None:
                self._send_error(
                    _echo_id(request_id), INVALID_REQUEST, "Invalid Request", "jsonrpc must be 2.0"
                )
            return

        try:
            request = JSONRPCRequest.model_validate(message)
        except ValidationError as e:
            if request_id is None:
                logger.debug(f"Dropping malformed notification: {_describe(e)}")
                return
            logger.warning(f"Rejecting malformed request: {_describe(e)}")
            self._send_error(
                _echo_id(request_id), INVALID_REQUEST, "Invalid Request", _describe(e)
            )
            return

        if request.is_notification:
            self._handle_notification(request)
            return

        await self._dispatch(request)

    async def _dispatch(self, request: JSONRPCRequest) -> None:
        handler = self._methods.get(request.method)
        if handler is None:
            logger.info(f"Method not found: {request.method}")
            self._send_error(
                request.id, METHOD_NOT_FOUND, "Method not found", request.method
            )
            return

        logger.debug(f"Handling {request.method} (id={request.id})")
        try:
            result = await handler(request.params)
        except ProtocolError as e:
            logger.info(f"{request.method} rejected: {e.message}")
            self._send_error(request.id, e.code, e.message, e.data)
            return
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.method}")
            self._send_error(request.id, INTERNAL_ERROR, "Internal error", str(e))
            return

        self._send_result(request.id, result)

    def _handle_notification(self, request: JSONRPCRequest) -> None:
        if request.method == "notifications/initialized":
            self.session.client_ready = True
            logger.info("Client initialized")
        elif request.method == "notifications/cancelled":
            params = request.params if isinstance(request.params, dict) else {}
            logger.info(
                f"Client cancelled request {params.get('requestId')}; "
                "requests run to completion, ignoring"
            )
        else:
            logger.debug(f"Ignoring notification {request.method}")

    def _require_initialized(self) -> None:
        if not self.session.initialized:
            raise ProtocolError(
                INVALID_REQUEST, "Not initialized", "initialize must be called first"
            )

    async def _initialize(self, params: Any) -> dict[str, Any]:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "Invalid params", "params must be an object")
        try:
            init = InitializeParams.model_validate(params)
        except ValidationError as e:
            raise ProtocolError(INVALID_PARAMS, "Invalid params", _describe(e)) from e

        logger.info(
            f"Initializing with client: {init.clientInfo.name} v{init.clientInfo.version}"
        )
        if init.protocolVersion and init.protocolVersion != PROTOCOL_VERSION:
            logger.info(
                f"Client requested protocol {init.protocolVersion}, "
                f"answering with {PROTOCOL_VERSION}"
            )

        self.session.initialized = True
        self.session.client_info = init.clientInfo
        self.session.protocol_version = PROTOCOL_VERSION

        return _dump(
            InitializeResult(
                protocolVersion=PROTOCOL_VERSION,
                capabilities=ServerCapabilities(tools=ToolsCapability(listChanged=False)),
                serverInfo=Implementation(
                    name=self.server_name, version=self.server_version
                ),
                instructions=INSTRUCTIONS.strip(),
            )
        )

    async def _ping(self, params: Any) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: Any) -> dict[str, Any]:
        self._require_initialized()
        return _dump(ListToolsResult(tools=self.registry.list_tools()))

    async def _call_tool(self, params: Any) -> dict[str, Any]:
        self._require_initialized()
        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "Invalid params", "params must be an object")
        try:
            call = CallToolParams.model_validate(params)
        except ValidationError as e:
            raise ProtocolError(INVALID_PARAMS, "Invalid params", _describe(e)) from e

        result = await self.registry.call_tool(call.name, call.arguments)
        return _dump(result)

    def _send_result(self, request_id, result: dict[str, Any]) -> None:
        self._send(JSONRPCResponse(id=request_id, result=result))

    def _send_error(
        self, request_id, code: int, message: str, data: str | None = None
    ) -> None:
        self._send(
            JSONRPCResponse(
                id=request_id, error=ErrorData(code=code, message=message, data=data)
            )
        )

    def _send(self, response: JSONRPCResponse) -> None:
        line = json.dumps(response.to_wire(), separators=(",", ":")) + "\n"
        with self._write_lock:
            try:
                self._writer.write(line.encode("utf-8"))
                self._writer.flush()
            except OSError as e:
                logger.error(f"Failed to write response: {e}")


async def serve_stdio(registry: ToolRegistry) -> None:
    """Run a server on this process's stdin/stdout until stdin closes."""
    server = MCPServer(registry, sys.stdin.buffer, sys.stdout.buffer)
    await server.run()
