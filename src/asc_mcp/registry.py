"""Tool registry: a name-indexed table of callable App Store Connect operations."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mcp.types import CallToolResult, Tool
from pydantic import BaseModel, ValidationError

from .client import AppStoreConnectClient
from .exceptions import AscMCPError
from .models import error_result, result_from_error, text_result
from .utils import suggest_similar_strings

logger = logging.getLogger("asc-mcp.registry")

ToolHandler = Callable[[AppStoreConnectClient, Any], Awaitable[str]]


class NoArguments(BaseModel):
    """Argument model for tools that take no input."""


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: Tool
    args_model: type[BaseModel]
    handler: ToolHandler


class ToolRegistry:
    """Tools exposed over the protocol.

    Responsibilities:
    - Keep tool descriptors in registration order, names unique
    - Validate arguments against each tool's pydantic model
    - Convert every failure into an error-flagged result; handlers never raise
      across ``call_tool``
    """

    def __init__(self, client: AppStoreConnectClient | None):
        """Initialize ToolRegistry.

        Args:
            client: Client handed to every handler. May be None when the
                registry is only used to list tools.
        """
        self.client = client
        self._tools: dict[str, RegisteredTool] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        handler: ToolHandler,
    ) -> None:
        """Add a tool.

        Raises:
            ValueError: If a tool with this name is already registered.
        """
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")

        input_schema = args_model.model_json_schema()
        input_schema.pop("title", None)
        descriptor = Tool(name=name, description=description, inputSchema=input_schema)
        self._tools[name] = RegisteredTool(descriptor, args_model, handler)
        logger.debug(f"Registered tool {name}")

    def tool(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel] = NoArguments,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(name, description, args_model, handler)
            return handler

        return decorator

    def list_tools(self) -> list[Tool]:
        """All tool descriptors in registration order."""
        return [registered.descriptor for registered in self._tools.values()]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> CallToolResult:
        """Invoke a tool by name.

        Args:
            name: Tool name.
            arguments: Raw argument object from the client.

        Returns:
            The tool's text result, or an error-flagged result.
        """
        registered = self._tools.get(name)
        if registered is None:
            similar = suggest_similar_strings(name, self._tools)
            return error_result(
                f"Unknown tool: {name}",
                suggestions=[f"Did you mean '{s}'?" for s in similar]
                or ["Use tools/list to see available tools"],
            )

        try:
            args = registered.args_model.model_validate(arguments or {})
        except ValidationError as e:
            logger.info(f"Invalid arguments for {name}: {e.error_count()} errors")
            return result_from_error(e)

        logger.info(f"Calling tool {name}")
        try:
            text = await registered.handler(self.client, args)
        except Exception as e:
            if isinstance(e, AscMCPError):
                logger.warning(f"Tool {name} failed: {e}")
            else:
                logger.exception(f"Tool {name} raised unexpectedly")
            return result_from_error(e)

        logger.info(f"Tool {name} completed")
        return text_result(text)
