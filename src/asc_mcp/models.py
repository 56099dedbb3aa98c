from typing import Any

from mcp.types import CallToolResult, TextContent
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from .consts import JSONRPC_VERSION
from .exceptions import AscMCPError, TransportError, UpstreamError

# =============================================================================
# JSON-RPC ENVELOPE
# =============================================================================
# One object per line in both directions. A request without an id is a
# notification and is never answered.

RequestId = StrictInt | StrictStr


class JSONRPCRequest(BaseModel):
    """Incoming request or notification."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: str = Field(..., description="Protocol version literal, must be 2.0")
    id: RequestId | None = Field(
        None, description="Correlation id, absent for notifications"
    )
    method: str = Field(..., description="Method name")
    params: Any = Field(None, description="Method-specific parameters")

    @property
    def is_notification(self) -> bool:
        return self.id is None


class ErrorData(BaseModel):
    """Structured JSON-RPC error."""

    code: int
    message: str
    data: str | None = None


class JSONRPCResponse(BaseModel):
    """Outgoing response; exactly one of result and error is set."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId | None = None
    result: dict[str, Any] | None = None
    error: ErrorData | None = None

    @model_validator(mode="after")
    def _one_of_result_or_error(self) -> "JSONRPCResponse":
        if (self.result is None) == (self.error is None):
            raise ValueError("exactly one of result and error must be set")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Build the wire object, omitting an unknown id."""
        message: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.id is not None:
            message["id"] = self.id
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result
        return message


class ClientInfo(BaseModel):
    name: str = "unknown"
    version: str = "unknown"


class InitializeParams(BaseModel):
    """Handshake parameters; clients vary, so everything is optional."""

    model_config = ConfigDict(extra="allow")

    protocolVersion: str | None = None
    capabilities: dict[str, Any] = Field(default_factory=dict)
    clientInfo: ClientInfo = Field(default_factory=ClientInfo)


class CallToolParams(BaseModel):
    """Parameters of tools/call."""

    name: str
    arguments: dict[str, Any] | None = None


# =============================================================================
# APP STORE CONNECT DOCUMENT FRAGMENTS
# =============================================================================
# Only the parts of JSON:API documents the transport itself reads: pagination
# links and error objects. Resource payloads stay as plain dicts.


class PagedDocumentLinks(BaseModel):
    """Pagination links of a collection document."""

    model_config = ConfigDict(populate_by_name=True)

    self_: str | None = Field(None, alias="self")
    first: str | None = None
    next: str | None = None


class APIErrorDetail(BaseModel):
    """A single error object from an App Store Connect error document."""

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str = ""
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.title}: {self.detail}"


class ErrorResponse(BaseModel):
    """App Store Connect error document."""

    errors: list[APIErrorDetail] = Field(default_factory=list)


# =============================================================================
# TOOL RESULTS
# =============================================================================
# Tool failures are successful protocol responses whose result is flagged
# isError, so the calling agent can read the message and react.


def text_result(text: str) -> CallToolResult:
    """Successful tool result carrying one text block."""
    return CallToolResult(content=[TextContent(type="text", text=text)])


def error_result(
    message: str,
    *,
    errors: list[str] | None = None,
    suggestions: list[str] | None = None,
) -> CallToolResult:
    """Failed tool result rendered as readable text."""
    lines = [message]
    if errors:
        lines.append("")
        lines.extend(f"- {e}" for e in errors)
    if suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"- {s}" for s in suggestions)
    return CallToolResult(
        content=[TextContent(type="text", text="\n".join(lines))], isError=True
    )


def result_from_error(error: Exception) -> CallToolResult:
    """Create a failed tool result from any Exception, with potentially helpful info for recovery.

    Args:
        error: Any Exception instance

    Returns:
        CallToolResult flagged as an error
    """
    if isinstance(error, ValidationError):
        return error_result(
            "Invalid arguments",
            errors=[
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in error.errors()
            ],
            suggestions=["Check the tool's input schema with tools/list"],
        )

    if isinstance(error, UpstreamError):
        status_code = error.status_code
        if status_code == 401:
            suggestions = [
                "Verify ASC_ISSUER_ID and ASC_KEY_ID match the private key",
            ]
        elif status_code == 403:
            suggestions = ["Check the API key's role allows this operation"]
        elif status_code == 404:
            suggestions = ["Check the resource ID - list the parent resource first"]
        elif status_code == 409:
            suggestions = ["The resource is in a state that does not allow this change"]
        elif status_code == 429:
            suggestions = ["Rate limit reached - wait before retrying"]
        elif status_code >= 500:
            suggestions = ["App Store Connect is having problems - try again later"]
        else:
            suggestions = error.suggestions or ["Check the request and try again"]
        return error_result(error.message, errors=error.errors, suggestions=suggestions)

    if isinstance(error, TransportError):
        return error_result(
            error.message,
            errors=error.errors,
            suggestions=error.suggestions
            or [
                "Check your internet connection",
                "Try again - this may be a temporary network issue",
            ],
        )

    if isinstance(error, AscMCPError):
        return error_result(
            error.message, errors=error.errors, suggestions=error.suggestions
        )

    return error_result(
        f"Unexpected error: {error}",
        suggestions=["Check server logs for detailed information"],
    )
