"""High-value constants for the asc-mcp package."""

# JSON-RPC error codes, re-exported for the protocol engine
from mcp.types import (  # noqa: F401
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)

# Package metadata
PACKAGE_VERSION = "1.0.0"
SERVER_NAME = "asc-mcp"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
BASE_URL = "https://api.appstoreconnect.apple.com"
TOKEN_AUDIENCE = "appstoreconnect-v1"
TOKEN_ALGORITHM = "ES256"
MAX_PAGE_SIZE = 200
RESOURCE_ID_PATTERN = r"^[A-Za-z0-9_-]+$"  # numeric ids and UUIDs, one path segment

# Business logic consts
TOKEN_DURATION_SECONDS = 15 * 60  # upstream accepts at most 20 minutes
TOKEN_REFRESH_BUFFER_SECONDS = 2 * 60  # refresh 2min early
DEFAULT_TIMEOUT_SECONDS = 30

# Wire protocol consts
JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
