"""App Store Connect MCP Server Package

A Model Context Protocol (MCP) server exposing Apple App Store Connect
(apps, builds, TestFlight, customer reviews) as tools over stdio.
"""

from .auth import CredentialManager, ES256Signer, load_private_key
from .client import AppStoreConnectClient
from .config import Config, get_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    AscMCPError,
    ConfigError,
    CredentialError,
    ProtocolError,
    TransportError,
    UpstreamError,
)
from .registry import ToolRegistry
from .server import MCPServer, Session
from .tools import build_registry

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "build_registry",
    "load_private_key",
    "Config",
    "AppStoreConnectClient",
    "CredentialManager",
    "ES256Signer",
    "MCPServer",
    "Session",
    "ToolRegistry",
    "AscMCPError",
    "ConfigError",
    "CredentialError",
    "ProtocolError",
    "TransportError",
    "UpstreamError",
]
