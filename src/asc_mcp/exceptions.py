"""asc-mcp custom exceptions.

Exception Design Principles:
1. Use these custom exceptions only when additional useful context can be provided
2. Handle exceptions as late as possible (preserve details until domain context is available)
3. Split on domain of actionable information:
   - Recoverable by user reconfiguration outside session (ConfigError, CredentialError)
   - Rejected by App Store Connect, maybe recoverable in-session (UpstreamError)
   - App Store Connect could not be reached (TransportError)
"""


class AscMCPError(Exception):
    """Base exception for all asc-mcp errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] | None = None,  # detailed list of errors (if available)
        suggestions: list[str] | None = None,  # remedial actions
        context: dict | None = None,  # additional detailed context
    ):
        """Initialize AscMCPError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(AscMCPError):
    """Application configuration errors - recoverable by user reconfiguration.

    Covers setup issues that prevent initialization but can be resolved by
    user action outside the current session, such as missing settings or
    unreadable files.
    """

    pass


class CredentialError(ConfigError):
    """The API private key could not be loaded.

    Raised only while constructing the credential manager: a key that parses
    once can always sign, so this never occurs mid-session.
    """

    pass


class UpstreamError(AscMCPError):
    """App Store Connect answered with a non-2xx status.

    ``errors`` holds the upstream's own ``title: detail`` strings when the
    response was a JSON:API error document.
    """

    def __init__(self, message: str, *, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class TransportError(AscMCPError):
    """App Store Connect could not be reached or answered with something unreadable.

    Timeouts, refused connections, DNS failures and malformed JSON bodies.
    """

    pass


class ProtocolError(Exception):
    """A request was rejected by the protocol engine itself.

    Carries a JSON-RPC error code. Never raised by tools: it describes the
    envelope or session state, not App Store Connect.
    """

    def __init__(self, code: int, message: str, data: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data
