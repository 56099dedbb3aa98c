"""Protocol definitions for dependency injection and interface contracts."""

from typing import Any, Protocol


class TokenProvider(Protocol):
    """Protocol for authentication token providers."""

    async def get_valid_token(self) -> str:
        """Get a valid authentication token.

        Returns:
            Valid bearer token string.
        """
        ...


class TokenSigner(Protocol):
    """Protocol for turning a claim set into a signed token."""

    def sign(self, claims: dict[str, Any], headers: dict[str, Any]) -> str:
        """Sign claims, embedding the extra headers in the token header.

        Returns:
            Compact serialized token.
        """
        ...
