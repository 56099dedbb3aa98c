"""App Store Connect client: handles low-level API calls."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .auth import CredentialManager
from .config import Config, get_config
from .consts import MAX_PAGE_SIZE, USER_AGENT
from .exceptions import TransportError, UpstreamError
from .models import ErrorResponse, PagedDocumentLinks
from .protocols import TokenProvider

logger = logging.getLogger("asc-mcp.client")


class AppStoreConnectClient:
    """App Store Connect API client with authentication.

    Responsibilities:
    - Perform one authenticated call per request and decode the JSON body
    - Follow pagination links for list operations
    - Translate HTTP failures into UpstreamError / TransportError

    No retries happen here: whether a write may be repeated is the caller's
    decision.
    """

    def __init__(
        self,
        config: Config | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize AppStoreConnectClient.

        Args:
            config: Config instance. If None, uses get_config().
            token_provider: Authentication token provider. If None, creates a
                CredentialManager from the config.
            http_client: HTTP client. If None, creates a new one.

        Raises:
            CredentialError: If no token provider is given and the configured
                private key cannot be loaded.
        """
        self.config = config or get_config()

        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
        )

        self.token_provider = token_provider or CredentialManager.from_config(
            self.config
        )

        logger.info(f"App Store Connect client created for {self.config.base_url}")

    async def __aenter__(self) -> "AppStoreConnectClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()

    def url_for(self, path: str) -> str:
        """Absolute URL for an API path; absolute URLs pass through unchanged."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{self.config.base_url}{path}"

    async def execute(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Perform one authenticated request.

        Args:
            method: HTTP verb.
            path: API path (e.g. ``/v1/apps``) or absolute URL.
            params: Query parameters (reads).
            json: Request body (writes).

        Returns:
            Parsed JSON data, or None when the response has no body.

        Raises:
            UpstreamError: For HTTP 4xx/5xx responses.
            TransportError: For network errors, timeouts and malformed JSON.
        """
        token = await self.token_provider.get_valid_token()
        headers = {"Authorization": f"Bearer {token}"}
        url = self.url_for(path)

        logger.debug(f"{method} {url}")
        try:
            response = await self.http_client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request to App Store Connect timed out: {method} {path}",
                errors=[str(e) or type(e).__name__],
                suggestions=["Try again - App Store Connect may be slow right now"],
                context={"url": url},
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"Could not reach App Store Connect: {e}",
                errors=[str(e) or type(e).__name__],
                context={"url": url},
            ) from e

        if response.is_error:
            raise self._upstream_error(response)

        logger.debug(f"{method} {url} -> {response.status_code}")
        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "App Store Connect returned a malformed JSON response",
                errors=[str(e)],
                context={"url": url, "status_code": response.status_code},
            ) from e

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a resource or collection page."""
        return await self.execute("GET", path, params=params)

    async def post_json(self, path: str, body: Any) -> Any:
        """POST a JSON:API document."""
        return await self.execute("POST", path, json=body)

    async def patch_json(self, path: str, body: Any) -> Any:
        """PATCH a JSON:API document."""
        return await self.execute("PATCH", path, json=body)

    async def delete(self, path: str, body: Any = None) -> None:
        """DELETE a resource (or relationship members, when a body is given)."""
        await self.execute("DELETE", path, json=body)

    async def list_resources(
        self, path: str, params: dict[str, Any] | None = None, *, limit: int
    ) -> dict[str, Any]:
        """Fetch up to ``limit`` resources from a collection, following next links.

        Args:
            path: Collection path.
            params: Filters and other query parameters.
            limit: Maximum number of resources to return.

        Returns:
            Dict with ``data`` (at most ``limit`` items), ``included`` and the
            first page's ``meta``.

        Raises:
            UpstreamError: For HTTP 4xx/5xx responses.
            TransportError: For network errors, timeouts and malformed JSON.
        """
        query = dict(params or {})
        query["limit"] = min(limit, MAX_PAGE_SIZE)

        page = await self.get_json(path, query) or {}
        page_data = page.get("data") or []
        data: list[Any] = list(page_data)
        included: list[Any] = list(page.get("included") or [])
        meta = page.get("meta")
        followed: set[str] = set()

        while len(data) < limit:
            next_url = PagedDocumentLinks.model_validate(page.get("links") or {}).next
            if not next_url:
                break
            if not self._same_origin(next_url):
                logger.warning(f"Not following pagination link to foreign host: {next_url}")
                break
            if not page_data:
                logger.warning(f"Stopping pagination for {path}: empty page with a next link")
                break
            if next_url in followed:
                logger.warning(f"Stopping pagination for {path}: next link repeats {next_url}")
                break
            followed.add(next_url)

            logger.debug(f"Following next page for {path} ({len(data)}/{limit})")
            page = await self.get_json(next_url) or {}
            page_data = page.get("data") or []
            data.extend(page_data)
            included.extend(page.get("included") or [])

        return {"data": data[:limit], "included": included, "meta": meta}

    def _same_origin(self, url: str) -> bool:
        base = httpx.URL(self.config.base_url)
        target = httpx.URL(url)
        return (target.scheme, target.host, target.port) == (
            base.scheme,
            base.host,
            base.port,
        )

    @staticmethod
    def _upstream_error(response: httpx.Response) -> UpstreamError:
        status_code = response.status_code
        try:
            errors = [str(e) for e in ErrorResponse.model_validate(response.json()).errors]
        except (ValueError, ValidationError):
            errors = []
        if not errors and response.text:
            errors = [response.text]

        logger.warning(f"{response.request.method} {response.request.url} -> {status_code}")
        return UpstreamError(
            f"API error ({status_code})",
            status_code=status_code,
            errors=errors,
            context={"url": str(response.request.url)},
        )

