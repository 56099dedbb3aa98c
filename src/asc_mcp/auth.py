"""Authentication management with token refresh.

App Store Connect accepts bearer tokens that the caller signs itself: a JWT
with the issuer ID as ``iss``, a fixed audience, a lifetime of at most 20
minutes, and the API key ID in the header so the upstream can pick the
matching public key.
"""

import logging
import os
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jose import jwt

from .config import Config
from .consts import (
    TOKEN_ALGORITHM,
    TOKEN_AUDIENCE,
    TOKEN_DURATION_SECONDS,
    TOKEN_REFRESH_BUFFER_SECONDS,
)
from .exceptions import CredentialError
from .protocols import TokenSigner

logger = logging.getLogger("asc-mcp.auth")


def load_private_key(path: str) -> ec.EllipticCurvePrivateKey:
    """Load a PEM-encoded P-256 private key (the .p8 file App Store Connect issues).

    Args:
        path: Path to the key file. ``~`` is expanded.

    Returns:
        The parsed private key.

    Raises:
        CredentialError: If the file cannot be read or does not hold a P-256 key.
    """
    context = {"private_key_path": path}
    try:
        with open(os.path.expanduser(path), "rb") as f:
            key_data = f.read()
    except OSError as e:
        raise CredentialError(
            f"Failed to read private key: {path}",
            errors=[str(e)],
            suggestions=[
                "Check ASC_PRIVATE_KEY_PATH points at the downloaded AuthKey_<KEY_ID>.p8 file",
                "Check file permissions",
            ],
            context=context,
        ) from e

    if b"-----BEGIN" not in key_data:
        raise CredentialError(
            "No PEM block found in private key",
            suggestions=["The key file must be the PEM-encoded .p8 file"],
            context=context,
        )

    try:
        key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CredentialError(
            "Failed to parse private key",
            errors=[str(e)],
            suggestions=["Download a fresh API key from App Store Connect"],
            context=context,
        ) from e

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise CredentialError(
            "Private key is not an elliptic-curve key",
            errors=[f"Got {type(key).__name__}"],
            context=context,
        )
    if not isinstance(key.curve, ec.SECP256R1):
        raise CredentialError(
            f"Private key uses curve {key.curve.name}, expected P-256",
            context=context,
        )

    return key


class ES256Signer:
    """Signs claim sets with an ECDSA P-256 key (JWS ``ES256``)."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey):
        self._key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    def sign(self, claims: dict[str, Any], headers: dict[str, Any]) -> str:
        return jwt.encode(
            claims, self._key_pem, algorithm=TOKEN_ALGORITHM, headers=headers
        )


class CredentialManager:
    """Authentication token manager.

    Responsibilities:
    - Hold the issuer ID, key ID and signer
    - Manage token lifecycle (lazy creation, refresh before expiry)

    The cache check and regeneration happen under one lock, so concurrent
    callers never sign twice for the same window or observe a half-updated
    cache.
    """

    def __init__(
        self,
        issuer_id: str,
        key_id: str,
        signer: TokenSigner,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize CredentialManager.

        Args:
            issuer_id: App Store Connect issuer ID (``iss`` claim).
            key_id: API key ID (``kid`` header).
            signer: Signer holding the private key.
            clock: Source of the current time. Defaults to ``datetime.now(UTC)``.
        """
        self.issuer_id = issuer_id
        self.key_id = key_id
        self._signer = signer
        self._clock = clock or (lambda: datetime.now(UTC))
        self._lock = threading.Lock()
        self._access_token: str | None = None
        self._token_expires_at: datetime | None = None

    @classmethod
    def from_key_file(
        cls, issuer_id: str, key_id: str, private_key_path: str, **kwargs
    ) -> "CredentialManager":
        """Create a manager signing with the key stored at ``private_key_path``.

        Raises:
            CredentialError: If the key cannot be loaded.
        """
        signer = ES256Signer(load_private_key(private_key_path))
        logger.debug(f"Loaded private key for key ID {key_id}")
        return cls(issuer_id, key_id, signer, **kwargs)

    @classmethod
    def from_config(cls, config: Config) -> "CredentialManager":
        """Create a manager from the configured credentials."""
        return cls.from_key_file(
            config.issuer_id, config.key_id, config.private_key_path
        )

    @property
    def token_expires_at(self) -> datetime | None:
        """Expiry of the cached token, if one has been generated."""
        return self._token_expires_at

    def get_token(self) -> str:
        """Get a token valid for at least the refresh buffer.

        Returns:
            Signed bearer token string.
        """
        with self._lock:
            now = self._clock()
            if self._needs_refresh(now):
                self._access_token, self._token_expires_at = self._generate_token(now)
                logger.info(
                    f"Generated new token, expires at {self._token_expires_at.isoformat()}"
                )
            return self._access_token

    async def get_valid_token(self) -> str:
        """Get a valid authentication token.

        Returns:
            Valid bearer token string.
        """
        return self.get_token()

    def _needs_refresh(self, now: datetime) -> bool:
        """Check if token needs refresh."""
        if self._token_expires_at is None or self._access_token is None:
            return True

        refresh_time = self._token_expires_at - timedelta(
            seconds=TOKEN_REFRESH_BUFFER_SECONDS
        )
        return now >= refresh_time

    def _generate_token(self, now: datetime) -> tuple[str, datetime]:
        issued_at = int(now.timestamp())
        expires_at = issued_at + TOKEN_DURATION_SECONDS
        claims = {
            "iss": self.issuer_id,
            "iat": issued_at,
            "exp": expires_at,
            "aud": TOKEN_AUDIENCE,
        }
        headers = {"alg": TOKEN_ALGORITHM, "typ": "JWT", "kid": self.key_id}
        token = self._signer.sign(claims, headers)
        return token, datetime.fromtimestamp(expires_at, UTC)
