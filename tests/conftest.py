"""Pytest configuration and shared fixtures"""

import os
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from asc_mcp.client import AppStoreConnectClient
from asc_mcp.config import Config, get_config

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

TEST_BASE_URL = "https://api.test.appstoreconnect.apple.com"
TEST_ISSUER_ID = "57246542-96fe-1a63-e053-0824d011072a"
TEST_KEY_ID = "2X9R4HXF34"


def write_pem(path, private_key, fmt=serialization.PrivateFormat.PKCS8):
    """Write a private key to ``path`` as unencrypted PEM"""
    path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=fmt,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return path


@pytest.fixture(scope="session")
def private_key():
    """A freshly generated P-256 private key"""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def key_file(tmp_path, private_key):
    """An AuthKey_<KEY_ID>.p8 file holding the test key"""
    return write_pem(tmp_path / f"AuthKey_{TEST_KEY_ID}.p8", private_key)


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears ASC_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    asc_vars = {key: value for key, value in os.environ.items() if key.startswith("ASC_")}

    for key in asc_vars:
        os.environ.pop(key, None)
    get_config.cache_clear()

    try:
        yield
    finally:
        for key in [k for k in os.environ if k.startswith("ASC_")]:
            os.environ.pop(key, None)
        for key, value in asc_vars.items():
            os.environ[key] = value
        get_config.cache_clear()


@pytest.fixture
def config(clean_env, key_file):
    """Config pointing at the test key and a test base URL"""
    return Config(
        issuer_id=TEST_ISSUER_ID,
        key_id=TEST_KEY_ID,
        private_key_path=str(key_file),
        base_url=TEST_BASE_URL,
        log_level="DEBUG",
    )


@pytest.fixture
def mock_token_provider():
    """Token provider that always hands out the same token"""
    provider = Mock()
    provider.get_valid_token = AsyncMock(return_value="mock_token")
    return provider


@pytest.fixture
async def client(config, mock_token_provider):
    """AppStoreConnectClient with a mocked token provider and a real httpx client"""
    async with AppStoreConnectClient(
        config=config,
        token_provider=mock_token_provider,
        http_client=httpx.AsyncClient(),
    ) as client:
        yield client


@pytest.fixture
def mock_client():
    """AppStoreConnectClient stand-in whose API methods are AsyncMocks"""
    client = Mock(spec=AppStoreConnectClient)
    client.get_json = AsyncMock()
    client.post_json = AsyncMock()
    client.patch_json = AsyncMock()
    client.delete = AsyncMock(return_value=None)
    client.list_resources = AsyncMock()
    return client
