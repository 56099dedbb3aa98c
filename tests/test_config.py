"""Tests for config module"""

import logging

import pytest
from pydantic import ValidationError

from asc_mcp.config import Config, get_config, setup_logging
from asc_mcp.consts import BASE_URL, DEFAULT_TIMEOUT_SECONDS

from .conftest import TEST_ISSUER_ID, TEST_KEY_ID


class TestConfig:
    """Test Config class functionality"""

    @pytest.fixture
    def required(self, key_file):
        return {
            "issuer_id": TEST_ISSUER_ID,
            "key_id": TEST_KEY_ID,
            "private_key_path": str(key_file),
        }

    def test_config_defaults(self, clean_env, required):
        """Test config creation and default values"""
        config = Config(**required)
        assert config.base_url == BASE_URL
        assert config.log_level == "INFO"
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert config.issuer_id == TEST_ISSUER_ID
        assert config.key_id == TEST_KEY_ID

    def test_config_from_env(self, clean_env, key_file, monkeypatch):
        """Test that every setting can come from ASC_* variables"""
        monkeypatch.setenv("ASC_ISSUER_ID", TEST_ISSUER_ID)
        monkeypatch.setenv("ASC_KEY_ID", TEST_KEY_ID)
        monkeypatch.setenv("ASC_PRIVATE_KEY_PATH", str(key_file))
        monkeypatch.setenv("ASC_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ASC_TIMEOUT_SECONDS", "45")

        config = Config()
        assert config.issuer_id == TEST_ISSUER_ID
        assert config.key_id == TEST_KEY_ID
        assert config.private_key_path == str(key_file)
        assert config.log_level == "DEBUG"
        assert config.timeout_seconds == 45

    @pytest.mark.parametrize("missing", ["issuer_id", "key_id", "private_key_path"])
    def test_required_settings(self, clean_env, required, missing):
        """Test that each credential setting is mandatory"""
        del required[missing]
        with pytest.raises(ValidationError) as exc_info:
            Config(**required)
        assert missing in str(exc_info.value)

    def test_empty_issuer_rejected(self, clean_env, required):
        required["issuer_id"] = ""
        with pytest.raises(ValidationError):
            Config(**required)

    def test_missing_key_file(self, clean_env, required, tmp_path):
        """Test that the key file must exist when the config is built"""
        required["private_key_path"] = str(tmp_path / "nope.p8")
        with pytest.raises(ValidationError) as exc_info:
            Config(**required)
        assert "private key file not found" in str(exc_info.value)

    def test_key_path_home_expansion(self, clean_env, required, key_file, monkeypatch):
        """Test that ~ in the key path is expanded"""
        monkeypatch.setenv("HOME", str(key_file.parent))
        required["private_key_path"] = f"~/{key_file.name}"

        config = Config(**required)
        assert config.private_key_path == str(key_file)

    def test_base_url_trailing_slash(self, clean_env, required):
        config = Config(**required, base_url="https://example.test/")
        assert config.base_url == "https://example.test"

    @pytest.mark.parametrize("log_level", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_valid_log_levels(self, clean_env, required, log_level):
        """Test that all valid log levels are accepted"""
        config = Config(**required, log_level=log_level)
        assert config.log_level == log_level

    @pytest.mark.parametrize("invalid_level", ["TRACE", "debug", "FATAL", "NONE"])
    def test_invalid_log_levels(self, clean_env, required, invalid_level):
        """Test that invalid log levels are rejected"""
        with pytest.raises(ValidationError):
            Config(**required, log_level=invalid_level)

    @pytest.mark.parametrize("timeout,valid", [(1, True), (300, True), (0, False), (301, False)])
    def test_timeout_bounds(self, clean_env, required, timeout, valid):
        if valid:
            assert Config(**required, timeout_seconds=timeout).timeout_seconds == timeout
        else:
            with pytest.raises(ValidationError):
                Config(**required, timeout_seconds=timeout)

    def test_repr_hides_credentials(self, clean_env, required):
        """Test that repr does not leak the issuer or key path"""
        text = repr(Config(**required))
        assert TEST_KEY_ID in text
        assert TEST_ISSUER_ID not in text
        assert required["private_key_path"] not in text


class TestGetConfig:
    def test_get_config_is_cached(self, clean_env, key_file, monkeypatch):
        monkeypatch.setenv("ASC_ISSUER_ID", TEST_ISSUER_ID)
        monkeypatch.setenv("ASC_KEY_ID", TEST_KEY_ID)
        monkeypatch.setenv("ASC_PRIVATE_KEY_PATH", str(key_file))

        assert get_config() is get_config()

    def test_get_config_without_env(self, clean_env):
        with pytest.raises(ValidationError):
            get_config()


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_setup_logging_level(self):
        logger = setup_logging("DEBUG")
        assert logger.name == "asc-mcp"
        assert logging.getLogger().level == logging.DEBUG

        setup_logging("WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_logs_go_to_stderr(self):
        """stdout is reserved for protocol messages"""
        import sys

        setup_logging("INFO")
        streams = [getattr(h, "stream", None) for h in logging.getLogger().handlers]
        assert sys.stderr in streams
        assert sys.stdout not in streams
