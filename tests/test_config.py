"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from broadcast_relay.config import RelayConfig
from broadcast_relay.errors import ConfigError


class TestRelayConfig:
    def test_required_values(self, env):
        config = RelayConfig.from_env(env)
        assert config.bot_token == env["TELEGRAM_BOT_TOKEN"]
        assert config.admin_username == "relay_admin"
        assert config.feed_url == env["FEED_URL"]
        assert config.database_url == env["DATABASE_URL"]

    def test_defaults(self, env):
        config = RelayConfig.from_env(env)
        assert config.port == 3000
        assert config.feed_limit == 10
        assert config.log_dir is None

    def test_post_base_url_defaults_to_feed_origin(self, env):
        config = RelayConfig.from_env(env)
        assert config.post_base_url == "https://news.example.com"

    def test_overrides(self, env):
        env.update({
            "PORT": "8080",
            "POST_BASE_URL": "https://example.org/p",
            "FEED_LIMIT": "3",
            "LOG_DIR": "/tmp/relay-logs",
        })
        config = RelayConfig.from_env(env)
        assert config.port == 8080
        assert config.post_base_url == "https://example.org/p"
        assert config.feed_limit == 3
        assert config.log_dir == Path("/tmp/relay-logs")

    def test_admin_at_prefix_stripped(self, env):
        env["TELEGRAM_BOT_ADMIN"] = "@relay_admin"
        assert RelayConfig.from_env(env).admin_username == "relay_admin"

    @pytest.mark.parametrize(
        "name", ["TELEGRAM_BOT_TOKEN", "TELEGRAM_BOT_ADMIN", "FEED_URL", "DATABASE_URL"]
    )
    def test_missing_required_value(self, env, name):
        del env[name]
        with pytest.raises(ConfigError, match=name):
            RelayConfig.from_env(env)

    def test_empty_required_value(self, env):
        env["TELEGRAM_BOT_TOKEN"] = ""
        with pytest.raises(ConfigError):
            RelayConfig.from_env(env)

    def test_blank_required_value(self, env):
        env["TELEGRAM_BOT_ADMIN"] = "   "
        with pytest.raises(ConfigError, match="admin_username"):
            RelayConfig.from_env(env)

    def test_bad_port(self, env):
        env["PORT"] = "abc"
        with pytest.raises(ConfigError, match="port"):
            RelayConfig.from_env(env)

    def test_port_out_of_range(self, env):
        env["PORT"] = "70000"
        with pytest.raises(ConfigError):
            RelayConfig.from_env(env)

    def test_feed_limit_must_be_positive(self, env):
        env["FEED_LIMIT"] = "0"
        with pytest.raises(ConfigError):
            RelayConfig.from_env(env)

    def test_frozen(self, config):
        with pytest.raises(Exception):
            config.port = 1

    def test_masked_token(self, config):
        masked = config.masked_token()
        assert config.bot_token not in masked
        assert masked.startswith(config.bot_token[:10])
