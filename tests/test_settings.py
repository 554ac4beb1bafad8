"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for node, link and discord settings
- Loading settings from environment variables (nested and JSON lists)
- Custom validators (log level, unique node identifiers)
- Settings caching and clearing
- Manager wiring from settings
"""

import pytest
from pydantic import SecretStr, ValidationError

from discord_music_link.config.container import create_manager
from discord_music_link.config.settings import (
    DiscordSettings,
    LinkSettings,
    NodeSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep a developer's .env and shell variables out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENVIRONMENT", "DEBUG", "LOG_LEVEL", "NODES", "DISCORD__TOKEN", "LINK__SHARDS"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# NodeSettings Tests
# =============================================================================


class TestNodeSettings:
    """Unit tests for NodeSettings."""

    def test_create_with_defaults(self):
        node = NodeSettings()

        assert node.host == "127.0.0.1"
        assert node.port == 2333
        assert node.password.get_secret_value() == "youshallnotpass"
        assert node.reconnect_interval == 5.0
        assert node.resume_key is None
        assert node.resume_timeout == 60
        assert node.tag is None

    def test_identifier_prefers_tag(self):
        assert NodeSettings(tag="eu-1", host="10.0.0.1").identifier == "eu-1"
        assert NodeSettings(host="10.0.0.1").identifier == "10.0.0.1"

    def test_urls(self):
        plain = NodeSettings(host="audio.local", port=2444)
        secure = NodeSettings(host="audio.example.com", port=443, secure=True)

        assert plain.ws_url == "ws://audio.local:2444/"
        assert plain.rest_url == "http://audio.local:2444"
        assert secure.ws_url == "wss://audio.example.com:443/"
        assert secure.rest_url == "https://audio.example.com:443"

    def test_accepts_wire_style_aliases(self):
        node = NodeSettings.model_validate(
            {
                "name": "main",
                "authorization": "pw",
                "reconnectInterval": 2.5,
                "resumeKey": "key",
                "resumeTimeout": 30,
            }
        )

        assert node.tag == "main"
        assert node.password.get_secret_value() == "pw"
        assert node.reconnect_interval == 2.5
        assert node.resume_key == "key"
        assert node.resume_timeout == 30

    def test_password_hidden_in_repr(self):
        assert "youshallnotpass" not in repr(NodeSettings())

    @pytest.mark.parametrize(
        "kwargs",
        [{"port": 0}, {"port": 65536}, {"reconnect_interval": 0}, {"host": ""}],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            NodeSettings(**kwargs)

    def test_frozen(self):
        node = NodeSettings()
        with pytest.raises(ValidationError):
            node.host = "elsewhere"


class TestLinkAndDiscordSettings:
    def test_link_defaults(self):
        link = LinkSettings()

        assert link.shards == 1
        assert link.default_search_source == "yt"
        assert link.request_timeout == 10.0

    def test_shards_must_be_positive(self):
        with pytest.raises(ValidationError, match="greater than or equal to 1"):
            LinkSettings(shards=0)

    def test_discord_token_is_secret(self):
        discord = DiscordSettings(token="abc")

        assert isinstance(discord.token, SecretStr)
        assert "abc" not in repr(discord)


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Unit tests for the root Settings container."""

    def test_create_with_all_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert [n.identifier for n in settings.nodes] == ["127.0.0.1"]
        assert settings.discord.token.get_secret_value() == ""

    def test_load_from_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        settings = Settings()

        assert settings.environment == "production"
        assert settings.debug is True
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__TOKEN", "bot-token")
        monkeypatch.setenv("LINK__SHARDS", "4")
        monkeypatch.setenv("LINK__DEFAULT_SEARCH_SOURCE", "sc")

        settings = Settings()

        assert settings.discord.token.get_secret_value() == "bot-token"
        assert settings.link.shards == 4
        assert settings.link.default_search_source == "sc"

    def test_nodes_from_json_env(self, monkeypatch):
        monkeypatch.setenv(
            "NODES",
            '[{"tag": "a", "host": "10.0.0.1"}, {"tag": "b", "host": "10.0.0.2", "port": 2444}]',
        )

        settings = Settings()

        assert [n.identifier for n in settings.nodes] == ["a", "b"]
        assert settings.nodes[1].port == 2444

    def test_duplicate_node_identifiers_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate node identifier"):
            Settings(nodes=[{"host": "10.0.0.1"}, {"host": "10.0.0.1"}])

    def test_log_level_validation_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings().log_level == "DEBUG"

    def test_log_level_validation_invalid(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings()

    def test_environment_validation(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")

        with pytest.raises(ValidationError):
            Settings()


class TestSettingsCaching:
    """Tests for get_settings caching."""

    def test_get_settings_returns_cached_instance(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "test")

        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "test")
        first = get_settings()

        monkeypatch.setenv("ENVIRONMENT", "production")
        clear_settings_cache()
        second = get_settings()

        assert first is not second
        assert second.environment == "production"


class TestContainer:
    """Tests for wiring a Manager from settings."""

    async def test_create_manager_uses_link_settings(self, fake_gateway):
        settings = Settings(
            link={"shards": 3, "default_search_source": "sc"},
            nodes=[{"tag": "a"}, {"tag": "b"}],
        )

        manager = create_manager(settings, fake_gateway)
        try:
            assert manager.gateway is fake_gateway
            assert manager.shards == 3
            assert manager.default_search_source == "sc"
            assert manager.nodes == {}
            assert [n.identifier for n in manager._node_settings] == ["a", "b"]
        finally:
            await manager.close()
