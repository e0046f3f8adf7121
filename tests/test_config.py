"""
Test configuration loading and validation.
"""

import pytest
from pydantic import ValidationError

from conftest import make_credentials
from mcp_assistant.core.exceptions import ConfigError
from mcp_assistant.core.models import CapabilityDomain, ProviderTransport
from mcp_assistant.utils.config import (
    AgentConfig,
    ConfigManager,
    DocumentationProviderConfig,
    ExtraProviderConfig,
    validate_credentials,
)


class TestConfigManager:
    """Test ConfigManager loading."""

    def setup_method(self):
        """Setup test fixtures."""
        self.manager = ConfigManager()

    def test_defaults_without_files(self, tmp_path):
        config = self.manager.load_config([tmp_path / "missing.toml"])

        assert config.agent.model == "gpt-4.1-mini"
        assert config.agent.temperature == 0.45
        assert config.agent.max_turns == 10
        assert config.providers.connect_timeout == 30.0
        assert config.providers.concurrent is False
        assert config.tools.units == "metric"
        assert [p.name for p in config.provider_configs()] == ["context7"]

    def test_later_files_override_earlier(self, tmp_path):
        base = tmp_path / "base.toml"
        base.write_text(
            "[agent]\n"
            'model = "gpt-4.1"\n'
            "max_turns = 5\n"
            "[providers]\n"
            "connect_timeout = 12.5\n"
        )
        local = tmp_path / "local.toml"
        local.write_text("[agent]\nmax_turns = 7\n")

        config = self.manager.load_config([base, local])

        assert config.agent.model == "gpt-4.1"
        assert config.agent.max_turns == 7
        assert config.providers.connect_timeout == 12.5

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[agent]\nmax_turns = 5\n")

        config = self.manager.load_config([path], agent={"max_turns": 3})

        assert config.agent.max_turns == 3

    def test_config_is_cached_until_reload(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[agent]\nmax_turns = 5\n")
        first = self.manager.load_config([path])

        path.write_text("[agent]\nmax_turns = 6\n")
        assert self.manager.load_config([path]) is first

        reloaded = self.manager.reload_config([path])
        assert reloaded.agent.max_turns == 6

    def test_managers_do_not_share_state(self, tmp_path):
        """Each manager owns its configuration; none is shared process-wide."""
        path = tmp_path / "config.toml"
        path.write_text("[agent]\nmax_turns = 5\n")
        first = self.manager.load_config([path])

        path.write_text("[agent]\nmax_turns = 6\n")
        other = ConfigManager().load_config([path])

        assert other is not first
        assert other.agent.max_turns == 6
        assert self.manager.get_config() is first

    def test_extra_providers(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[providers.documentation]\n"
            "enabled = false\n"
            "[[providers.extra]]\n"
            'name = "filesystem"\n'
            'command = "npx -y @modelcontextprotocol/server-filesystem /tmp"\n'
            'capabilities = ["read_file"]\n'
            "[[providers.extra]]\n"
            'name = "docs"\n'
            'command = "https://mcp.example.com/mcp"\n'
            'domain = "documentation"\n'
        )

        providers = self.manager.load_config([path]).provider_configs()

        assert [p.name for p in providers] == ["filesystem", "docs"]
        assert providers[0].domain is None
        assert providers[0].capabilities == ["read_file"]
        assert providers[1].domain == CapabilityDomain.DOCUMENTATION
        assert providers[1].transport == ProviderTransport.STREAMABLE_HTTP

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[agent\nmodel = ")

        with pytest.raises(ConfigError) as exc_info:
            self.manager.load_config([path])

        assert exc_info.value.error_code == "CONFIG_PARSE"

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[agent]\ntemperature = 5.0\n")

        with pytest.raises(ConfigError) as exc_info:
            self.manager.load_config([path])

        assert exc_info.value.error_code == "CONFIG_INVALID"

    def test_direct_domain_on_extra_provider_rejected(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[[providers.extra]]\n"
            'name = "weather-mcp"\n'
            'command = "weather-server"\n'
            'domain = "weather"\n'
        )

        with pytest.raises(ConfigError):
            self.manager.load_config([path])

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MCP_ASSISTANT_AGENT__MODEL", "gpt-4o")

        config = self.manager.load_config([tmp_path / "missing.toml"])

        assert config.agent.model == "gpt-4o"

    def test_credentials_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OPENWEATHER_API_KEY", "weather-key")

        config = self.manager.load_config([tmp_path / "missing.toml"])

        assert config.credentials.openweather_api_key == "weather-key"
        assert config.credentials.aqicn_api_key is None

    def test_log_file_relative_to_config_dir(self, tmp_path):
        config = self.manager.load_config(
            [tmp_path / "missing.toml"],
            config_dir=str(tmp_path / "cfg"),
            logging={"file": "assistant.log"},
        )

        assert config.get_log_file() == tmp_path / "cfg" / "assistant.log"


class TestProviderConfigs:
    """Test provider configuration models."""

    def test_documentation_api_key_appended(self):
        provider = DocumentationProviderConfig().to_provider_config("secret key")

        assert provider.name == "context7"
        assert provider.domain == CapabilityDomain.DOCUMENTATION
        assert provider.command == "npx -y @upstash/context7-mcp --api-key 'secret key'"
        assert provider.capabilities == ["resolve_library_id", "get_library_docs"]

    def test_documentation_without_key(self):
        provider = DocumentationProviderConfig().to_provider_config(None)
        assert provider.command == "npx -y @upstash/context7-mcp"

    def test_documentation_url_ignores_key(self):
        docs = DocumentationProviderConfig(command="https://mcp.context7.com/mcp")
        assert docs.to_provider_config("secret").command == "https://mcp.context7.com/mcp"

    @pytest.mark.parametrize("domain", ["weather", "air_quality"])
    def test_extra_provider_rejects_direct_domains(self, domain):
        with pytest.raises(ValidationError):
            ExtraProviderConfig(name="x", command="x-server", domain=domain)

    def test_agent_config_limits(self):
        with pytest.raises(ValidationError):
            AgentConfig(max_turns=0)
        with pytest.raises(ValidationError):
            AgentConfig(temperature=-0.1)


class TestValidateCredentials:
    """Test credential validation."""

    def test_missing_openai_key_is_error(self):
        errors, warnings = validate_credentials(make_credentials())

        assert errors == ["OPENAI_API_KEY is required"]
        assert len(warnings) == 3

    def test_all_present(self):
        credentials = make_credentials(
            openai_api_key="o",
            openweather_api_key="w",
            aqicn_api_key="a",
            context7_api_key="c",
        )

        assert validate_credentials(credentials) == ([], [])

    def test_optional_keys_warn(self):
        errors, warnings = validate_credentials(make_credentials(openai_api_key="o"))

        assert errors == []
        assert any("OPENWEATHER_API_KEY" in w for w in warnings)
        assert any("AQICN_API_KEY" in w for w in warnings)
