"""
Tests for settings parsing and node construction from settings.
"""

from core.bridge_core import build_nodes
from inference.generic import GenericProvider
from inference.protocol import Dialect
from settings import BridgeSettings, _load_settings_from_dict


class TestLoadSettings:

    def test_defaults(self):
        settings = _load_settings_from_dict({})
        assert settings.orchestration_mode == "balanced"
        assert settings.ratification_scale == 5
        assert settings.terminal_target == "integrated"
        assert settings.permissions.cli is True
        assert settings.custom_providers == []

    def test_permission_toggles_need_real_booleans(self):
        settings = _load_settings_from_dict({
            "permissionCli": "false",
            "permissionBrowser": 0,
            "permissionFileSystem": False,
        })
        assert settings.permissions.cli is True
        assert settings.permissions.browser is True
        assert settings.permissions.file_system is False

    def test_camel_case_keys(self):
        settings = _load_settings_from_dict({
            "groqApiKey": "gsk",
            "ollamaUrl": "http://localhost:11434",
            "customProviders": [{"id": "lab", "url": "http://lab/v1"}],
            "modelPreferences": {"coder": "50", "bad": "x"},
            "orchestrationMode": "Sovereign",
            "ratificationScale": 42,
            "terminalTarget": "background",
            "permissionCli": False,
        })
        assert settings.groq_api_key == "gsk"
        assert settings.custom_providers[0].name == "lab"
        assert settings.model_preferences == {"coder": 50}
        assert settings.is_sovereign
        assert settings.ratification_scale == 10
        assert settings.terminal_target == "background"
        assert settings.permissions.cli is False

    def test_invalid_values_fall_back(self):
        settings = _load_settings_from_dict({
            "orchestrationMode": "chaotic",
            "ratificationScale": "lots",
            "terminalTarget": "teleport",
            "customProviders": [{"name": "no id"}, "junk"],
        })
        assert settings.orchestration_mode == "balanced"
        assert settings.ratification_scale == 5
        assert settings.terminal_target == "integrated"
        assert settings.custom_providers == []

    def test_env_overrides_key(self, monkeypatch):
        monkeypatch.setenv("BRIDGE_OPENROUTER_API_KEY", "from-env")
        settings = _load_settings_from_dict({"openRouterApiKey": "from-file"})
        assert settings.open_router_api_key == "from-env"


class TestBuildNodes:

    def _settings(self, **overrides):
        return _load_settings_from_dict({
            "openRouterApiKey": "or", "googleAiApiKey": "g", "groqApiKey": "gq",
            "ollamaUrl": "http://localhost:11434/",
            "customProviders": [{"id": "lab", "name": "Lab", "url": "http://lab/v1", "key": "k"}],
            **overrides,
        })

    def test_all_configured_providers(self, monkeypatch):
        for var in ("BRIDGE_OPENROUTER_API_KEY", "BRIDGE_GOOGLE_AI_API_KEY", "BRIDGE_GROQ_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        nodes = {n.id: n for n in build_nodes(self._settings())}

        assert set(nodes) == {"openrouter", "google-ai", "groq", "ollama", "lab"}
        assert nodes["google-ai"].protocol == Dialect.GOOGLE
        assert nodes["ollama"].base_url == "http://localhost:11434/v1"
        assert all(isinstance(n, GenericProvider) for n in nodes.values())

    def test_sovereign_skips_hosted(self):
        nodes = build_nodes(self._settings(orchestrationMode="sovereign"))
        assert sorted(n.id for n in nodes) == ["lab", "ollama"]

    def test_nothing_configured(self):
        assert build_nodes(BridgeSettings()) == []
