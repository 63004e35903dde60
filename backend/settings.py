"""
Settings — loads bridge.yaml and provides validated configuration.

The settings file is the single source of truth for everything a user can
configure: provider credentials, the local Ollama endpoint, ad hoc
providers, model preference weights, orchestration mode, the ratification
threshold, and tool permission toggles.

Keys use the same camelCase names the editor settings panel writes, e.g.:

    openRouterApiKey: sk-or-...
    ollamaUrl: http://localhost:11434
    customProviders:
      - {id: lab, name: Lab vLLM, url: http://10.0.0.5:8000/v1, key: ""}
    modelPreferences: {coder: 50, mini: -20}
    orchestrationMode: balanced
    ratificationScale: 5

Usage:
    from settings import get_settings
    settings = get_settings()
    print(settings.orchestration_mode)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

# ── Settings Path Resolution ──
_SETTINGS_PATH_ENV = os.environ.get("BRIDGE_PROFILE_PATH")
_PROJECT_ROOT = Path(__file__).parent.parent
_DEFAULT_SETTINGS_PATH = _PROJECT_ROOT / "bridge.yaml"

ORCHESTRATION_MODES = ("meritocratic", "balanced", "economy", "sovereign")
TERMINAL_TARGETS = ("integrated", "external", "background")


# ── Dataclasses ──

@dataclass
class CustomProviderConfig:
    id: str = ""
    name: str = ""
    url: str = ""
    key: str = ""


@dataclass
class PermissionsConfig:
    cli: bool = True
    browser: bool = True
    file_system: bool = True


@dataclass
class BridgeSettings:
    open_router_api_key: str = ""
    google_ai_api_key: str = ""
    groq_api_key: str = ""
    ollama_url: str = ""
    custom_providers: list[CustomProviderConfig] = field(default_factory=list)
    model_preferences: dict[str, int] = field(default_factory=dict)
    orchestration_mode: str = "balanced"
    ratification_scale: int = 5
    terminal_target: str = "integrated"
    permissions: PermissionsConfig = field(default_factory=PermissionsConfig)

    @property
    def is_sovereign(self) -> bool:
        """Sovereign mode keeps inference on local and self-hosted nodes."""
        return self.orchestration_mode == "sovereign"


# ── Parsing ──

_KEY_ENV_OVERRIDES = {
    "openRouterApiKey": "BRIDGE_OPENROUTER_API_KEY",
    "googleAiApiKey": "BRIDGE_GOOGLE_AI_API_KEY",
    "groqApiKey": "BRIDGE_GROQ_API_KEY",
}


def _secret(raw: dict, key: str) -> str:
    """Env var wins over the file so keys can stay out of bridge.yaml."""
    env_name = _KEY_ENV_OVERRIDES[key]
    return os.environ.get(env_name) or str(raw.get(key) or "")


def _parse_preferences(raw) -> dict[str, int]:
    prefs = {}
    if not isinstance(raw, dict):
        return prefs
    for keyword, delta in raw.items():
        try:
            prefs[str(keyword)] = int(delta)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric model preference %r=%r", keyword, delta)
    return prefs


def _parse_custom_providers(raw) -> list[CustomProviderConfig]:
    providers = []
    if not isinstance(raw, list):
        return providers
    for p in raw:
        if not isinstance(p, dict):
            continue
        cfg = CustomProviderConfig(
            id=str(p.get("id", "")).strip(),
            name=str(p.get("name", "")).strip(),
            url=str(p.get("url", "")).strip(),
            key=str(p.get("key", "") or ""),
        )
        if not cfg.id or not cfg.url:
            logger.warning("Skipping custom provider without id/url: %r", p)
            continue
        cfg.name = cfg.name or cfg.id
        providers.append(cfg)
    return providers


def _toggle(raw: dict, key: str, default: bool = True) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("%s must be true or false, got %r — using %s", key, value, default)
    return default


def _load_settings_from_dict(raw: dict) -> BridgeSettings:
    """Parse a raw YAML dict into a BridgeSettings dataclass."""
    settings = BridgeSettings(
        open_router_api_key=_secret(raw, "openRouterApiKey"),
        google_ai_api_key=_secret(raw, "googleAiApiKey"),
        groq_api_key=_secret(raw, "groqApiKey"),
        ollama_url=str(raw.get("ollamaUrl") or ""),
        custom_providers=_parse_custom_providers(raw.get("customProviders")),
        model_preferences=_parse_preferences(raw.get("modelPreferences")),
    )

    mode = str(raw.get("orchestrationMode", settings.orchestration_mode)).lower()
    if mode not in ORCHESTRATION_MODES:
        logger.warning("Unknown orchestrationMode '%s' — using 'balanced'", mode)
        mode = "balanced"
    settings.orchestration_mode = mode

    try:
        scale = int(raw.get("ratificationScale", settings.ratification_scale))
    except (TypeError, ValueError):
        logger.warning("Invalid ratificationScale %r — using default",
                       raw.get("ratificationScale"))
        scale = settings.ratification_scale
    settings.ratification_scale = max(0, min(10, scale))

    target = str(raw.get("terminalTarget", settings.terminal_target))
    if target not in TERMINAL_TARGETS:
        logger.warning("Unknown terminalTarget '%s' — using 'integrated'", target)
        target = "integrated"
    settings.terminal_target = target

    settings.permissions = PermissionsConfig(
        cli=_toggle(raw, "permissionCli"),
        browser=_toggle(raw, "permissionBrowser"),
        file_system=_toggle(raw, "permissionFileSystem"),
    )
    return settings


def _load_settings() -> BridgeSettings:
    """Load settings from YAML file. Falls back to defaults if missing."""
    settings_path = Path(_SETTINGS_PATH_ENV) if _SETTINGS_PATH_ENV else _DEFAULT_SETTINGS_PATH

    if not settings_path.exists():
        logger.info("No bridge.yaml found at %s — using defaults", settings_path)
        return _load_settings_from_dict({})

    try:
        raw = yaml.safe_load(settings_path.read_text()) or {}
        if not isinstance(raw, dict):
            logger.warning("bridge.yaml is not a valid YAML mapping — using defaults")
            return _load_settings_from_dict({})
        settings = _load_settings_from_dict(raw)
        logger.info("Settings loaded: mode=%s, custom providers=%d, ratification=%d",
                    settings.orchestration_mode, len(settings.custom_providers),
                    settings.ratification_scale)
        return settings
    except Exception as e:
        logger.error("Failed to load bridge.yaml: %s — using defaults", e)
        return _load_settings_from_dict({})


# ── Singleton ──

_settings: Optional[BridgeSettings] = None


def get_settings() -> BridgeSettings:
    """Return the validated settings singleton. Loads on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings


def reload_settings() -> BridgeSettings:
    """Force reload of the settings from disk."""
    global _settings
    _settings = _load_settings()
    return _settings
