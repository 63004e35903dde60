#!/usr/bin/env python3
"""
Inference Bridge — Interactive Setup Wizard.

Probes common local serving endpoints, asks for hosted-provider keys and
writes bridge.yaml for a fresh installation.
Run: python scripts/setup.py
"""

import asyncio
import sys
from pathlib import Path

import yaml

PROJECT_ROOT = Path(__file__).parent.parent
BACKEND_DIR = PROJECT_ROOT / "backend"
SETTINGS_PATH = PROJECT_ROOT / "bridge.yaml"

sys.path.insert(0, str(BACKEND_DIR))

from inference.discovery import DiscoveryAgent  # noqa: E402
from inference.protocol import Dialect  # noqa: E402
from settings import ORCHESTRATION_MODES  # noqa: E402

LOCAL_ENDPOINTS = [
    ("http://localhost:11434/v1", "Ollama"),
    ("http://localhost:1234/v1", "LM Studio / vLLM"),
    ("http://localhost:8080/v1", "llama.cpp server"),
]


def _input(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    result = input(f"{prompt}{suffix}: ").strip()
    return result or default


def _yes_no(prompt: str, default: bool = False) -> bool:
    suffix = " [Y/n]" if default else " [y/N]"
    result = input(f"{prompt}{suffix}: ").strip().lower()
    if not result:
        return default
    return result in ("y", "yes")


async def _probe(url: str, key: str = "") -> list[str]:
    result = await DiscoveryAgent().probe(url, key)
    if result.protocol == Dialect.UNKNOWN:
        return []
    return [c.description for c in result.capabilities]


def _discover_local() -> list[dict]:
    """Auto-detect OpenAI-compatible servers on common ports."""
    found = []
    for url, label in LOCAL_ENDPOINTS:
        print(f"  Probing {url} ({label})...", end=" ")
        models = asyncio.run(_probe(url))
        if models:
            print(f"found {len(models)} model(s)")
            found.append({"url": url, "label": label, "models": models})
        else:
            print("not found")
    return found


def main():
    print("=" * 60)
    print("  Inference Bridge — Setup Wizard")
    print("=" * 60)
    print()

    # Step 1: Local nodes
    print("Step 1: Discovering Local Backends")
    print("-" * 40)
    local = _discover_local()
    settings: dict = {}
    custom = []
    for backend in local:
        if backend["label"] == "Ollama":
            settings["ollamaUrl"] = backend["url"].removesuffix("/v1")
        else:
            node_id = backend["label"].split()[0].lower().replace(".", "")
            custom.append({"id": node_id, "name": backend["label"], "url": backend["url"], "key": ""})
    extra = _input("  Extra OpenAI/Google-compatible endpoint URL (or skip)", "")
    if extra:
        key = _input("  API key for that endpoint (or blank)", "")
        models = asyncio.run(_probe(extra, key))
        print(f"  {len(models)} model(s) found" if models else "  Endpoint did not answer a probe — adding anyway")
        custom.append({"id": "custom", "name": "Custom", "url": extra, "key": key})
    if custom:
        settings["customProviders"] = custom
    print()

    # Step 2: Hosted providers
    print("Step 2: Hosted Providers (leave blank to skip)")
    print("-" * 40)
    for field, label in (("openRouterApiKey", "OpenRouter"),
                         ("googleAiApiKey", "Google AI"),
                         ("groqApiKey", "Groq")):
        key = _input(f"  {label} API key", "")
        if key:
            settings[field] = key
    print()

    # Step 3: Orchestration
    print("Step 3: Orchestration")
    print("-" * 40)
    mode = _input(f"  Mode ({'/'.join(ORCHESTRATION_MODES)})", "balanced")
    settings["orchestrationMode"] = mode if mode in ORCHESTRATION_MODES else "balanced"
    scale = _input("  Ratification scale 0-10 (0 = never ask, 10 = ask for every tool)", "5")
    settings["ratificationScale"] = max(0, min(10, int(scale))) if scale.isdigit() else 5
    settings["permissionCli"] = _yes_no("  Allow shell commands?", default=True)
    settings["permissionFileSystem"] = _yes_no("  Allow file access?", default=True)
    settings["permissionBrowser"] = _yes_no("  Allow web fetches?", default=True)
    print()

    print("=" * 60)
    print("  Writing configuration...")
    print("-" * 40)
    if SETTINGS_PATH.exists() and not _yes_no(f"  {SETTINGS_PATH} exists. Overwrite?"):
        print("  Aborted; existing settings kept.")
        return
    SETTINGS_PATH.write_text(yaml.dump(settings, default_flow_style=False, sort_keys=False))
    SETTINGS_PATH.chmod(0o600)
    print(f"  Settings written to {SETTINGS_PATH}")
    print()
    print("  Start the service: uvicorn main:app --app-dir backend --port 8765")


if __name__ == "__main__":
    main()
