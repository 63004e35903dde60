"""
BridgeCore — the application object.

Wires settings into nodes, nodes into a cluster session, and the session
into the orchestrator. Routes talk only to this object.

Node set (rebuilt on every start):
  - Hosted providers with a configured key: OpenRouter, Google AI, Groq
    (skipped in sovereign mode)
  - Ollama at {ollamaUrl}/v1 when configured
  - One node per custom provider
  - The local tool node
"""

import logging
import time
from pathlib import Path
from typing import Optional

import httpx

from agents.ratification import RatificationGate
from config import GOOGLE_AI_BASE, GROQ_BASE, OPENROUTER_BASE
from core.workspace_tools import WorkspaceTools
from inference.generic import GenericProvider
from inference.protocol import Dialect, Node
from inference.session import ClusterSession
from inference.tool_node import LocalToolNode
from orchestration.context import ContextSnapshot, ConversationLog
from orchestration.orchestrator import Orchestrator
from settings import BridgeSettings, get_settings
from tools import CallableToolBackend

logger = logging.getLogger(__name__)


def _ollama_base(url: str) -> str:
    base = url.rstrip("/")
    return base if base.endswith("/v1") else f"{base}/v1"


def build_nodes(settings: BridgeSettings,
                transport: Optional[httpx.AsyncBaseTransport] = None) -> list[Node]:
    """Instantiate one inference node per configured provider."""
    nodes: list[Node] = []
    if settings.is_sovereign:
        logger.info("Sovereign mode — hosted providers are not registered")
    else:
        if settings.open_router_api_key:
            nodes.append(GenericProvider("openrouter", "OpenRouter", OPENROUTER_BASE,
                                         settings.open_router_api_key, transport=transport))
        if settings.google_ai_api_key:
            nodes.append(GenericProvider("google-ai", "Google AI", GOOGLE_AI_BASE,
                                         settings.google_ai_api_key, protocol=Dialect.GOOGLE,
                                         transport=transport))
        if settings.groq_api_key:
            nodes.append(GenericProvider("groq", "Groq", GROQ_BASE,
                                         settings.groq_api_key, transport=transport))

    if settings.ollama_url:
        nodes.append(GenericProvider("ollama", "Ollama", _ollama_base(settings.ollama_url),
                                     transport=transport))
    for custom in settings.custom_providers:
        nodes.append(GenericProvider(custom.id, custom.name, custom.url, custom.key,
                                     transport=transport))
    return nodes


class BridgeCore:
    """Owns the cluster session, tool node, ratification gate and history."""

    def __init__(self, settings: Optional[BridgeSettings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 workspace_root: Optional[Path] = None):
        self.settings = settings or get_settings()
        self._transport = transport
        self._ready = False
        self._startup_time: Optional[float] = None

        self.session = ClusterSession()
        self.tool_backend = CallableToolBackend(
            permissions=self.settings.permissions,
            terminal_target=self.settings.terminal_target,
        )
        self.workspace_tools = WorkspaceTools(workspace_root, transport=transport)
        self.workspace_tools.register_all(self.tool_backend)
        self.tool_node = LocalToolNode(self.tool_backend)
        self.gate = RatificationGate(scale=self.settings.ratification_scale)
        self.history = ConversationLog()
        self.orchestrator = Orchestrator(
            self.session, self.tool_node, gate=self.gate, history=self.history,
            orchestration_mode=self.settings.orchestration_mode,
            model_preferences=self.settings.model_preferences,
        )

    # ── Startup / Shutdown ──

    async def start(self):
        """Register every configured node and build the first catalog."""
        self._startup_time = time.time()
        registry = self.session.registry
        registry.clear()
        for node in build_nodes(self.settings, self._transport):
            registry.register(node)
        registry.register(self.tool_node)
        self.session.reset()

        entries = await self.session.catalog.refresh()
        if not entries:
            logger.warning("No inference models discovered — check provider settings")
        self._ready = True
        logger.info("Bridge ready: %d nodes, %d models", len(registry), len(entries))

    async def shutdown(self):
        self._ready = False
        await self.workspace_tools.stop_background()
        logger.info("Bridge shut down")

    @property
    def ready(self) -> bool:
        return self._ready

    # ── Queries ──

    async def query(self, query: str, editor: Optional[dict] = None,
                    diagnostics: Optional[list[str]] = None,
                    attachments: Optional[dict[str, str]] = None) -> dict:
        editor = editor or {}
        snapshot = ContextSnapshot.capture(
            active_file=editor.get("file"),
            selection=editor.get("selection"),
            diagnostics=diagnostics,
            attachments=attachments,
        )
        result = await self.orchestrator.run(query, snapshot)
        return result.to_dict()

    # ── Ratification ──

    def pending_ratification(self) -> Optional[dict]:
        return self.gate.pending()

    def ratify(self, request_id: str, approved: bool) -> bool:
        return self.gate.resolve(request_id, approved)

    # ── Cluster ──

    def reset_cluster(self) -> dict:
        self.session.reset()
        return self.session.status()

    def get_status(self) -> dict:
        return {
            "ready": self._ready,
            "uptime": time.time() - self._startup_time if self._startup_time else 0,
            "mode": self.settings.orchestration_mode,
            "tools": self.tool_backend.names(),
            "pending_ratification": self.gate.pending(),
            **self.session.status(),
        }
