"""
DiscoveryAgent — probes an endpoint and infers which dialect it speaks.

Dialects are tried in a fixed priority order. Each probe is independent:
a network error, a non-success status or an unexpected payload shape just
moves on to the next dialect. Nothing here retries; discovery runs once per
node per cycle.
"""

import logging
from typing import Optional

import httpx

from config import (
    DEFAULT_CONTEXT_LENGTH, DISCOVERY_TIMEOUT, GOOGLE_HOST_MARKER, MODEL_ID_PREFIXES,
)
from inference.protocol import Capability, CapabilityType, Dialect, DiscoveryResult

logger = logging.getLogger(__name__)


def strip_model_prefix(model_id: str) -> str:
    """Drop a leading 'models/' or 'openai/' namespace from a model id."""
    for prefix in MODEL_ID_PREFIXES:
        if model_id.startswith(prefix):
            return model_id[len(prefix):]
    return model_id


def coerce_context_length(value) -> int:
    """Context window as a positive int; anything unusable gives the default."""
    if isinstance(value, bool):
        return DEFAULT_CONTEXT_LENGTH
    try:
        length = int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring unusable context length %r", value)
        return DEFAULT_CONTEXT_LENGTH
    return length if length > 0 else DEFAULT_CONTEXT_LENGTH


class DiscoveryAgent:
    """Sniffs the wire protocol and model list of a serving endpoint."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = DISCOVERY_TIMEOUT):
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def probe(self, url: str, key: str = "") -> DiscoveryResult:
        logger.info("Probing node at %s", url)
        base_url = url.rstrip("/")

        for attempt in (self._try_openai, self._try_google):
            result = await attempt(base_url, key)
            if result is not None:
                return result

        logger.warning("Unknown protocol at %s — falling back to 'unknown'", url)
        return DiscoveryResult(
            protocol=Dialect.UNKNOWN,
            capabilities=[],
            metadata={"base_url": base_url},
        )

    # ── Dialect probes ──

    async def _try_openai(self, base_url: str, key: str) -> Optional[DiscoveryResult]:
        headers = {"Authorization": f"Bearer {key}"} if key else {}
        try:
            async with self._client() as client:
                resp = await client.get(f"{base_url}/models", headers=headers)
            if resp.status_code >= 400:
                return None
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("OpenAI probe failed for %s: %s", base_url, e)
            return None

        entries = data.get("data") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            return None

        capabilities = []
        for m in entries:
            if not isinstance(m, dict) or not m.get("id"):
                continue
            context_length = coerce_context_length(
                m.get("context_window") or m.get("context_length")
            )
            capabilities.append(Capability(
                type=CapabilityType.INFERENCE,
                description=strip_model_prefix(str(m["id"])),
                metadata={
                    "context_length": context_length,
                    "display_name": m.get("name", ""),
                    "summary": m.get("description", ""),
                },
            ))

        logger.info("Identified OpenAI-compatible protocol at %s (%d models)",
                    base_url, len(capabilities))
        return DiscoveryResult(
            protocol=Dialect.OPENAI,
            capabilities=capabilities,
            metadata={"base_url": base_url},
        )

    async def _try_google(self, base_url: str, key: str) -> Optional[DiscoveryResult]:
        params = {"key": key} if GOOGLE_HOST_MARKER in base_url and key else None
        try:
            async with self._client() as client:
                resp = await client.get(f"{base_url}/models", params=params)
            if resp.status_code >= 400:
                return None
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Google probe failed for %s: %s", base_url, e)
            return None

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return None

        capabilities = []
        for m in models:
            if not isinstance(m, dict) or not m.get("name"):
                continue
            name = str(m["name"])
            capabilities.append(Capability(
                type=CapabilityType.INFERENCE,
                description=strip_model_prefix(name),
                metadata={
                    "full_name": name,
                    "context_length": coerce_context_length(m.get("inputTokenLimit")),
                    "display_name": m.get("displayName", ""),
                    "summary": m.get("description", ""),
                },
            ))

        logger.info("Identified Google protocol at %s (%d models)",
                    base_url, len(capabilities))
        return DiscoveryResult(
            protocol=Dialect.GOOGLE,
            capabilities=capabilities,
            metadata={"base_url": base_url},
        )
