"""
GenericProvider — a remote inference node that learns its own dialect.

discover() asks the DiscoveryAgent which protocol the endpoint speaks;
execute() dispatches through a per-dialect table and consults the
ErrorInterpreter when a call fails:

  switch_protocol → adopt the suggested dialect and retry at once
  switch_provider → raise NodeFailure so the router can fail over
  retry           → sleep, then retry
  fail            → re-raise the original error untouched

Both wire adapters normalize to/from the internal Request/Response model.
"""

import asyncio
import logging
from typing import Callable, Optional

import httpx

from config import DEFAULT_MAX_TOKENS, DEFAULT_TIMEOUT, NODE_MAX_ATTEMPTS, NODE_RETRY_DELAY
from inference.discovery import DiscoveryAgent
from inference.errors import NodeFailure, ProviderError, RepairAction
from inference.feedback import ErrorInterpreter
from inference.protocol import Dialect, Node, Request, Response, Role, Usage

logger = logging.getLogger(__name__)

_OPENAI_WIRE_ROLES = {Role.SYSTEM: "system", Role.USER: "user"}


def build_openai_body(request: Request, model_id: str) -> dict:
    """Flat message array: {model, messages:[{role, content}], max_tokens}."""
    constraints = request.constraints
    body = {
        "model": model_id,
        "messages": [
            {"role": _OPENAI_WIRE_ROLES.get(m.role, "assistant"), "content": m.content}
            for m in request.messages
        ],
        "max_tokens": (constraints and constraints.max_tokens) or DEFAULT_MAX_TOKENS,
    }
    if constraints and constraints.temperature is not None:
        body["temperature"] = constraints.temperature
    if constraints and constraints.stop_sequences:
        body["stop"] = list(constraints.stop_sequences)
    return body


def build_google_body(request: Request, model_id: str) -> dict:
    """Nested turn/part structure: {contents:[{role, parts:[{text}]}]}."""
    body = {
        "contents": [
            {
                "role": "user" if m.role == Role.USER else "model",
                "parts": [{"text": m.content}],
            }
            for m in request.messages
        ],
    }
    constraints = request.constraints
    if constraints:
        generation = {}
        if constraints.max_tokens:
            generation["maxOutputTokens"] = constraints.max_tokens
        if constraints.temperature is not None:
            generation["temperature"] = constraints.temperature
        if constraints.stop_sequences:
            generation["stopSequences"] = list(constraints.stop_sequences)
        if generation:
            body["generationConfig"] = generation
    return body


class GenericProvider(Node):
    """Remote inference backend speaking OpenAI- or Google-style HTTP."""

    def __init__(self, node_id: str, name: str, base_url: str, api_key: str = "",
                 protocol: Dialect = Dialect.OPENAI,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 default_timeout: float = DEFAULT_TIMEOUT,
                 retry_delay: float = NODE_RETRY_DELAY):
        super().__init__(node_id, name)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.protocol = protocol
        self.default_timeout = default_timeout
        self.retry_delay = retry_delay
        self._transport = transport
        self._agent = DiscoveryAgent(transport=transport)
        self._interpreter = ErrorInterpreter()
        # dialect -> (body builder, sender)
        self._dialects: dict[Dialect, tuple[Callable, Callable]] = {
            Dialect.OPENAI: (build_openai_body, self._call_openai),
            Dialect.GOOGLE: (build_google_body, self._call_google),
        }

    # ── Discovery ──

    async def discover(self) -> None:
        if not self.base_url:
            return
        result = await self._agent.probe(self.base_url, self.api_key)
        self.protocol = Dialect.UNKNOWN if result.protocol == Dialect.MCP else result.protocol
        self.capabilities = result.capabilities
        logger.info("Node '%s' speaks %s with %d capabilities",
                    self.id, self.protocol.value, len(self.capabilities))

    # ── Execution ──

    def _resolve_model(self, request: Request) -> str:
        model_id = request.model_id
        if not model_id:
            caps = self.inference_capabilities()
            model_id = caps[0].description if caps else None
        if not model_id:
            raise ValueError(f"No model available on node {self.name}")
        return model_id

    async def execute(self, request: Request) -> Response:
        for attempt in range(1, NODE_MAX_ATTEMPTS + 1):
            # UNKNOWN falls back to the OpenAI dialect, the most common one
            build, send = self._dialects.get(self.protocol, self._dialects[Dialect.OPENAI])
            body: dict = {}
            try:
                model_id = self._resolve_model(request)
                body = build(request, model_id)
                return await send(model_id, body)
            except Exception as e:
                repair = self._interpreter.analyze(e, body)
                logger.warning("Node '%s' attempt %d/%d failed (%s): %s",
                               self.id, attempt, NODE_MAX_ATTEMPTS, repair.action.value, e)

                if repair.action == RepairAction.SWITCH_PROTOCOL and repair.suggested_protocol:
                    self.protocol = repair.suggested_protocol
                    continue
                if repair.action == RepairAction.SWITCH_PROVIDER:
                    raise NodeFailure(self.id, repair.reason, repair.action) from e
                if repair.action == RepairAction.RETRY:
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise

        raise NodeFailure(
            self.id,
            f"Exhausted {NODE_MAX_ATTEMPTS} interpretive attempts on node {self.name}. "
            "Node is non-functional for this request.",
        )

    # ── Wire adapters ──

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _call_openai(self, model_id: str, body: dict) -> Response:
        async with httpx.AsyncClient(timeout=self.default_timeout,
                                     transport=self._transport) as client:
            resp = await client.post(f"{self.base_url}/chat/completions",
                                     json=body, headers=self._headers())
        if resp.status_code >= 400:
            raise ProviderError(self.name, "OpenAI", resp.status_code, resp.text)

        data = resp.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        return Response(
            content=content,
            usage=Usage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            metadata={"model": model_id, "node": self.id},
        )

    async def _call_google(self, model_id: str, body: dict) -> Response:
        url = f"{self.base_url}/models/{model_id}:generateContent"
        async with httpx.AsyncClient(timeout=self.default_timeout,
                                     transport=self._transport) as client:
            resp = await client.post(url, json=body, params={"key": self.api_key},
                                     headers={"Content-Type": "application/json"})
        if resp.status_code >= 400:
            raise ProviderError(self.name, "Google", resp.status_code, resp.text)

        data = resp.json()
        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or [{}]
        usage = data.get("usageMetadata") or {}
        return Response(
            content=parts[0].get("text") or "",
            usage=Usage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            ),
            metadata={"model": model_id, "node": self.id},
        )
