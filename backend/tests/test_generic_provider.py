"""
Tests for GenericProvider wire adapters and self-repair.
"""

import json

import httpx
import pytest

from inference.errors import NodeFailure, ProviderError, RepairAction
from inference.generic import GenericProvider, build_google_body, build_openai_body
from inference.protocol import (
    Constraints, Dialect, Message, Request, RequestContext, Role,
)


def _request(model_id="m1", constraints=None):
    return Request(
        messages=[
            Message(role=Role.SYSTEM, content="be brief"),
            Message(role=Role.USER, content="hi"),
            Message(role=Role.STRATEGIST, content="plan"),
        ],
        constraints=constraints,
        context=RequestContext(metadata={"model_id": model_id}),
    )


def _openai_ok(text="hello"):
    return httpx.Response(200, json={
        "choices": [{"message": {"content": text}}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
    })


class TestBodies:

    def test_openai_body_maps_roles(self):
        body = build_openai_body(_request(), "m1")
        assert body["model"] == "m1"
        assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant"]
        assert body["max_tokens"] == 4000

    def test_openai_body_constraints(self):
        body = build_openai_body(_request(constraints=Constraints(max_tokens=50, temperature=0.2,
                                                                  stop_sequences=["END"])), "m1")
        assert body["max_tokens"] == 50
        assert body["temperature"] == 0.2
        assert body["stop"] == ["END"]

    def test_google_body_turns(self):
        body = build_google_body(_request(), "m1")
        assert [c["role"] for c in body["contents"]] == ["model", "user", "model"]
        assert body["contents"][1]["parts"] == [{"text": "hi"}]
        assert "generationConfig" not in body


class TestExecute:

    @pytest.mark.asyncio
    async def test_openai_call(self):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return _openai_ok("pong")

        node = GenericProvider("lab", "Lab", "http://lab/v1", "k",
                               transport=httpx.MockTransport(handler))
        response = await node.execute(_request())

        assert response.content == "pong"
        assert response.usage.total_tokens == 4
        assert captured["url"] == "http://lab/v1/chat/completions"
        assert captured["body"]["model"] == "m1"

    @pytest.mark.asyncio
    async def test_google_call(self):
        def handler(request):
            assert request.url.path.endswith("/models/gemini-pro:generateContent")
            assert request.url.params["key"] == "g"
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": "hola"}]}}],
            })

        node = GenericProvider("g", "Gem", "https://generativelanguage.googleapis.com/v1beta", "g",
                               protocol=Dialect.GOOGLE, transport=httpx.MockTransport(handler))
        response = await node.execute(_request("gemini-pro"))

        assert response.content == "hola"

    @pytest.mark.asyncio
    async def test_protocol_self_correction(self):
        """A node configured for Google against an OpenAI server recovers on retry."""
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if request.url.path.endswith(":generateContent"):
                return httpx.Response(400, text='Unknown property "contents"')
            return _openai_ok("fixed")

        node = GenericProvider("lab", "Lab", "http://lab/v1", protocol=Dialect.GOOGLE,
                               transport=httpx.MockTransport(handler))
        response = await node.execute(_request())

        assert response.content == "fixed"
        assert node.protocol == Dialect.OPENAI
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_auth_failure_raises_node_failure(self):
        def handler(request):
            return httpx.Response(401, text="Unauthorized")

        node = GenericProvider("lab", "Lab", "http://lab/v1",
                               transport=httpx.MockTransport(handler))
        with pytest.raises(NodeFailure) as exc:
            await node.execute(_request())

        assert exc.value.node_id == "lab"
        assert exc.value.action == RepairAction.SWITCH_PROVIDER
        assert str(exc.value).startswith("NODE_FAILURE:")
        assert isinstance(exc.value.__cause__, ProviderError)

    @pytest.mark.asyncio
    async def test_transient_retries_then_succeeds(self):
        responses = [httpx.Response(429, text="rate limit"), _openai_ok("later")]

        def handler(request):
            return responses.pop(0)

        node = GenericProvider("lab", "Lab", "http://lab/v1", retry_delay=0,
                               transport=httpx.MockTransport(handler))
        response = await node.execute(_request())

        assert response.content == "later"

    @pytest.mark.asyncio
    async def test_persistent_transient_exhausts_into_node_failure(self):
        def handler(request):
            return httpx.Response(503, text="overloaded")

        node = GenericProvider("lab", "Lab", "http://lab/v1", retry_delay=0,
                               transport=httpx.MockTransport(handler))
        with pytest.raises(NodeFailure):
            await node.execute(_request())

    @pytest.mark.asyncio
    async def test_unclassified_error_propagates(self):
        def handler(request):
            return httpx.Response(400, text="context too long")

        node = GenericProvider("lab", "Lab", "http://lab/v1",
                               transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError):
            await node.execute(_request())


class TestDiscover:

    @pytest.mark.asyncio
    async def test_discover_sets_protocol_and_capabilities(self):
        def handler(request):
            return httpx.Response(200, json={"data": [{"id": "qwen2.5-coder"}]})

        node = GenericProvider("ollama", "Ollama", "http://localhost:11434/v1",
                               protocol=Dialect.GOOGLE, transport=httpx.MockTransport(handler))
        await node.discover()

        assert node.protocol == Dialect.OPENAI
        assert node.find_capability("qwen2.5-coder") is not None

    @pytest.mark.asyncio
    async def test_model_defaults_to_first_capability(self):
        def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json={"data": [{"id": "only-model"}]})
            assert json.loads(request.content)["model"] == "only-model"
            return _openai_ok()

        node = GenericProvider("lab", "Lab", "http://lab/v1", transport=httpx.MockTransport(handler))
        await node.discover()
        response = await node.execute(Request(messages=[Message(role=Role.USER, content="x")]))

        assert response.content == "hello"
