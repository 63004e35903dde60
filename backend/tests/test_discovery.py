"""
Tests for DiscoveryAgent dialect probing.
"""

import httpx
import pytest

from inference.discovery import DiscoveryAgent, strip_model_prefix
from inference.protocol import CapabilityType, Dialect


def _transport(handler):
    return httpx.MockTransport(handler)


class TestStripPrefix:

    def test_strips_known_prefixes(self):
        assert strip_model_prefix("models/gemini-1.5-pro") == "gemini-1.5-pro"
        assert strip_model_prefix("openai/gpt-4o") == "gpt-4o"

    def test_leaves_other_namespaces(self):
        assert strip_model_prefix("meta-llama/llama-3-70b") == "meta-llama/llama-3-70b"


class TestOpenAIProbe:

    @pytest.mark.asyncio
    async def test_openai_list_identified(self):
        """A {data:[...]} model list identifies the OpenAI dialect."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"data": [
                {"id": "openai/gpt-4o", "context_window": 128000, "name": "GPT-4o"},
                {"id": "llama-3.1-8b-instant"},
            ]})

        result = await DiscoveryAgent(transport=_transport(handler)).probe(
            "https://api.example.com/v1/", "sk-test")

        assert result.protocol == Dialect.OPENAI
        assert [c.description for c in result.capabilities] == ["gpt-4o", "llama-3.1-8b-instant"]
        assert all(c.type == CapabilityType.INFERENCE for c in result.capabilities)
        assert result.capabilities[0].metadata["context_length"] == 128000
        assert result.capabilities[1].metadata["context_length"] == 8000
        assert seen["auth"] == "Bearer sk-test"

    @pytest.mark.asyncio
    async def test_top_level_list_accepted(self):
        def handler(request):
            return httpx.Response(200, json=[{"id": "phi3", "context_length": 4096}])

        result = await DiscoveryAgent(transport=_transport(handler)).probe("http://local/v1")

        assert result.protocol == Dialect.OPENAI
        assert result.capabilities[0].metadata["context_length"] == 4096

    @pytest.mark.asyncio
    async def test_unusable_context_window_falls_back(self):
        def handler(request):
            return httpx.Response(200, json={"data": [
                {"id": "openai/gpt-4o", "context_window": "128k"},
                {"id": "odd", "context_length": {"max": 1}},
            ]})

        result = await DiscoveryAgent(transport=_transport(handler)).probe("http://local/v1")

        assert result.protocol == Dialect.OPENAI
        assert [c.metadata["context_length"] for c in result.capabilities] == [8000, 8000]


class TestGoogleProbe:

    @pytest.mark.asyncio
    async def test_google_models_identified(self):
        """A {models:[...]} payload identifies Google and strips 'models/'."""
        def handler(request):
            return httpx.Response(200, json={"models": [
                {"name": "models/gemini-1.5-flash", "inputTokenLimit": 1000000,
                 "displayName": "Gemini 1.5 Flash"},
            ]})

        result = await DiscoveryAgent(transport=_transport(handler)).probe(
            "https://generativelanguage.googleapis.com/v1beta", "g-key")

        assert result.protocol == Dialect.GOOGLE
        cap = result.capabilities[0]
        assert cap.description == "gemini-1.5-flash"
        assert cap.metadata["full_name"] == "models/gemini-1.5-flash"
        assert cap.metadata["context_length"] == 1000000

    @pytest.mark.asyncio
    async def test_unusable_input_token_limit_falls_back(self):
        def handler(request):
            return httpx.Response(200, json={"models": [
                {"name": "models/gemini-pro", "inputTokenLimit": {}},
            ]})

        result = await DiscoveryAgent(transport=_transport(handler)).probe("http://proxy/v1beta")

        assert result.protocol == Dialect.GOOGLE
        assert result.capabilities[0].metadata["context_length"] == 8000

    @pytest.mark.asyncio
    async def test_key_param_only_for_google_hosts(self):
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return httpx.Response(404)

        await DiscoveryAgent(transport=_transport(handler)).probe("http://lab.internal/v1", "secret")

        assert urls and not any("key=" in u for u in urls)


class TestUnknown:

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_unknown(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await DiscoveryAgent(transport=_transport(handler)).probe("http://nowhere:1")

        assert result.protocol == Dialect.UNKNOWN
        assert result.capabilities == []

    @pytest.mark.asyncio
    async def test_non_json_body_is_unknown(self):
        def handler(request):
            return httpx.Response(200, text="<html>hello</html>")

        result = await DiscoveryAgent(transport=_transport(handler)).probe("http://web/")

        assert result.protocol == Dialect.UNKNOWN
