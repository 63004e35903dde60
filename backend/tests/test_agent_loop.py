"""
Tests for the bounded agent loop.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.loop import AgentLoop
from agents.ratification import RatificationGate, RatificationVeto
from inference.protocol import Role
from inference.tool_node import LocalToolNode
from tools import CallableToolBackend


def _tool_node():
    backend = CallableToolBackend()

    def read_file(path: str) -> str:
        """Read a file."""
        return f"contents of {path}"

    def run_command(command: str) -> str:
        """Run a command."""
        return f"ran {command}"

    backend.register(read_file, permission="file_system")
    backend.register(run_command, permission="cli")
    return LocalToolNode(backend)


def _router(*replies):
    router = MagicMock()
    router.call_model = AsyncMock(side_effect=list(replies))
    return router


class TestAgentLoop:

    @pytest.mark.asyncio
    async def test_stops_on_final_answer(self):
        router = _router("FINAL_ANSWER: done")
        result = await AgentLoop(router, _tool_node()).run("Artisan", "m", "do it")

        assert result == "FINAL_ANSWER: done"
        assert router.call_model.await_count == 1

    @pytest.mark.asyncio
    async def test_system_prompt_embeds_tool_directory(self):
        router = _router("FINAL_ANSWER: ok")
        await AgentLoop(router, _tool_node()).run("Sentinel", "m", "review")

        model_id, messages = router.call_model.await_args.args
        assert model_id == "m"
        assert messages[0].role == Role.SYSTEM
        assert "- read_file: Read a file." in messages[0].content
        assert "TOOL_CALL:" in messages[0].content
        assert messages[1].content == "review"

    @pytest.mark.asyncio
    async def test_tool_result_fed_back(self):
        router = _router(
            'TOOL_CALL: read_file\nARGUMENTS: {"path": "a.py"}',
            "FINAL_ANSWER: read it",
        )
        result = await AgentLoop(router, _tool_node()).run("Researcher", "m", "look")

        second_turn = router.call_model.await_args_list[1].args[1]
        assert second_turn[-1].role == Role.USER
        assert "contents of a.py" in second_turn[-1].content
        assert result.endswith("FINAL_ANSWER: read it")

    @pytest.mark.asyncio
    async def test_nudge_when_no_tool_call(self):
        router = _router("thinking...", "FINAL_ANSWER: ok")
        await AgentLoop(router, _tool_node()).run("Artisan", "m", "x")

        second_turn = router.call_model.await_args_list[1].args[1]
        assert "FINAL_ANSWER:" in second_turn[-1].content
        assert second_turn[-2].content == "thinking..."

    @pytest.mark.asyncio
    async def test_turn_limit(self):
        router = _router(*["still working"] * 10)
        result = await AgentLoop(router, _tool_node(), max_turns=5).run("Artisan", "m", "x")

        assert router.call_model.await_count == 5
        assert result.count("still working") == 5

    @pytest.mark.asyncio
    async def test_duplicate_call_skipped(self):
        call = 'TOOL_CALL: read_file\nARGUMENTS: {"path": "a.py"}'
        router = _router(call, call, "FINAL_ANSWER: ok")
        await AgentLoop(router, _tool_node()).run("Artisan", "m", "x")

        third_turn = router.call_model.await_args_list[2].args[1]
        assert "Skipped: duplicate call" in third_turn[-1].content

    @pytest.mark.asyncio
    async def test_rejected_ratification_aborts_task(self):
        gate = RatificationGate(scale=5)
        router = _router('TOOL_CALL: run_command\nARGUMENTS: {"command": "rm -r build"}')
        loop = AgentLoop(router, _tool_node(), gate=gate)

        task = asyncio.create_task(loop.run("Artisan", "m", "clean"))
        for _ in range(5):
            await asyncio.sleep(0)
            if gate.pending():
                break
        gate.resolve(gate.pending()["id"], False)

        with pytest.raises(RatificationVeto):
            await task
