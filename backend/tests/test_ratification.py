"""
Tests for the ratification gate.
"""

import asyncio

import pytest

from agents.ratification import RatificationGate, RatificationVeto, risk_for, should_gate


class TestRisk:

    def test_known_and_keyword_risks(self):
        assert risk_for("run_command") == 9
        assert risk_for("write_file") == 7
        assert risk_for("delete_file") == 7
        assert risk_for("read_file") == 1
        assert risk_for("mystery_tool") == 5

    @pytest.mark.parametrize("scale,risk,expected", [
        (0, 10, False),
        (5, 4, False),
        (5, 5, True),
        (10, 0, True),
        (1, 9, True),
        (1, 8, False),
    ])
    def test_threshold(self, scale, risk, expected):
        assert should_gate(scale, risk) is expected


class TestGate:

    @pytest.mark.asyncio
    async def test_ungated_call_passes_through(self):
        gate = RatificationGate(scale=5)
        await gate.check("read_file", {"path": "x"})
        assert gate.pending() is None

    @pytest.mark.asyncio
    async def test_approval_unblocks(self):
        gate = RatificationGate(scale=5)
        waiter = asyncio.create_task(gate.check("run_command", {"command": "ls"}))
        await asyncio.sleep(0)

        pending = gate.pending()
        assert pending["tool"] == "run_command"
        assert gate.resolve(pending["id"], True)

        await waiter
        assert gate.pending() is None

    @pytest.mark.asyncio
    async def test_rejection_raises_veto(self):
        gate = RatificationGate(scale=10)
        waiter = asyncio.create_task(gate.check("write_file", {"path": "a"}))
        await asyncio.sleep(0)
        gate.resolve(gate.pending()["id"], False)

        with pytest.raises(RatificationVeto) as exc:
            await waiter
        assert exc.value.tool == "write_file"

    @pytest.mark.asyncio
    async def test_second_request_supersedes_first(self):
        """The superseded waiter is rejected instead of left hanging."""
        gate = RatificationGate(scale=10)
        first = asyncio.create_task(gate.request("write_file", {}))
        await asyncio.sleep(0)
        first_id = gate.pending()["id"]

        second = asyncio.create_task(gate.request("run_command", {}))
        await asyncio.sleep(0)

        assert await first is False
        assert gate.pending()["tool"] == "run_command"
        assert not gate.resolve(first_id, True)

        gate.resolve(gate.pending()["id"], True)
        assert await second is True

    @pytest.mark.asyncio
    async def test_unknown_id_not_resolved(self):
        gate = RatificationGate(scale=10)
        assert not gate.resolve("nope", True)

    @pytest.mark.asyncio
    async def test_broadcast_receives_request(self):
        events = []

        async def broadcast(payload):
            events.append(payload)

        gate = RatificationGate(scale=10, broadcast=broadcast)
        waiter = asyncio.create_task(gate.request("fetch_url", {"url": "http://x"}))
        await asyncio.sleep(0)
        gate.resolve(events[0]["id"], True)

        assert await waiter is True
        assert events[0]["type"] == "ratification_request"
