"""
Ratification gate — user approval for risky tool calls.

Each tool carries a risk score (0-10). With ratificationScale N > 0, any
call with risk >= 10 - N waits for an explicit decision from the user.
The gate holds a single pending request: a new request supersedes the
previous one, whose waiter is resolved as rejected so nothing is left
hanging.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from config import DEFAULT_TOOL_RISK, TOOL_RISK

logger = logging.getLogger(__name__)


class RatificationVeto(Exception):
    """The user rejected (or superseded) a gated tool call."""

    def __init__(self, tool: str, reason: str = "rejected by user"):
        self.tool = tool
        self.reason = reason
        super().__init__(f"Ratification veto for '{tool}': {reason}")


def risk_for(tool: str) -> int:
    """Risk of a tool by exact name, else by the first keyword it contains."""
    name = tool.lower()
    if name in TOOL_RISK:
        return TOOL_RISK[name]
    for keyword, risk in TOOL_RISK.items():
        if keyword in name:
            return risk
    return DEFAULT_TOOL_RISK


def should_gate(scale: int, risk: int) -> bool:
    return scale > 0 and risk >= 10 - scale


@dataclass
class PendingRatification:
    id: str
    tool: str
    args: dict
    risk: int
    created_at: float = field(default_factory=time.time)
    future: Optional[asyncio.Future] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tool": self.tool,
            "args": self.args,
            "risk": self.risk,
            "created_at": self.created_at,
        }


class RatificationGate:
    """Single-slot approval gate.

    broadcast, when given, is awaited with the request payload so a UI can
    prompt the user; decisions come back through resolve().
    """

    def __init__(self, scale: int = 0,
                 broadcast: Optional[Callable[[dict], Awaitable[None]]] = None):
        self.scale = scale
        self._broadcast = broadcast
        self._pending: Optional[PendingRatification] = None

    def pending(self) -> Optional[dict]:
        return self._pending.to_dict() if self._pending else None

    def requires_ratification(self, tool: str) -> bool:
        return should_gate(self.scale, risk_for(tool))

    async def check(self, tool: str, args: dict):
        """Pass through ungated calls; wait for approval on gated ones.

        Raises RatificationVeto when the call is rejected.
        """
        if not self.requires_ratification(tool):
            return
        approved = await self.request(tool, args)
        if not approved:
            raise RatificationVeto(tool)

    async def request(self, tool: str, args: dict) -> bool:
        """Park a request and wait for the user's decision."""
        loop = asyncio.get_running_loop()
        if self._pending is not None and not self._pending.future.done():
            logger.warning("Ratification for '%s' superseded by '%s' — treating as rejected",
                           self._pending.tool, tool)
            self._pending.future.set_result(False)

        pending = PendingRatification(
            id=uuid.uuid4().hex[:12], tool=tool, args=dict(args or {}),
            risk=risk_for(tool), future=loop.create_future(),
        )
        self._pending = pending
        logger.info("Ratification requested for '%s' (risk %d) [%s]", tool, pending.risk, pending.id)

        if self._broadcast is not None:
            try:
                await self._broadcast({"type": "ratification_request", **pending.to_dict()})
            except Exception as e:
                logger.error("Ratification broadcast failed: %s", e)

        try:
            return await pending.future
        finally:
            if self._pending is pending:
                self._pending = None

    def resolve(self, request_id: str, approved: bool) -> bool:
        """Deliver a decision. Returns False if no such request is pending."""
        pending = self._pending
        if pending is None or pending.id != request_id or pending.future.done():
            return False
        pending.future.set_result(bool(approved))
        logger.info("Ratification %s for '%s' [%s]",
                    "approved" if approved else "rejected", pending.tool, request_id)
        return True
