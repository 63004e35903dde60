"""
AgentLoop — bounded tool-calling loop that executes one task.

Each turn calls the role's model, accumulates its text and stops on the
completion sentinel. Tool calls found in the text are ratified when risky,
executed through the local tool node, and fed back as result messages.
"""

import json
import logging
from typing import Optional

from agents.prompts import CONTINUE_NUDGE, build_agent_prompt, tool_result_message
from agents.ratification import RatificationGate
from agents.tool_calls import ToolCall, parse_tool_calls
from config import FINAL_ANSWER_MARKER, MAX_AGENT_TURNS
from inference.protocol import Message, Request, RequestContext, Role
from inference.router import FailoverRouter
from inference.tool_node import LocalToolNode

logger = logging.getLogger(__name__)


class AgentLoop:
    def __init__(self, router: FailoverRouter, tool_node: LocalToolNode,
                 gate: Optional[RatificationGate] = None, max_turns: int = MAX_AGENT_TURNS):
        self.router = router
        self.tool_node = tool_node
        self.gate = gate
        self.max_turns = max_turns

    async def _run_tool(self, call: ToolCall) -> str:
        if self.gate is not None:
            await self.gate.check(call.name, call.args)
        request = Request(
            messages=[],
            context=RequestContext(metadata={"tool": call.name, "arguments": call.args}),
        )
        response = await self.tool_node.execute(request)
        return response.content

    async def run(self, agent_type: str, model_id: str, instruction: str) -> str:
        """Run the loop for one task and return the accumulated model text.

        RatificationVeto propagates to the caller and ends this task only.
        """
        messages = [
            Message(role=Role.SYSTEM,
                    content=build_agent_prompt(agent_type, self.tool_node.backend.directory())),
            Message(role=Role.USER, content=instruction),
        ]
        accumulated: list[str] = []
        seen_calls = set()

        for turn in range(1, self.max_turns + 1):
            text = await self.router.call_model(model_id, list(messages))
            accumulated.append(text)
            messages.append(Message(role=Role.ASSISTANT, content=text))

            if FINAL_ANSWER_MARKER in text:
                logger.info("%s finished on turn %d", agent_type, turn)
                break

            calls = parse_tool_calls(text)
            if not calls:
                messages.append(Message(role=Role.USER, content=CONTINUE_NUDGE))
                continue

            for call in calls:
                call_sig = f"{call.name}:{json.dumps(call.args, sort_keys=True)}"
                if call_sig in seen_calls:
                    output = f"Skipped: duplicate call to {call.name} with same arguments."
                else:
                    seen_calls.add(call_sig)
                    logger.info("%s calling tool '%s'", agent_type, call.name)
                    output = await self._run_tool(call)
                messages.append(Message(role=Role.USER, content=tool_result_message(call.name, output)))
        else:
            logger.info("%s hit the %d-turn limit", agent_type, self.max_turns)

        return "\n\n".join(accumulated)
