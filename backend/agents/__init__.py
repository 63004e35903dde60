"""
Agent layer: executor prompts, the tool-call grammar, ratification and the
bounded agent loop that runs one planned task.
"""

from agents.loop import AgentLoop
from agents.ratification import RatificationGate, RatificationVeto, risk_for, should_gate
from agents.tool_calls import ToolCall, parse_tool_calls

__all__ = [
    "AgentLoop",
    "RatificationGate", "RatificationVeto", "risk_for", "should_gate",
    "ToolCall", "parse_tool_calls",
]
