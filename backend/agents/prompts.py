"""
Agent prompt templates for the strategist and executor roles.

Architecture:
  - The strategist plans (strict JSON) and synthesizes the final answer.
  - Artisan, Sentinel and Researcher execute tasks through the tool grammar.
  - Every executor prompt embeds the live tool directory at build time.
"""

from config import ARGUMENTS_MARKER, FINAL_ANSWER_MARKER, TOOL_CALL_MARKER


# ── Strategist: planning ──

PLANNER_PROMPT = """You are the Strategist of a multi-agent engineering ensemble.
Break the user's request into tasks for specialist agents.

Agents:
- Artisan: writes, edits and refactors code; runs commands.
- Sentinel: reviews for bugs, security issues and risky changes.
- Researcher: reads files, searches, gathers facts before others act.

Respond with ONE JSON object and nothing else:
{
  "messageToUser": "one or two sentences describing the plan",
  "tasks": [
    {"id": "t1", "agentType": "Researcher", "instruction": "...", "dependsOn": []},
    {"id": "t2", "agentType": "Artisan", "instruction": "...", "dependsOn": ["t1"]}
  ]
}

Rules:
- Task ids are unique short strings.
- dependsOn lists ids of tasks whose output this task needs.
- Tasks without mutual dependencies may run in the same wave.
- Use an empty "tasks" list when the request needs no agent work."""


# ── Strategist: synthesis ──

SYNTHESIS_PROMPT = """You are the Strategist presenting the ensemble's results.
Combine the agent outputs into a single, direct answer to the user's request.
Lead with the outcome. Mention failures or skipped work plainly. No preamble."""


def build_synthesis_input(user_request: str, outputs: list[tuple[str, str, str]],
                          skipped: list[str] = None) -> str:
    """Concatenate task outputs with the original request for synthesis.

    outputs: (task_id, agent_type, output) triples in completion order.
    """
    parts = [f"User request:\n{user_request}", "", "Agent outputs:"]
    if not outputs:
        parts.append("(no agent tasks were executed)")
    for task_id, agent_type, output in outputs:
        parts.append(f"--- [{task_id}] {agent_type} ---\n{output}")
    if skipped:
        parts.append("")
        parts.append("Skipped (unsatisfiable dependencies): " + ", ".join(skipped))
    return "\n".join(parts)


# ── Executors ──

_GRAMMAR = f"""## Tools

{{tool_directory}}

To call a tool, write exactly these two lines (one call per pair):
{TOOL_CALL_MARKER} <tool_name>
{ARGUMENTS_MARKER} {{{{"arg": "value"}}}}

You will receive each tool's result in the next message.
When the task is complete, write "{FINAL_ANSWER_MARKER}" followed by your result."""

_ROLE_BRIEFS = {
    "Artisan": (
        "You are the Artisan: a precise software engineer. Make the smallest "
        "correct change, show the code you wrote, and verify it when a tool allows."
    ),
    "Sentinel": (
        "You are the Sentinel: a skeptical reviewer. Look for bugs, security "
        "issues and regressions. Report concrete findings with locations."
    ),
    "Researcher": (
        "You are the Researcher: gather facts before conclusions. Read and search "
        "first, cite what you found, and keep opinions separate from evidence."
    ),
}


def build_agent_prompt(agent_type: str, tool_directory: str) -> str:
    """System prompt for an executor role with the tool directory embedded."""
    brief = _ROLE_BRIEFS.get(agent_type, _ROLE_BRIEFS["Artisan"])
    return f"{brief}\n\n{_GRAMMAR.format(tool_directory=tool_directory)}"


CONTINUE_NUDGE = (
    f"Continue. Call a tool if you need more information, or write "
    f"{FINAL_ANSWER_MARKER} with your result."
)


def tool_result_message(name: str, output: str) -> str:
    return f"TOOL_RESULT ({name}):\n{output}"
