"""
Orchestrator — one query from plan to synthesized answer.

Pipeline:
  1. Estimate prompt size and pick the ensemble (one model per role)
  2. Strategist plans: strict JSON task graph, degrading to no tasks
  3. WaveScheduler runs tasks through the AgentLoop, wave by wave
  4. Strategist synthesizes the outputs; the answer joins the history

Cluster exhaustion and other unrecoverable errors propagate to the caller.
A ratification veto ends only the task that raised it.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from agents.loop import AgentLoop
from agents.prompts import PLANNER_PROMPT, SYNTHESIS_PROMPT, build_synthesis_input
from agents.ratification import RatificationGate, RatificationVeto
from config import CHARS_PER_TOKEN, MODE_MERIT
from inference.protocol import Message, Role
from inference.router import FailoverRouter
from inference.session import ClusterSession
from inference.tool_node import LocalToolNode
from orchestration.context import ContextSnapshot, ConversationLog
from orchestration.ensemble import Ensemble, EnsembleSelector
from orchestration.planner import Plan, Task, parse_plan
from orchestration.scheduler import WaveScheduler

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationResult:
    content: str
    plan: Plan
    ensemble: Ensemble
    outputs: dict[str, str] = field(default_factory=dict)
    waves: list[list[str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "plan": self.plan.to_dict(),
            "ensemble": self.ensemble.to_dict(),
            "outputs": self.outputs,
            "waves": self.waves,
            "skipped": self.skipped,
        }


class Orchestrator:
    def __init__(self, session: ClusterSession, tool_node: LocalToolNode,
                 gate: Optional[RatificationGate] = None,
                 history: Optional[ConversationLog] = None,
                 orchestration_mode: str = "balanced",
                 model_preferences: Optional[dict[str, int]] = None,
                 report_stalled: bool = True, parallel_waves: bool = False):
        self.session = session
        self.router = FailoverRouter(session)
        self.loop = AgentLoop(self.router, tool_node, gate)
        self.history = history if history is not None else ConversationLog()
        self.orchestration_mode = orchestration_mode
        self.selector = EnsembleSelector(model_preferences)
        self.report_stalled = report_stalled
        self.parallel_waves = parallel_waves

    @property
    def merit(self) -> int:
        return MODE_MERIT.get(self.orchestration_mode, MODE_MERIT["balanced"])

    def _request_text(self, query: str, snapshot: Optional[ContextSnapshot]) -> str:
        context = snapshot.render() if snapshot else ""
        recent = self.history.recent()
        parts = [query]
        if context:
            parts.append(f"[Editor context]\n{context}")
        if recent:
            parts.append("[Recent conversation]\n" + "\n".join(
                f"{t.role}: {t.content[:200]}" for t in recent))
        return "\n\n".join(parts)

    async def _plan(self, ensemble: Ensemble, request_text: str) -> Plan:
        raw = await self.router.call_model(ensemble.strategist, [
            Message(role=Role.SYSTEM, content=PLANNER_PROMPT),
            Message(role=Role.USER, content=request_text),
        ])
        plan = parse_plan(raw)
        logger.info("Plan: %d tasks — %s", len(plan.tasks), plan.message_to_user[:100])
        return plan

    async def _execute_task(self, task: Task, ensemble: Ensemble,
                            outputs: dict[str, str]) -> str:
        instruction = task.instruction
        upstream = [f"[{dep}]\n{outputs[dep]}" for dep in sorted(task.depends_on) if dep in outputs]
        if upstream:
            instruction += "\n\nResults from earlier tasks:\n" + "\n\n".join(upstream)
        try:
            output = await self.loop.run(task.agent_type.value,
                                         ensemble.for_agent(task.agent_type), instruction)
        except RatificationVeto as e:
            logger.warning("Task %s aborted: %s", task.id, e)
            output = f"[Task {task.id} aborted: {e.tool} was not ratified ({e.reason})]"
        outputs[task.id] = output
        return output

    async def run(self, query: str, snapshot: Optional[ContextSnapshot] = None) -> OrchestrationResult:
        request_text = self._request_text(query, snapshot)
        entries = await self.session.catalog.ensure_loaded()
        ensemble = self.selector.select(
            entries, self.session.blacklist,
            prompt_tokens=len(request_text) // CHARS_PER_TOKEN, merit=self.merit,
        )

        plan = await self._plan(ensemble, request_text)

        outputs: dict[str, str] = {}
        scheduler = WaveScheduler(plan.tasks, report_stalled=self.report_stalled)
        run = await scheduler.run(
            lambda task: self._execute_task(task, ensemble, outputs),
            parallel=self.parallel_waves,
        )

        synthesis_input = build_synthesis_input(
            request_text,
            [(t.id, t.agent_type.value, out) for t, out in run.outputs],
            skipped=run.skipped,
        )
        content = await self.router.call_model(ensemble.strategist, [
            Message(role=Role.SYSTEM, content=SYNTHESIS_PROMPT),
            Message(role=Role.USER, content=synthesis_input),
        ])

        self.history.append(Role.USER.value, query)
        self.history.append(Role.ASSISTANT.value, content)
        return OrchestrationResult(
            content=content, plan=plan, ensemble=ensemble,
            outputs={t.id: out for t, out in run.outputs},
            waves=run.waves, skipped=run.skipped,
        )
