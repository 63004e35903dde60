"""
Plan model and the tolerant parser for the strategist's planning response.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class AgentType(Enum):
    ARTISAN = "Artisan"
    SENTINEL = "Sentinel"
    RESEARCHER = "Researcher"

    @classmethod
    def parse(cls, value) -> "AgentType":
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        logger.warning("Unknown agentType '%s' — assigning to Artisan", value)
        return cls.ARTISAN


@dataclass
class Task:
    id: str
    agent_type: AgentType
    instruction: str
    depends_on: set[str] = field(default_factory=set)


@dataclass
class Plan:
    message_to_user: str = ""
    tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "messageToUser": self.message_to_user,
            "tasks": [
                {"id": t.id, "agentType": t.agent_type.value,
                 "instruction": t.instruction, "dependsOn": sorted(t.depends_on)}
                for t in self.tasks
            ],
        }


def _extract_json(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ""
    return text[start:end + 1]


def parse_plan(text: str) -> Plan:
    """Parse the strategist's plan. Never raises: bad input yields an empty plan."""
    raw = _extract_json(text or "")
    if not raw:
        logger.warning("Planner response contained no JSON object — continuing with no tasks")
        return Plan()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Planner JSON unparseable (%s) — continuing with no tasks", e)
        return Plan()
    if not isinstance(data, dict):
        return Plan()

    raw_tasks = data.get("tasks") or []
    if not isinstance(raw_tasks, list):
        logger.warning("Plan 'tasks' is not a list (%s); continuing with no tasks",
                       type(raw_tasks).__name__)
        raw_tasks = []

    tasks = []
    seen = set()
    for i, item in enumerate(raw_tasks):
        if not isinstance(item, dict):
            logger.warning("Skipping malformed plan task #%d", i + 1)
            continue
        task_id = str(item.get("id") or f"t{i + 1}")
        if task_id in seen:
            logger.warning("Duplicate task id '%s' in plan — skipping", task_id)
            continue
        seen.add(task_id)
        depends = item.get("dependsOn") or []
        if isinstance(depends, str):
            depends = [depends]
        elif not isinstance(depends, list):
            logger.warning("Task '%s' has unusable dependsOn %r; treating as independent",
                           task_id, depends)
            depends = []
        tasks.append(Task(
            id=task_id,
            agent_type=AgentType.parse(item.get("agentType")),
            instruction=str(item.get("instruction") or ""),
            depends_on={str(d) for d in depends},
        ))
    return Plan(message_to_user=str(data.get("messageToUser") or ""), tasks=tasks)
