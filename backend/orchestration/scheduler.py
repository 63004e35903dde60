"""
WaveScheduler — dependency-ordered execution of a task plan.

Tasks run in waves: each wave is the set of pending tasks whose dependencies
have all completed. When the ready set comes up empty while tasks are still
pending (a cycle or a dependency on an unknown id) scheduling stops and the
remaining tasks are left incomplete.

Architecture:
  - ready_set() is a pure function of (pending, completed)
  - waves() dry-runs the whole plan without executing anything
  - run() executes wave by wave, sequentially or with asyncio.gather
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from orchestration.planner import Task

logger = logging.getLogger(__name__)


@dataclass
class WaveRun:
    outputs: list[tuple[Task, str]] = field(default_factory=list)
    waves: list[list[str]] = field(default_factory=list)
    stalled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class WaveScheduler:
    """Schedules plan tasks in dependency waves.

    report_stalled=True surfaces stalled tasks in WaveRun.skipped (and the
    log) so the synthesis step can mention them; False leaves them silent.
    """

    def __init__(self, tasks: list[Task], report_stalled: bool = True):
        self.tasks = {t.id: t for t in tasks}
        self.report_stalled = report_stalled

    @staticmethod
    def ready_set(pending: dict[str, Task], completed: set[str]) -> list[Task]:
        return [t for t in pending.values() if t.depends_on <= completed]

    def waves(self) -> tuple[list[list[str]], list[str]]:
        """Dry run: return (waves of task ids, stalled task ids)."""
        pending = dict(self.tasks)
        completed: set[str] = set()
        waves = []
        while pending:
            ready = self.ready_set(pending, completed)
            if not ready:
                break
            waves.append([t.id for t in ready])
            for t in ready:
                completed.add(t.id)
                pending.pop(t.id)
        return waves, sorted(pending)

    async def run(self, execute: Callable[[Task], Awaitable[str]],
                  parallel: bool = False) -> WaveRun:
        """Execute every runnable task; exceptions from execute propagate."""
        result = WaveRun()
        pending = dict(self.tasks)
        completed: set[str] = set()

        while pending:
            ready = self.ready_set(pending, completed)
            if not ready:
                break
            result.waves.append([t.id for t in ready])
            logger.info("Wave %d: %s", len(result.waves), ", ".join(t.id for t in ready))

            if parallel:
                outputs = await asyncio.gather(*(execute(t) for t in ready))
                finished = list(zip(ready, outputs))
            else:
                finished = []
                for task in ready:
                    finished.append((task, await execute(task)))

            for task, output in finished:
                result.outputs.append((task, output))
                completed.add(task.id)
                pending.pop(task.id)

        result.stalled = sorted(pending)
        if result.stalled and self.report_stalled:
            logger.warning("Scheduler stalled; unsatisfiable dependencies for: %s",
                           ", ".join(result.stalled))
            result.skipped = list(result.stalled)
        return result
