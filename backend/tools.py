"""
Tool backend contract — "execute named capability with arguments, get text".

The raw tools (file I/O, shell, search) live outside the engine. Anything
that implements ToolBackend can be handed to the orchestrator; the agent
loop only ever calls execute(name, args) and reads the string it returns.

CallableToolBackend is the in-process implementation: it registers plain or
async Python callables, describes them from their docstrings, enforces the
permission toggles from settings, and routes the configured terminal target
to shell-style tools that ask for it.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from settings import PermissionsConfig

logger = logging.getLogger(__name__)

PERMISSION_CATEGORIES = ("cli", "browser", "file_system")


class ToolBackend(ABC):
    """Uniform execution surface for external tools."""

    @abstractmethod
    async def execute(self, name: str, args: dict) -> str:
        ...

    @abstractmethod
    def describe(self) -> list[tuple[str, str]]:
        """Return (name, description) pairs for the tool directory."""
        ...

    def directory(self) -> str:
        """Render the tool directory embedded into agent system prompts."""
        entries = self.describe()
        if not entries:
            return "(no tools available)"
        return "\n".join(f"- {name}: {desc}" for name, desc in entries)


@dataclass
class RegisteredTool:
    fn: Callable
    permission: Optional[str] = None

    @property
    def name(self) -> str:
        return self.fn.__name__

    @property
    def description(self) -> str:
        doc = (self.fn.__doc__ or "").strip()
        params = ", ".join(
            p for p in inspect.signature(self.fn).parameters if p != "terminal_target"
        )
        summary = doc.splitlines()[0] if doc else "No description."
        return f"{summary} Arguments: {{{params}}}"


class CallableToolBackend(ToolBackend):
    """Registry of Python callables exposed as tools."""

    def __init__(self, permissions: Optional[PermissionsConfig] = None,
                 terminal_target: str = "integrated"):
        self.permissions = permissions or PermissionsConfig()
        self.terminal_target = terminal_target
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, fn: Callable, permission: Optional[str] = None) -> Callable:
        if permission is not None and permission not in PERMISSION_CATEGORIES:
            raise ValueError(f"Unknown permission category: {permission}")
        self._tools[fn.__name__] = RegisteredTool(fn=fn, permission=permission)
        return fn

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def describe(self) -> list[tuple[str, str]]:
        return [(t.name, t.description) for t in self._tools.values()]

    def _permitted(self, tool: RegisteredTool) -> bool:
        if tool.permission is None:
            return True
        return bool(getattr(self.permissions, tool.permission, False))

    async def execute(self, name: str, args: dict) -> str:
        tool = self._tools.get(name)
        if tool is None:
            return f"Error: unknown tool '{name}'"
        if not self._permitted(tool):
            logger.warning("Tool '%s' blocked: %s permission disabled", name, tool.permission)
            return f"Error: permission '{tool.permission}' is disabled for tool '{name}'"

        kwargs = dict(args or {})
        if "terminal_target" in inspect.signature(tool.fn).parameters:
            kwargs["terminal_target"] = self.terminal_target

        try:
            result = tool.fn(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error("Tool '%s' failed: %s", name, e)
            return f"Error executing {name}: {e}"
        return str(result)
