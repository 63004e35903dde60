"""
Per-query context: a read-only snapshot of the editor state and the
conversation log the orchestrator appends turns to.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from config import ATTACHMENT_MAX_CHARS, HISTORY_WINDOW


def _truncate(text: str, limit: int = ATTACHMENT_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n... [truncated {len(text) - limit} chars]"


@dataclass
class Attachment:
    name: str
    content: str


@dataclass
class ContextSnapshot:
    """Editor file, selection, diagnostics and attachments at query time."""
    active_file: Optional[str] = None
    selection: Optional[str] = None
    diagnostics: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @classmethod
    def capture(cls, active_file: str = None, selection: str = None,
                diagnostics: list[str] = None, attachments: dict[str, str] = None):
        return cls(
            active_file=active_file,
            selection=_truncate(selection) if selection else None,
            diagnostics=list(diagnostics or []),
            attachments=[Attachment(name, _truncate(content))
                         for name, content in (attachments or {}).items()],
        )

    def render(self) -> str:
        parts = []
        if self.active_file:
            parts.append(f"Active file: {self.active_file}")
        if self.selection:
            parts.append(f"Selection:\n{self.selection}")
        if self.diagnostics:
            parts.append("Diagnostics:\n" + "\n".join(f"- {d}" for d in self.diagnostics))
        for att in self.attachments:
            parts.append(f"Attachment {att.name}:\n{att.content}")
        return "\n\n".join(parts)


@dataclass
class Turn:
    role: str
    content: str
    timestamp: float = field(default_factory=time.time)


class ConversationLog:
    """In-memory ordered conversation history."""

    def __init__(self):
        self._turns: list[Turn] = []

    def append(self, role: str, content: str):
        self._turns.append(Turn(role=role, content=content))

    def recent(self, n: int = HISTORY_WINDOW) -> list[Turn]:
        return self._turns[-n:] if n > 0 else []

    def clear(self):
        self._turns.clear()

    def __len__(self):
        return len(self._turns)
