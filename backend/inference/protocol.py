"""
Protocol model — the internal vocabulary shared by every node.

Messages, requests, responses and capabilities are plain dataclasses so the
wire adapters can translate them into whichever dialect a backend speaks.
Node is the abstract base every backend variant implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    STRATEGIST = "strategist"
    ARTISAN = "artisan"
    SENTINEL = "sentinel"
    RESEARCHER = "researcher"


class CapabilityType(Enum):
    INFERENCE = "inference"
    TOOL = "tool"
    STORAGE = "storage"
    NETWORK = "network"


class Dialect(Enum):
    OPENAI = "openai"
    GOOGLE = "google"
    MCP = "mcp"
    UNKNOWN = "unknown"


@dataclass
class Capability:
    type: CapabilityType
    description: str  # stable id, doubles as the model/tool identifier
    schema: Optional[Any] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    role: Role
    content: str
    metadata: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Constraints:
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    stop_sequences: list[str] = field(default_factory=list)


@dataclass
class RequestContext:
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Request:
    messages: list[Message]
    constraints: Optional[Constraints] = None
    context: Optional[RequestContext] = None

    @property
    def model_id(self) -> Optional[str]:
        if self.context is None:
            return None
        return self.context.metadata.get("model_id")


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Response:
    content: str
    usage: Optional[Usage] = None
    metadata: Optional[dict[str, Any]] = None


@dataclass
class DiscoveryResult:
    protocol: Dialect
    capabilities: list[Capability] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


class Node(ABC):
    """A backend the cluster can discover and execute requests against.

    Concrete variants (remote inference providers, the local tool backend)
    expose their abilities as an ordered list of capabilities, refreshed by
    discover().
    """

    def __init__(self, node_id: str, name: str):
        self.id = node_id
        self.name = name
        self.capabilities: list[Capability] = []

    @abstractmethod
    async def discover(self) -> None:
        """Refresh self.capabilities from the backend."""
        ...

    @abstractmethod
    async def execute(self, request: Request) -> Response:
        """Run one request and return the normalized response."""
        ...

    def inference_capabilities(self) -> list[Capability]:
        return [c for c in self.capabilities if c.type == CapabilityType.INFERENCE]

    def find_capability(self, description: str) -> Optional[Capability]:
        for cap in self.inference_capabilities():
            if cap.description == description:
                return cap
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} caps={len(self.capabilities)}>"
