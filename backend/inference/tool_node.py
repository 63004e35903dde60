"""
LocalToolNode — the locally-managed tool backend, seen as a node.

It advertises one `tool` capability per registered tool and executes the
tool named in request.context.metadata["tool"] with the JSON arguments in
metadata["arguments"]. It never contributes to the model catalog.
"""

import logging

from inference.protocol import Capability, CapabilityType, Node, Request, Response
from tools import ToolBackend

logger = logging.getLogger(__name__)


class LocalToolNode(Node):
    def __init__(self, backend: ToolBackend, node_id: str = "local-tools",
                 name: str = "Local Tools"):
        super().__init__(node_id, name)
        self.backend = backend

    async def discover(self) -> None:
        self.capabilities = [
            Capability(type=CapabilityType.TOOL, description=name,
                       metadata={"summary": desc})
            for name, desc in self.backend.describe()
        ]

    async def execute(self, request: Request) -> Response:
        metadata = request.context.metadata if request.context else {}
        tool_name = metadata.get("tool")
        if not tool_name:
            raise ValueError(f"Node {self.name} needs a 'tool' in request metadata")
        output = await self.backend.execute(tool_name, metadata.get("arguments") or {})
        return Response(content=output, metadata={"tool": tool_name, "node": self.id})
