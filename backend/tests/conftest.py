"""
Test fixtures for the inference bridge test suite.
"""

import os
import sys
from pathlib import Path

import pytest

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Point settings at the example profile before importing anything that reads it
os.environ["BRIDGE_PROFILE_PATH"] = str(BACKEND_DIR.parent / "bridge.yaml.example")
os.environ.pop("BRIDGE_API_KEY", None)

from inference.errors import NodeFailure  # noqa: E402
from inference.protocol import Capability, CapabilityType, Node, Response  # noqa: E402
from inference.session import ClusterSession  # noqa: E402


class FakeNode(Node):
    """In-memory inference node.

    replies: list of strings or exceptions consumed one per execute() call;
    the last item repeats once the list is exhausted.
    """

    def __init__(self, node_id: str, models: list[str], replies=None,
                 context_length: int = 8000):
        super().__init__(node_id, node_id.title())
        self.models = models
        self.context_length = context_length
        self.replies = list(replies or ["ok"])
        self.requests = []
        self.discover_calls = 0

    async def discover(self):
        self.discover_calls += 1
        self.capabilities = [
            Capability(type=CapabilityType.INFERENCE, description=m,
                       metadata={"context_length": self.context_length})
            for m in self.models
        ]

    async def execute(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return Response(content=reply, metadata={"model": request.model_id, "node": self.id})


@pytest.fixture
def fake_node():
    """Factory for FakeNode instances."""
    return FakeNode


@pytest.fixture
def node_failure():
    def make(node_id: str, reason: str = "quota exceeded"):
        return NodeFailure(node_id, reason)
    return make


@pytest.fixture
def session():
    return ClusterSession()
