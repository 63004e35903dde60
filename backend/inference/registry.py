"""
Live set of configured nodes, keyed by node id.
"""

import asyncio
import logging
from typing import Optional

from inference.protocol import Node

logger = logging.getLogger(__name__)


class NodeRegistry:
    """Holds every registered node and re-discovers them on demand."""

    def __init__(self):
        self._nodes: dict[str, Node] = {}

    def register(self, node: Node):
        """Register a node by its id. A node with the same id is replaced."""
        if node.id in self._nodes:
            logger.warning("Replacing already-registered node '%s'", node.id)
        self._nodes[node.id] = node

    def get(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def all(self) -> list[Node]:
        return list(self._nodes.values())

    def ids(self) -> list[str]:
        return list(self._nodes.keys())

    def clear(self):
        self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    async def discover_all(self) -> dict[str, bool]:
        """Run discover() on every node concurrently.

        A failing node is logged and skipped; partial success is normal.
        Returns node_id -> whether discovery succeeded.
        """
        tasks = {
            node_id: asyncio.create_task(node.discover())
            for node_id, node in self._nodes.items()
        }
        outcome = {}
        for node_id, task in tasks.items():
            try:
                await task
                outcome[node_id] = True
            except Exception as e:
                logger.error("Discovery failed on node '%s': %s", node_id, e)
                outcome[node_id] = False
        return outcome
