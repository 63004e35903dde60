"""
Mutable routing state shared by catalog, scorer and router.

One session owns the node registry, the blacklist and the model catalog.
It is passed explicitly to whatever needs it instead of living at module
level, so independent sessions (and tests) never see each other's state.
"""

import logging

from inference.catalog import ModelCatalog
from inference.registry import NodeRegistry

logger = logging.getLogger(__name__)


class ClusterSession:
    def __init__(self, registry: NodeRegistry = None):
        self.registry = registry if registry is not None else NodeRegistry()
        self.catalog = ModelCatalog(self.registry)
        self.blacklist: set[str] = set()

    def is_blacklisted(self, node_id: str) -> bool:
        return node_id in self.blacklist

    def blacklist_node(self, node_id: str, reason: str = ""):
        self.blacklist.add(node_id)
        logger.warning("Node '%s' blacklisted%s", node_id, f": {reason}" if reason else "")

    def clear_blacklist(self):
        if self.blacklist:
            logger.warning("Clearing blacklist (%s)", ", ".join(sorted(self.blacklist)))
        self.blacklist.clear()

    def reset(self):
        """Explicit user reset: forget failures and rebuild the catalog on next use."""
        self.clear_blacklist()
        self.catalog.invalidate()
        logger.info("Cluster reset — catalog will be rebuilt on next use")

    def status(self) -> dict:
        return {
            "nodes": self.registry.ids(),
            "blacklist": sorted(self.blacklist),
            "catalog_loaded": self.catalog.loaded,
            "models": [e.to_dict() for e in self.catalog.entries],
        }
