"""
FailoverRouter — resolves a logical model id to a live node and calls it.

Each attempt resolves afresh against the non-blacklisted part of the
catalog. A NodeFailure blacklists the node and moves on to the next
attempt; any other error aborts the call. When nothing resolves while the
blacklist is non-empty, the blacklist is cleared once as last-resort
recovery before giving up.

Usage:
    router = FailoverRouter(session)
    text = await router.call_model("gpt-4o-mini", messages)
"""

import logging
from typing import Optional

from config import FAILOVER_MAX_ATTEMPTS
from inference.catalog import is_incompatible, is_vetoed_provider, vetoed_family
from inference.errors import ClusterExhausted, FailoverExhausted, NodeFailure
from inference.protocol import Constraints, Message, Node, Request, RequestContext
from inference.session import ClusterSession

logger = logging.getLogger(__name__)


def _basename(model_id: str) -> str:
    return model_id.rsplit("/", 1)[-1].lower()


class FailoverRouter:
    """Routes model calls across the cluster with blacklist-aware failover."""

    def __init__(self, session: ClusterSession):
        self.session = session

    # ── Resolution ──

    def _live_nodes(self, use_blacklist: bool) -> list[Node]:
        return [
            n for n in self.session.registry.all()
            if not (use_blacklist and self.session.is_blacklisted(n.id))
        ]

    def _compatible_substitute(self, model_id: str,
                               nodes: list[Node]) -> tuple[Optional[Node], str]:
        """Find a node outside the vetoed provider class serving the same model family.

        An exact basename match wins over any other member of the family.
        """
        family = vetoed_family(model_id)
        candidates = [n for n in nodes if not is_vetoed_provider(n.id)]
        for node in candidates:
            for cap in node.inference_capabilities():
                if _basename(cap.description) == _basename(model_id):
                    return node, cap.description
        for node in candidates:
            for cap in node.inference_capabilities():
                if family and family in cap.description.lower():
                    return node, cap.description
        return None, model_id

    def resolve(self, model_id: str, use_blacklist: bool = True) -> tuple[Optional[Node], str]:
        """Return (node, model id to send) or (None, model_id) if nothing fits."""
        registry = self.session.registry
        nodes = self._live_nodes(use_blacklist)
        live_ids = {n.id for n in nodes}

        node = None
        for entry in self.session.catalog.entries:
            if entry.id == model_id and entry.provider_node_id in live_ids:
                node = registry.get(entry.provider_node_id)
                if node is not None:
                    break
        if node is None:
            node = next((n for n in nodes if n.find_capability(model_id)), None)

        if node is not None and is_incompatible(model_id, node.id):
            logger.warning("Model '%s' cannot run through '%s' — looking for a compatible node",
                           model_id, node.id)
            node, substitute = self._compatible_substitute(model_id, nodes)
            if node is not None:
                logger.info("Substituting '%s' on '%s' for '%s'", substitute, node.id, model_id)
                return node, substitute
        return node, model_id

    # ── Calls ──

    async def call_model(self, model_id: str, messages: list[Message],
                         constraints: Optional[Constraints] = None) -> str:
        """Call a model by logical id, failing over between nodes."""
        for attempt in range(1, FAILOVER_MAX_ATTEMPTS + 1):
            await self.session.catalog.ensure_loaded()

            node, target = self.resolve(model_id)
            if node is None and self.session.blacklist:
                logger.warning("No live node for '%s' — resetting blacklist (cluster collapse)",
                               model_id)
                self.session.clear_blacklist()
                node, target = self.resolve(model_id, use_blacklist=False)
            if node is None:
                raise ClusterExhausted(
                    f"No operational nodes remain for model '{model_id}'. "
                    "Reset the cluster or check provider settings."
                )

            request = Request(
                messages=messages,
                constraints=constraints,
                context=RequestContext(metadata={"model_id": target}),
            )
            try:
                logger.info("Attempt %d/%d: '%s' via node '%s'",
                            attempt, FAILOVER_MAX_ATTEMPTS, target, node.id)
                response = await node.execute(request)
                return response.content
            except NodeFailure as e:
                self.session.blacklist_node(node.id, e.reason)

        raise FailoverExhausted(
            f"Failover exhausted after {FAILOVER_MAX_ATTEMPTS} attempts for model '{model_id}'"
        )
