"""
Inference package — protocol-agnostic node layer.

Discovers heterogeneous serving backends, normalizes their wire dialects,
and routes model calls across them with blacklist-aware failover.

Quick start:
    from inference import ClusterSession, FailoverRouter, GenericProvider
    session = ClusterSession()
    session.registry.register(GenericProvider("groq", "Groq", GROQ_BASE, key))
    text = await FailoverRouter(session).call_model("llama-3.3-70b", messages)
"""

from inference.protocol import (
    Capability, CapabilityType, Constraints, Dialect, DiscoveryResult, Message, Node,
    Request, RequestContext, Response, Role, Usage,
)
from inference.errors import (
    ClusterExhausted, FailoverExhausted, NodeFailure, ProviderError, RepairAction,
)
from inference.discovery import DiscoveryAgent
from inference.feedback import ErrorInterpreter, Repair
from inference.generic import GenericProvider
from inference.tool_node import LocalToolNode
from inference.registry import NodeRegistry
from inference.catalog import CatalogEntry, ModelCatalog, rank, score
from inference.session import ClusterSession
from inference.router import FailoverRouter

__all__ = [
    "Capability", "CapabilityType", "Constraints", "Dialect", "DiscoveryResult",
    "Message", "Node", "Request", "RequestContext", "Response", "Role", "Usage",
    "ClusterExhausted", "FailoverExhausted", "NodeFailure", "ProviderError", "RepairAction",
    "DiscoveryAgent", "ErrorInterpreter", "Repair",
    "GenericProvider", "LocalToolNode", "NodeRegistry",
    "CatalogEntry", "ModelCatalog", "rank", "score",
    "ClusterSession", "FailoverRouter",
]
