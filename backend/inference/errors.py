"""
Failure types raised across the node / router boundary.

ProviderError text is what ErrorInterpreter classifies, so its message keeps
node name, HTTP status and the raw response body together. NodeFailure is
the "this node cannot serve this request" signal the failover router acts on.
"""

from enum import Enum

from config import NODE_FAILURE_PREFIX


class RepairAction(Enum):
    SWITCH_PROTOCOL = "switch_protocol"
    SWITCH_PROVIDER = "switch_provider"
    RETRY = "retry"
    FAIL = "fail"


class ProviderError(Exception):
    """Non-success HTTP status from a provider call."""

    def __init__(self, node_name: str, dialect: str, status_code: int, body: str):
        self.node_name = node_name
        self.dialect = dialect
        self.status_code = status_code
        self.body = body
        super().__init__(f"{node_name} API error: {status_code} - {body}")


class NodeFailure(Exception):
    """A node is unusable for the current request.

    Carries the repair action that condemned it so callers never need to
    pattern-match the message.
    """

    def __init__(self, node_id: str, reason: str,
                 action: RepairAction = RepairAction.SWITCH_PROVIDER):
        self.node_id = node_id
        self.reason = reason
        self.action = action
        super().__init__(f"{NODE_FAILURE_PREFIX} {reason}")


class ClusterExhausted(Exception):
    """No operational node remains, even after a blacklist reset."""


class FailoverExhausted(Exception):
    """Every failover attempt ended in a node failure."""
