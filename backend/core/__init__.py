"""
Core package — the application object.

Structure:
    bridge_core.py     — BridgeCore: settings → nodes → session → orchestrator
    workspace_tools.py — default tool set behind the local tool node

Usage:
    from core import BridgeCore
"""

from core.bridge_core import BridgeCore, build_nodes
from core.workspace_tools import WorkspaceTools

__all__ = [
    "BridgeCore",
    "WorkspaceTools",
    "build_nodes",
]
