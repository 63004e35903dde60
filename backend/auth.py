"""
Request dependencies: optional API key check, readiness check and access to
the BridgeCore stored on app state.

Authentication is enabled by setting BRIDGE_API_KEY; clients then send it in
the X-API-Key header. Without it the service is meant for loopback use only.
"""

import os
import secrets

from fastapi import HTTPException, Request

from core import BridgeCore

BRIDGE_API_KEY = os.environ.get("BRIDGE_API_KEY", "")


def verify_api_key(request: Request):
    """Dependency that checks X-API-Key when an API key is configured."""
    if not BRIDGE_API_KEY:
        return
    key = request.headers.get("x-api-key")
    if not key or not secrets.compare_digest(key, BRIDGE_API_KEY):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def get_core(request: Request) -> BridgeCore:
    """Return the BridgeCore instance from app state."""
    return request.app.state.bridge_core


def require_ready(request: Request):
    """Dependency that returns 503 while the cluster is still being discovered."""
    if not get_core(request).ready:
        raise HTTPException(status_code=503, detail="Bridge is still initializing")
