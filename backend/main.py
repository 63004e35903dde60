"""
Inference Bridge — protocol-agnostic orchestration engine.
FastAPI backend exposing the orchestrator to an editor host.
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from auth import BRIDGE_API_KEY
from core import BridgeCore
from routes import register_routes

logger = logging.getLogger(__name__)

CORS_ORIGINS = ["http://localhost", "http://127.0.0.1", "vscode-webview://*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if not BRIDGE_API_KEY:
        logger.warning("BRIDGE_API_KEY not set — API is unauthenticated, bind to loopback only")
    core = BridgeCore()
    app.state.bridge_core = core
    try:
        await core.start()
    except Exception as e:
        logger.error("Startup error: %s", e)
    yield
    await core.shutdown()


app = FastAPI(
    title="Inference Bridge",
    description="Protocol-agnostic multi-provider inference orchestration API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        return response


app.add_middleware(SecurityHeadersMiddleware)

register_routes(app)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8765)
