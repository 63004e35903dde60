"""Health, status and catalog endpoints."""

from fastapi import APIRouter, Depends, Request

from auth import get_core, verify_api_key

router = APIRouter()


@router.get("/health")
def health(request: Request):
    core = get_core(request)
    return {"status": "ok", "ready": core.ready, "nodes": len(core.session.registry)}


@router.get("/api/status", dependencies=[Depends(verify_api_key)])
async def status(request: Request):
    return get_core(request).get_status()


@router.get("/api/catalog", dependencies=[Depends(verify_api_key)])
async def catalog(request: Request):
    session = get_core(request).session
    await session.catalog.ensure_loaded()
    return {
        "models": [e.to_dict() for e in session.catalog.entries],
        "blacklist": sorted(session.blacklist),
    }
