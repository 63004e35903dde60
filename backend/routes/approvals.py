"""Ratification endpoints for gated tool calls."""

from fastapi import APIRouter, Depends, HTTPException, Request

from auth import get_core, verify_api_key
from models import RatifyRequest

router = APIRouter()


@router.get("/api/ratify", dependencies=[Depends(verify_api_key)])
async def pending_ratification(request: Request):
    return {"pending": get_core(request).pending_ratification()}


@router.post("/api/ratify/{request_id}", dependencies=[Depends(verify_api_key)])
async def ratify(request_id: str, req: RatifyRequest, request: Request):
    if not get_core(request).ratify(request_id, req.approved):
        raise HTTPException(status_code=404, detail="Ratification request not found or expired")
    return {"status": "approved" if req.approved else "rejected"}
