"""Cluster maintenance endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from auth import get_core, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/cluster/reset", dependencies=[Depends(verify_api_key)])
async def reset_cluster(request: Request):
    logger.info("Cluster reset requested")
    return get_core(request).reset_cluster()
