"""Query endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from auth import get_core, require_ready, verify_api_key
from inference.errors import ClusterExhausted, FailoverExhausted, ProviderError
from models import QueryRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/query", dependencies=[Depends(verify_api_key), Depends(require_ready)])
async def query(req: QueryRequest, request: Request):
    core = get_core(request)
    try:
        return await core.query(
            req.query,
            editor=req.editor.model_dump() if req.editor else None,
            diagnostics=req.diagnostics,
            attachments=req.attachments,
        )
    except (ClusterExhausted, FailoverExhausted) as e:
        logger.error("Query failed: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    except ProviderError as e:
        logger.error("Provider error during query: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
