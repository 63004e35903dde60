"""
Pydantic request models shared across route modules.
"""

from typing import Optional
from pydantic import BaseModel, Field


class EditorState(BaseModel):
    file: Optional[str] = None
    selection: Optional[str] = None


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=20_000)
    attachments: Optional[dict[str, str]] = None
    editor: Optional[EditorState] = None
    diagnostics: Optional[list[str]] = None


class RatifyRequest(BaseModel):
    approved: bool
