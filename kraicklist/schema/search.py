from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class HybridSearchRequest(BaseModel):
    """One search in a multi-search call, keyword and vector matching combined."""

    collection: str
    q: str
    query_by: str
    query_by_weights: Optional[str] = None
    vector_query: str
    exclude_fields: str
    prefix: str = "false"
    prioritize_exact_match: bool = True
    drop_tokens_threshold: int = Field(0, ge=0)
    per_page: int = Field(..., ge=1)
    page: int = Field(..., ge=1)

    def to_search_params(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_multi_search_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"searches": [self.to_search_params()]}


class SearchResponse(BaseModel):
    """Response envelope of the inbound search endpoint."""

    ok: bool = True
    data: Optional[Dict[str, Any]] = None
    ts: int
