"""
Search API router.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ... import __version__
from ...indexer.exceptions import EngineException, QueryError
from ...schema.common import HealthStatus
from ...schema.search import SearchResponse
from ...search.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


def get_search_service(request: Request) -> SearchService:
    """Get the search service created at startup."""
    service: Optional[SearchService] = getattr(request.app.state, "search_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Search service not initialized")
    return service


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("*", description="Search query", max_length=500),
    per_page: Optional[int] = Query(None, alias="perPage", description="Results per page"),
    page: int = Query(1, description="Page number"),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """
    Search ads using hybrid keyword + vector search.

    Returns the first multi-search result, or null data when there is none.
    Page size and page are validated by the query builder, so bad values
    are reported as 400 like any other query error.
    """
    try:
        result = await service.search(q, per_page, page)
    except QueryError as e:
        logger.warning(f"Rejected search for query '{q}': {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except EngineException as e:
        logger.error(f"Search failed for query '{q}': {e}")
        raise HTTPException(status_code=502, detail=f"Search failed: {e}")

    return SearchResponse(ok=True, data=result, ts=int(time.time()))


@router.get("/search/health", response_model=HealthStatus)
async def search_health(request: Request, service: SearchService = Depends(get_search_service)) -> HealthStatus:
    """Check connectivity to the search engine."""
    engine_healthy = await service.health_check()
    provisioning = getattr(request.app.state, "provisioning_state", None)

    return HealthStatus(
        status="ok" if engine_healthy else "down",
        version=__version__,
        search_engine="ok" if engine_healthy else "down",
        provisioning=provisioning.value if provisioning is not None else None,
    )
