"""
Search service executing hybrid queries against the provisioned collection.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from ..indexer.engine_client import SearchEngineClient
from ..indexer.exceptions import EngineException, QueryError
from .config import QueryConfig
from .query_builder import build_query

logger = logging.getLogger(__name__)


class SearchService:
    """
    Hybrid keyword + vector search over the ads collection.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(self, client: SearchEngineClient, query_config: Optional[QueryConfig] = None):
        self.client = client
        self.query_config = query_config or QueryConfig()

    async def search(
        self,
        q: Optional[str],
        per_page: Optional[int] = None,
        page: int = 1,
        deadline: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Run a hybrid search.

        Args:
            q: Free-text query
            per_page: Results per page
            page: 1-based page number
            deadline: Optional time limit in seconds for the engine call

        Returns:
            The first multi-search result, or None when the engine returns none

        Raises:
            QueryError: If the request is malformed or rejected by the engine
            EngineException: If the engine is unavailable
            asyncio.TimeoutError: If the deadline passes
        """
        request = build_query(q, per_page, page, collection=self.client.collection_name, config=self.query_config)

        call = self.client.multi_search(request.to_multi_search_payload())
        try:
            if deadline is not None:
                response = await asyncio.wait_for(call, timeout=deadline)
            else:
                response = await call
        except EngineException as e:
            if e.is_client_error:
                raise QueryError(f"search rejected: {e}", status_code=e.status_code) from e
            raise

        results = response.get("results") or []
        if not results:
            return None

        first = results[0]
        if "error" in first:
            raise QueryError(f"search rejected: {first['error']}", status_code=first.get("code"))

        logger.info(f"Found {first.get('found', 0)} results for '{request.q}'")
        return first

    async def health_check(self) -> bool:
        """Check if search service is healthy."""
        return await self.client.health_check()

    async def close(self):
        """Close the search service and clean up resources."""
        await self.client.close()
