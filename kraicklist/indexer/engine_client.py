"""
Search engine client for collection management, import, search and synonyms.

Talks to a Typesense-compatible HTTP API. Every non-2xx response or
transport failure raises EngineException carrying the status code.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from .config import EngineConfig
from .exceptions import EngineException

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-TYPESENSE-API-KEY"


class SearchEngineClient:
    """
    Async search engine client.
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.collection_name = config.collection_name
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout, headers={API_KEY_HEADER: self.config.api_key})
        return self.session

    async def close(self):
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "SearchEngineClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _collection_url(self, *parts: str) -> str:
        path = "/".join(quote(part, safe="") for part in (self.collection_name, *parts))
        return f"{self.base_url}/collections/{path}"

    async def _request(
        self,
        method: str,
        url: str,
        json_body: Optional[Any] = None,
        data: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        content_type: str = "application/json",
    ) -> str:
        """Send a request and return the response text, raising on failure."""
        session = await self._get_session()
        headers = {"Content-Type": content_type}
        if json_body is not None:
            data = json.dumps(json_body)

        try:
            async with session.request(method, url, data=data, params=params, headers=headers) as response:
                text = await response.text()
                if response.status >= 300:
                    raise EngineException(
                        f"{method} {url} failed: {response.status} - {_error_message(text)}",
                        status_code=response.status,
                        body=text,
                    )
                return text
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EngineException(f"{method} {url} failed: {e}") from e

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        text = await self._request(method, url, **kwargs)
        try:
            return json.loads(text) if text else {}
        except json.JSONDecodeError as e:
            raise EngineException(f"{method} {url} returned invalid JSON: {e}", body=text) from e

    async def health_check(self) -> bool:
        """Check if the engine is accessible."""
        try:
            data = await self._request_json("GET", f"{self.base_url}/health")
            return bool(data.get("ok"))
        except EngineException as e:
            logger.error(f"Search engine health check failed: {e}")
            return False

    async def create_collection(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Create a collection from a schema definition."""
        return await self._request_json("POST", f"{self.base_url}/collections", json_body=schema)

    async def delete_collection(self) -> Dict[str, Any]:
        """Delete the configured collection."""
        return await self._request_json("DELETE", self._collection_url())

    async def retrieve_collection(self) -> Dict[str, Any]:
        """Retrieve collection metadata, including num_documents."""
        return await self._request_json("GET", self._collection_url())

    async def import_documents(
        self, documents: List[Dict[str, Any]], action: str = "create", batch_size: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Import documents as JSONL.

        Args:
            documents: Engine-format documents
            action: Import action (create, upsert, update, emplace)
            batch_size: Server-side batch size for the import

        Returns:
            One result object per document, in input order
        """
        body = "\n".join(json.dumps(doc, ensure_ascii=False) for doc in documents)
        params = {"action": action}
        if batch_size:
            params["batch_size"] = str(batch_size)

        text = await self._request(
            "POST", self._collection_url("documents", "import"), data=body, params=params, content_type="text/plain"
        )
        return _parse_import_response(text)

    async def multi_search(self, searches: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a multi-search request."""
        return await self._request_json("POST", f"{self.base_url}/multi_search", json_body=searches)

    async def upsert_synonym(self, synonym_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create or overwrite a synonym rule."""
        return await self._request_json("PUT", self._collection_url("synonyms", synonym_id), json_body=payload)

    async def retrieve_synonyms(self) -> List[Dict[str, Any]]:
        """List every synonym rule in the collection."""
        data = await self._request_json("GET", self._collection_url("synonyms"))
        return data.get("synonyms", [])

    async def delete_synonym(self, synonym_id: str) -> Dict[str, Any]:
        return await self._request_json("DELETE", self._collection_url("synonyms", synonym_id))


def _error_message(text: str) -> str:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text[:500]
    if isinstance(data, dict) and "message" in data:
        return str(data["message"])
    return text[:500]


def _parse_import_response(text: str) -> List[Dict[str, Any]]:
    """Parse the JSONL import response into per-document results."""
    results: List[Dict[str, Any]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            results.append(json.loads(line))
        except json.JSONDecodeError:
            results.append({"success": False, "error": line})
    return results
