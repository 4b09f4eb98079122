"""Shared fixtures: an in-memory stand-in for the search engine client."""

from typing import Any, Dict, List, Optional

import pytest

from kraicklist.indexer.config import Settings
from kraicklist.indexer.exceptions import EngineException


class FakeEngine:
    """Implements the SearchEngineClient interface against in-memory state."""

    def __init__(self, collection_name: str = "ads"):
        self.collection_name = collection_name
        self.collections: Dict[str, Dict[str, Any]] = {}
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.synonyms: Dict[str, Dict[str, Any]] = {}
        self.import_calls: List[Dict[str, Any]] = []
        self.search_calls: List[Dict[str, Any]] = []

        # Failure switches
        self.import_failures = 0
        self.fail_create = False
        self.fail_delete = False
        self.fail_retrieve = False
        self.fail_synonym_ids: set = set()
        self.fail_list_synonyms = False
        self.healthy = True
        self.closed = False

        self.search_response: Dict[str, Any] = {"results": [{"found": 0, "hits": [], "page": 1}]}
        self.search_error: Optional[EngineException] = None

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True

    async def create_collection(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_create:
            raise EngineException("Bad schema", status_code=400)
        if schema["name"] in self.collections:
            raise EngineException(f"A collection with name `{schema['name']}` already exists.", status_code=409)
        self.collections[schema["name"]] = schema
        return {**schema, "num_documents": 0}

    async def delete_collection(self) -> Dict[str, Any]:
        if self.fail_delete:
            raise EngineException("Service unavailable", status_code=503)
        if self.collection_name not in self.collections:
            raise EngineException("Not Found", status_code=404)
        schema = self.collections.pop(self.collection_name)
        self.documents.clear()
        self.synonyms.clear()
        return schema

    async def retrieve_collection(self) -> Dict[str, Any]:
        if self.fail_retrieve:
            raise EngineException("Service unavailable", status_code=503)
        if self.collection_name not in self.collections:
            raise EngineException("Not Found", status_code=404)
        return {**self.collections[self.collection_name], "num_documents": len(self.documents)}

    async def import_documents(
        self, documents: List[Dict[str, Any]], action: str = "create", batch_size: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        self.import_calls.append({"documents": documents, "action": action, "batch_size": batch_size})
        if self.import_failures > 0:
            self.import_failures -= 1
            raise EngineException("Service unavailable", status_code=503)
        if self.collection_name not in self.collections:
            raise EngineException("Not Found", status_code=404)

        results = []
        for doc in documents:
            if not isinstance(doc.get("id"), str):
                results.append({"success": False, "error": "Document's `id` field should be a string."})
            elif action == "create" and doc["id"] in self.documents:
                results.append({"success": False, "error": f"A document with id {doc['id']} already exists."})
            else:
                self.documents[doc["id"]] = doc
                results.append({"success": True})
        return results

    async def multi_search(self, searches: Dict[str, Any]) -> Dict[str, Any]:
        self.search_calls.append(searches)
        if self.search_error:
            raise self.search_error
        return self.search_response

    async def upsert_synonym(self, synonym_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if synonym_id in self.fail_synonym_ids:
            raise EngineException("Internal error", status_code=500)
        self.synonyms[synonym_id] = {"id": synonym_id, **payload}
        return self.synonyms[synonym_id]

    async def retrieve_synonyms(self) -> List[Dict[str, Any]]:
        if self.fail_list_synonyms:
            raise EngineException("Internal error", status_code=500)
        return list(self.synonyms.values())

    async def delete_synonym(self, synonym_id: str) -> Dict[str, Any]:
        if synonym_id not in self.synonyms:
            raise EngineException("Not Found", status_code=404)
        return self.synonyms.pop(synonym_id)


class RecordingSleep:
    """Sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text(
        "\n".join(
            [
                '{"id": 1, "title": "Toyota Camry 2015", "content": "clean car", "tags": ["cars"], "updated_at": 10}',
                "not json at all",
                '{"id": 2.0, "title": "iPhone 12", "content": "mobile in good shape", "tags": ["phones"], '
                '"updated_at": 20}',
                '{"id": "abc", "title": "Flat in Riyadh", "content": "two rooms", "tags": [], "updated_at": 30}',
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def settings(data_file) -> Settings:
    return Settings(
        _env_file=None,
        data_file=str(data_file),
        search_engine_collection_name="ads",
        import_settle_seconds=0,
        import_batch_size=2,
    )
