"""
Collection schema for classified ads with hybrid keyword + vector search.

The embedding field is derived: the engine computes it from the configured
source fields with the configured model, so documents never carry it.
Collections are always dropped and recreated; there is no schema migration.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_EMBEDDING_FIELDS, DEFAULT_EMBEDDING_MODEL
from .engine_client import SearchEngineClient
from .exceptions import EngineException, SchemaError

logger = logging.getLogger(__name__)

EMBEDDING_FIELD = "embedding"
DEFAULT_SORTING_FIELD = "updated_at"


def get_embedding_field(
    source_fields: Sequence[str] = DEFAULT_EMBEDDING_FIELDS, model_name: str = DEFAULT_EMBEDDING_MODEL
) -> Dict[str, Any]:
    """
    Get the derived embedding field definition.

    Args:
        source_fields: Fields the engine concatenates to build the embedding
        model_name: Embedding model identifier known to the engine

    Returns:
        Field definition of type float[]
    """
    if not source_fields:
        raise ValueError("embedding field needs at least one source field")

    return {
        "name": EMBEDDING_FIELD,
        "type": "float[]",
        "embed": {
            "from": list(source_fields),
            "model_config": {"model_name": model_name},
        },
    }


def get_ad_fields(
    source_fields: Sequence[str] = DEFAULT_EMBEDDING_FIELDS, model_name: str = DEFAULT_EMBEDDING_MODEL
) -> List[Dict[str, Any]]:
    """Get the fixed field list for the ads collection."""
    return [
        {"name": "title", "type": "string"},
        {"name": "content", "type": "string", "stem": True},
        # Media references are stored but never searched
        {"name": "thumb_url", "type": "string", "index": False, "optional": True},
        {"name": "tags", "type": "string[]", "facet": True},
        {"name": "updated_at", "type": "int64", "facet": True, "sort": True},
        {"name": "image_urls", "type": "string[]", "index": False, "optional": True},
        get_embedding_field(source_fields, model_name),
    ]


def build_collection_schema(
    name: str,
    embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    embedding_fields: Sequence[str] = DEFAULT_EMBEDDING_FIELDS,
    default_sorting_field: str = DEFAULT_SORTING_FIELD,
) -> Dict[str, Any]:
    """
    Get the complete collection definition.

    Args:
        name: Collection name
        embedding_model: Embedding model identifier
        embedding_fields: Source fields of the derived embedding
        default_sorting_field: Field used when a search gives no sort order

    Returns:
        Collection schema ready to POST to the engine
    """
    fields = get_ad_fields(embedding_fields, embedding_model)

    sortable = {f["name"] for f in fields if f.get("sort") or f["type"] in ("int32", "int64", "float")}
    if default_sorting_field not in sortable:
        raise ValueError(f"default sorting field '{default_sorting_field}' is not a sortable field")

    return {
        "name": name,
        "fields": fields,
        "default_sorting_field": default_sorting_field,
    }


class SchemaProvisioner:
    """
    Drops and recreates the ads collection.
    """

    def __init__(
        self,
        client: SearchEngineClient,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        embedding_fields: Optional[Sequence[str]] = None,
    ):
        self.client = client
        self.collection_name = client.collection_name
        self.schema = build_collection_schema(
            self.collection_name,
            embedding_model=embedding_model,
            embedding_fields=list(embedding_fields or DEFAULT_EMBEDDING_FIELDS),
        )

    async def drop_collection(self) -> bool:
        """
        Delete the collection if it exists.

        Returns:
            True if a collection was deleted, False if there was none
        """
        logger.info(f"Dropping collection '{self.collection_name}'")
        try:
            await self.client.delete_collection()
        except EngineException as e:
            if e.is_not_found:
                logger.info(f"Collection '{self.collection_name}' does not exist")
                return False
            raise
        return True

    async def try_drop_collection(self) -> bool:
        """Best-effort drop: delete failures are logged and ignored."""
        try:
            return await self.drop_collection()
        except EngineException as e:
            logger.warning(f"Could not drop collection '{self.collection_name}', creating anyway: {e}")
            return False

    async def reset_collection(self) -> Dict[str, Any]:
        """
        Drop any existing collection, then create it from the fixed schema.

        A failed create raises SchemaError and leaves nothing to import into.
        """
        await self.try_drop_collection()
        return await self.create_collection()

    async def create_collection(self) -> Dict[str, Any]:
        logger.info(f"Creating collection '{self.collection_name}'")
        try:
            created = await self.client.create_collection(self.schema)
        except EngineException as e:
            raise SchemaError(self.collection_name, str(e), status_code=e.status_code) from e

        logger.info(f"Created collection '{self.collection_name}' with {len(self.schema['fields'])} fields")
        return created
