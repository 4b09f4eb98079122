"""
Hybrid search request construction.

Keyword matching runs over the text fields and the embedding field in the
same request, so the engine blends lexical and semantic scores. The builder
only shapes the request; executing it is the search service's job.
"""

from typing import Any, Optional

from ..indexer.exceptions import QueryError
from ..schema.search import HybridSearchRequest
from .config import MATCH_ALL, QueryConfig

DEFAULT_CONFIG = QueryConfig()


def format_vector_query(config: QueryConfig) -> str:
    """
    Render the vector clause.

    An empty vector tells the engine to embed the query text with the model
    configured on the field.
    """
    return (
        f"{config.embedding_field}:([], "
        f"alpha: {_format_number(config.vector_alpha)}, "
        f"distance_threshold: {_format_number(config.distance_threshold)})"
    )


def build_query(
    text: Optional[str],
    per_page: Any = None,
    page: Any = 1,
    collection: str = "ads",
    config: Optional[QueryConfig] = None,
) -> HybridSearchRequest:
    """
    Build a hybrid search request.

    Args:
        text: Free-text query; empty or blank text matches everything
        per_page: Results per page (defaults to the configured page size)
        page: 1-based page number
        collection: Collection to search
        config: Request shaping configuration

    Returns:
        HybridSearchRequest, identical for identical inputs

    Raises:
        QueryError: If per_page or page is not a positive integer
    """
    config = config or DEFAULT_CONFIG

    q = text.strip() if text else ""
    if not q:
        q = MATCH_ALL

    per_page = _positive_int("per_page", config.default_per_page if per_page is None else per_page)
    page = _positive_int("page", page)
    if per_page > config.max_per_page:
        raise QueryError(f"per_page must be at most {config.max_per_page}, got {per_page}")

    return HybridSearchRequest(
        collection=collection,
        q=q,
        query_by=config.query_by,
        query_by_weights=_format_weights(config),
        vector_query=format_vector_query(config),
        exclude_fields=config.exclude_fields,
        prefix="true" if config.prefix else "false",
        prioritize_exact_match=config.prioritize_exact_match,
        drop_tokens_threshold=config.drop_tokens_threshold,
        per_page=per_page,
        page=page,
    )


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise QueryError(f"{name} must be a positive integer, got {value}")
    return value


def _format_weights(config: QueryConfig) -> Optional[str]:
    if config.query_by_weights is None:
        return None
    # One weight per query_by field; the embedding field takes the last slot
    expected = len(config.query_fields) + 1
    if len(config.query_by_weights) != expected:
        raise QueryError(f"query_by_weights needs {expected} values, got {len(config.query_by_weights)}")
    return ",".join(str(w) for w in config.query_by_weights)


def _format_number(value: float) -> str:
    return repr(float(value))
