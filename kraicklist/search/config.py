"""
Configuration for hybrid query construction.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..indexer.collection_schema import EMBEDDING_FIELD
from ..indexer.config import Settings

MATCH_ALL = "*"
DEFAULT_QUERY_FIELDS = ["title", "tags", "content"]


@dataclass(frozen=True)
class QueryConfig:
    """Search request shaping configuration."""

    # Keyword fields matched alongside the embedding field
    query_fields: List[str] = field(default_factory=lambda: list(DEFAULT_QUERY_FIELDS))
    query_by_weights: Optional[List[int]] = None
    embedding_field: str = EMBEDDING_FIELD

    # Hybrid blending: alpha is the weight given to vector similarity
    vector_alpha: float = 0.8
    distance_threshold: float = 1.0

    # Result shaping
    prioritize_exact_match: bool = True
    drop_tokens_threshold: int = 0
    prefix: bool = False

    # Pagination
    default_per_page: int = 9
    max_per_page: int = 250

    @property
    def query_by(self) -> str:
        return ",".join([*self.query_fields, self.embedding_field])

    @property
    def exclude_fields(self) -> str:
        return self.embedding_field

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueryConfig":
        return cls(
            vector_alpha=settings.vector_alpha,
            distance_threshold=settings.distance_threshold,
            drop_tokens_threshold=settings.drop_tokens_threshold,
            default_per_page=settings.default_per_page,
        )
