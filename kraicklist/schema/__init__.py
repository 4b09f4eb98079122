from .common import HealthStatus
from .document import DocumentFields, FieldValue
from .search import HybridSearchRequest, SearchResponse
from .synonym import SynonymRule

__all__ = [
    # common
    "HealthStatus",
    # document
    "DocumentFields",
    "FieldValue",
    # search
    "HybridSearchRequest",
    "SearchResponse",
    # synonym
    "SynonymRule",
]
