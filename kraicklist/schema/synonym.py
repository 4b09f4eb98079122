from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SynonymRule(BaseModel):
    """A named set of interchangeable terms, optionally anchored to a root term."""

    id: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_\-]+$")
    synonyms: List[str] = Field(..., min_length=1)
    root: Optional[str] = None

    @field_validator("synonyms")
    @classmethod
    def dedupe_synonyms(cls, v: List[str]) -> List[str]:
        seen: set[str] = set()
        terms: List[str] = []
        for term in v:
            term = term.strip()
            if not term or term.casefold() in seen:
                continue
            seen.add(term.casefold())
            terms.append(term)
        if not terms:
            raise ValueError("synonyms must contain at least one non-empty term")
        return terms

    @model_validator(mode="after")
    def check_group_size(self) -> "SynonymRule":
        # multi-way rules need two terms; one-way rules need a root plus one term
        if self.root is None and len(self.synonyms) < 2:
            raise ValueError("multi-way synonym rules need at least two terms")
        return self

    def to_engine_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"synonyms": list(self.synonyms)}
        if self.root:
            payload["root"] = self.root
        return payload
