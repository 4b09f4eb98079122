from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: Literal["ok", "degraded", "down"] = "ok"
    version: Optional[str] = None
    search_engine: Optional[Literal["ok", "down"]] = None
    provisioning: Optional[str] = None
