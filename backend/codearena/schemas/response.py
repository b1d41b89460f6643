"""Envelopes shared by every endpoint: errors and health"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None
    path: Optional[str] = None
    timestamp: str = Field(default_factory=_now_iso)


class HealthResponse(BaseModel):
    """`readiness` carries database, worker and queue_depth entries"""
    status: str
    version: str
    timestamp: str = Field(default_factory=_now_iso)
    readiness: Dict[str, Any] = Field(default_factory=dict)
