"""
HealthFinder API — Shared Response Schemas
============================================

Error envelope, health report and the submission acknowledgement, plus the
helper that turns pydantic error lists into the field names reported by
ValidationError.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "invalid_query",
            "message": "pageSize must be a positive integer",
            "details": {"parameter": "pageSize"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class SuccessResponse(BaseModel):
    """Acknowledgement returned by POST /clinics/{id}/review."""
    success: bool = True


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


def error_fields(errors: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Field names from a pydantic error list, in order, without duplicates.

    Request-level locations such as ("body", "rating") are reduced to the
    field name; an error on the whole body is reported as "body".
    """
    fields: List[str] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if not isinstance(part, int)]
        names = [part for part in loc if part not in ("body", "query", "path")]
        name = names[-1] if names else (loc[0] if loc else "body")
        if name not in fields:
            fields.append(name)
    return fields


def error_summaries(errors: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Compact, JSON-safe form of a pydantic error list."""
    summaries = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body",)]
        summaries.append({"field": ".".join(loc) or "body", "message": str(err.get("msg", ""))})
    return summaries
