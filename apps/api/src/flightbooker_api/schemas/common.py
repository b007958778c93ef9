"""Shared response schemas."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error payload."""

    detail: str
    code: str | None = None
    errors: list[str] | None = None
