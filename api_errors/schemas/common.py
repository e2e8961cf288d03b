"""
Wire schema for error responses.

Only the client-visible fields live here. `status` and the internal cause
are absent, so nothing rendered through these models can carry them.
"""
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A single field-level validation error."""
    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    # String so JavaScript clients never round large IDs.
    request_id: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)
