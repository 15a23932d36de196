"""
API request/response schemas for the v1 endpoints.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field

from ...models.recall import RecallInput


class RecallRequest(RecallInput):
    """Request model for recall; `content` is accepted in place of `query`."""

    content: Optional[str] = Field(None, description="Alias for query")

    def to_input(self, session_id: Optional[str] = None) -> RecallInput:
        """Domain input with the query/content alias and the session header applied."""
        data = self.model_dump(exclude={"content"}, exclude_none=True)
        data["query"] = self.query or self.content
        if not self.session_id and session_id:
            data["session_id"] = session_id
        return RecallInput.model_validate(data)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error details")
