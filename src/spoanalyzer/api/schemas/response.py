"""Standard API response schemas."""
from pydantic import BaseModel, Field


class SimpleResponse(BaseModel):
    """Success flag plus a human readable message; also the error body."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Response description")


class OperationStartedResponse(BaseModel):
    """Returned when a background operation was accepted."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    started: bool = Field(default=True, description="Whether a background operation was dispatched")
    message: str = Field(..., description="Response description")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": True, "started": True, "message": "Sites scan started"}
            ]
        }
    }
