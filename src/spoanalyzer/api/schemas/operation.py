"""Pydantic schemas for operation API."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from spoanalyzer.services.operation_state import ProgressSnapshot
from spoanalyzer.core.enums import OperationType


class PermissionsRequest(BaseModel):
    """Schema for starting a permission analysis."""

    siteUrl: Optional[str] = Field(default=None, description="Site to analyze; defaults to the connected site")

    model_config = {
        "json_schema_extra": {
            "examples": [{"siteUrl": "https://contoso.sharepoint.com/sites/humanresources"}]
        }
    }


class ProgressResponse(BaseModel):
    """
    Snapshot of the current background operation.

    error is only present after a failure; enrichmentResult only after a
    completed enrichment. Both are left out of the body otherwise.
    """

    messages: List[str]
    running: bool
    complete: bool
    error: Optional[str] = None
    enrichmentResult: Optional[Dict[str, Any]] = None

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> "ProgressResponse":
        """
        Build the response from a progress snapshot.

        Args:
            snapshot: Snapshot read from the coordinator

        Returns:
            ProgressResponse: Response body
        """
        enrichment_result = None
        if snapshot.operation_type == OperationType.ENRICHMENT and snapshot.result is not None:
            enrichment_result = snapshot.result
        return cls(
            messages=snapshot.messages,
            running=snapshot.running,
            complete=snapshot.complete,
            error=snapshot.error,
            enrichmentResult=enrichment_result,
        )


class DemoEnrichResponse(BaseModel):
    """Returned by a synchronous demo enrichment."""

    success: bool = True
    started: bool = False
    enriched: int
    totalExternal: int
    message: str


class AuditResponse(BaseModel):
    """Summary of the current or most recent operation."""

    hasSession: bool
    sessionId: Optional[str] = None
    operationType: Optional[str] = None
    status: str
    userPrincipal: Optional[str] = None
    contextParam: Optional[str] = None
    startedAt: Optional[datetime] = None
    duration: Optional[float] = Field(default=None, description="Elapsed seconds")
    eventCount: int = 0
    errorCount: int = 0
