"""Pydantic schemas for connection and data API."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ConnectRequest(BaseModel):
    """Schema for an interactive tenant connection."""

    tenantUrl: str = Field(default="", description="Tenant or site URL")
    clientId: str = Field(default="", description="Application (client) id")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tenantUrl": "https://contoso.sharepoint.com",
                    "clientId": "00000000-0000-0000-0000-000000000000",
                }
            ]
        }
    }


class ConnectResponse(BaseModel):
    """Result of a successful connection."""

    success: bool = True
    message: str
    siteTitle: Optional[str] = None
    siteUrl: Optional[str] = None
    user: Optional[str] = None
    demoMode: bool = False


class MetricsResponse(BaseModel):
    """Totals over the collected datasets."""

    totalSites: int
    totalUsers: int
    totalGroups: int
    externalUsers: int
    totalRoleAssignments: int
    inheritanceBreaks: int
    totalSharingLinks: int


class StatusResponse(BaseModel):
    """Connection and operation status shown in the dashboard header."""

    connected: bool
    demoMode: bool
    headless: bool
    operationRunning: bool
    siteUrl: Optional[str] = None
    user: Optional[str] = None
    analyzedSite: Optional[str] = None  # Site the permission datasets belong to
    metrics: MetricsResponse


class EnrichmentSummary(BaseModel):
    """Counts over the Graph fields of external users."""

    totalExternal: int
    enrichedCount: int
    disabledAccounts: int
    staleAccounts: int


class DataResponse(BaseModel):
    """Rows of one dataset."""

    data: List[Dict[str, Any]]
