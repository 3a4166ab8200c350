"""Collected data API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from spoanalyzer.api.deps import get_store
from spoanalyzer.api.schemas.connection import DataResponse, EnrichmentSummary, MetricsResponse
from spoanalyzer.core.enums import DataType
from spoanalyzer.services.analysis_store import AnalysisStore

router = APIRouter()


@router.get("/data/{data_type}", response_model=DataResponse)
async def get_data(
    data_type: str,
    store: AnalysisStore = Depends(get_store),
) -> DataResponse:
    """
    Get the rows of one dataset.

    Types: sites, users, groups, roleassignments, inheritance, sharinglinks.
    """
    try:
        resolved = DataType(data_type.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown data type: {data_type}",
        )
    return DataResponse(data=store.get(resolved))


@router.get("/metrics", response_model=MetricsResponse)
async def get_analysis_metrics(store: AnalysisStore = Depends(get_store)) -> MetricsResponse:
    """Totals over the collected datasets."""
    return MetricsResponse(**store.metrics())


@router.get("/enrichment", response_model=EnrichmentSummary)
async def get_enrichment_summary(store: AnalysisStore = Depends(get_store)) -> EnrichmentSummary:
    """Counts over the Graph fields of external users."""
    return EnrichmentSummary(**store.enrichment_summary())
