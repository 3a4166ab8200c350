"""Prometheus metrics endpoint."""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from spoanalyzer.api.deps import get_coordinator
from spoanalyzer.services.coordinator import OperationCoordinator


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=PlainTextResponse)
def get_metrics(coordinator: OperationCoordinator = Depends(get_coordinator)):
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Refresh gauge metrics before returning
    coordinator.state.publish_metrics()

    return PlainTextResponse(
        content=generate_latest().decode('utf-8'),
        media_type=CONTENT_TYPE_LATEST
    )
