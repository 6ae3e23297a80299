"""Cluster endpoints."""

from fastapi import APIRouter, HTTPException

from controlplane.database import db
from controlplane.models import (
    ACTIVE_STATUSES,
    Cluster,
    ClusterCreate,
    ClusterResponse,
    PreparationStatus,
)
from controlplane.services.cluster import cluster_service
from controlplane.settings import settings

router = APIRouter(prefix="/api/v1/clusters", tags=["Clusters"])


@router.post("", response_model=ClusterResponse)
async def create_cluster(request: ClusterCreate) -> ClusterResponse:
    """Register a cluster."""
    if not request.subscription_id and not settings.azure_subscription_id:
        raise HTTPException(
            status_code=400,
            detail="subscription_id is required when AZURE_SUBSCRIPTION_ID is not set",
        )
    try:
        return cluster_service.create(request)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=list[Cluster])
async def list_clusters() -> list[Cluster]:
    """List all clusters."""
    return cluster_service.list_all()


@router.get("/{infra_id}", response_model=Cluster)
async def get_cluster(infra_id: str) -> Cluster:
    """Get cluster by infra ID."""
    cluster = cluster_service.get(infra_id)
    if not cluster:
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")
    return cluster


@router.delete("/{infra_id}")
async def delete_cluster(infra_id: str) -> dict:
    """Delete cluster."""
    # Resources opened on Azure must be cleaned up first
    preparation = db.get_preparation(infra_id)
    if preparation and (
        preparation.status in ACTIVE_STATUSES
        or preparation.status == PreparationStatus.PREPARED
    ):
        raise HTTPException(
            status_code=409,
            detail="Cannot delete a cluster that is prepared or has a run in progress",
        )

    if not cluster_service.delete(infra_id):
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")

    return {"message": f"Cluster '{infra_id}' deleted"}
