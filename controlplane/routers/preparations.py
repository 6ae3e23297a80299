"""Prepare and cleanup endpoints."""

import json

from fastapi import APIRouter, BackgroundTasks, HTTPException

from controlplane.database import db
from controlplane.models import (
    ACTIVE_STATUSES,
    CleanupRequest,
    Preparation,
    PreparationResponse,
    PreparationStatus,
    PortsConfig,
    PrepareRequest,
)
from controlplane.port_store import port_store
from controlplane.services.preparation import preparation_service

router = APIRouter(prefix="/api/v1/clusters", tags=["Preparations"])


@router.post("/{infra_id}/prepare", response_model=PreparationResponse)
async def prepare(
    infra_id: str,
    request: PrepareRequest,
    background_tasks: BackgroundTasks,
) -> PreparationResponse:
    """Open the Submariner ports on a cluster's cloud."""
    cluster = db.get_cluster(infra_id)
    if not cluster:
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")

    existing = db.get_preparation(infra_id)
    if existing and existing.status in ACTIVE_STATUSES:
        raise HTTPException(status_code=409, detail="A run is already in progress")

    config = port_store.get(infra_id) or PortsConfig()

    db.start_preparation(
        cluster_id=cluster.id,
        infra_id=infra_id,
        ports=json.dumps([p.model_dump() for p in config.internal_ports]),
    )

    background_tasks.add_task(preparation_service.prepare, cluster, config.to_specs())

    return PreparationResponse(
        infra_id=infra_id,
        status=PreparationStatus.PENDING,
        message="Preparation initiated",
    )


@router.get("/{infra_id}/status", response_model=Preparation)
async def get_status(infra_id: str) -> Preparation:
    """Get preparation status."""
    preparation = preparation_service.get_status(infra_id)
    if not preparation:
        raise HTTPException(
            status_code=404,
            detail=f"Cluster {infra_id} has never been prepared",
        )
    return preparation


@router.post("/{infra_id}/cleanup", response_model=PreparationResponse)
async def cleanup(
    infra_id: str,
    request: CleanupRequest,
    background_tasks: BackgroundTasks,
) -> PreparationResponse:
    """Revoke the Submariner networking opened on a cluster's cloud."""
    if not request.confirm:
        raise HTTPException(status_code=400, detail="Must set confirm=true")

    cluster = db.get_cluster(infra_id)
    if not cluster:
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")

    preparation = db.get_preparation(infra_id)
    if not preparation:
        raise HTTPException(
            status_code=404,
            detail=f"Cluster {infra_id} has never been prepared",
        )

    if preparation.status == PreparationStatus.CLEANING_UP:
        raise HTTPException(status_code=409, detail="Cleanup already in progress")
    if preparation.status in ACTIVE_STATUSES:
        raise HTTPException(status_code=409, detail="A run is already in progress")

    db.start_preparation(
        cluster_id=cluster.id,
        infra_id=infra_id,
        status=PreparationStatus.CLEANING_UP,
    )

    background_tasks.add_task(preparation_service.cleanup, cluster)

    return PreparationResponse(
        infra_id=infra_id,
        status=PreparationStatus.CLEANING_UP,
        message="Cleanup initiated",
    )
