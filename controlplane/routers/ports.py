"""Port config endpoints."""

from fastapi import APIRouter, HTTPException

from controlplane.database import db
from controlplane.models import PortsConfig, PortsResponse
from controlplane.port_store import port_store

router = APIRouter(prefix="/api/v1/clusters", tags=["Ports"])


@router.post("/{infra_id}/ports", response_model=PortsResponse)
async def save_ports(infra_id: str, config: PortsConfig) -> PortsResponse:
    """Save the ports to open for a cluster."""
    if not db.get_cluster(infra_id):
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")

    port_store.save(infra_id, config)

    return PortsResponse(
        infra_id=infra_id,
        message="Ports saved",
        config=config,
    )


@router.get("/{infra_id}/ports", response_model=PortsResponse)
async def get_ports(infra_id: str) -> PortsResponse:
    """Get the ports to open for a cluster."""
    if not db.get_cluster(infra_id):
        raise HTTPException(status_code=404, detail=f"Cluster '{infra_id}' not found")

    config = port_store.get(infra_id)
    if not config:
        raise HTTPException(status_code=404, detail=f"Ports for {infra_id} not found")

    return PortsResponse(
        infra_id=infra_id,
        message="Ports retrieved",
        config=config,
    )


@router.delete("/{infra_id}/ports", response_model=PortsResponse)
async def delete_ports(infra_id: str) -> PortsResponse:
    """Delete the saved ports of a cluster; prepare then falls back to the defaults."""
    if not port_store.delete(infra_id):
        raise HTTPException(status_code=404, detail=f"Ports for {infra_id} not found")

    return PortsResponse(
        infra_id=infra_id,
        message="Ports deleted",
    )
