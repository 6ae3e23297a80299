"""Cluster service."""

import uuid

from controlplane.database import db, ClusterRecord
from controlplane.models import Cluster, ClusterCreate, ClusterResponse
from controlplane.port_store import port_store
from controlplane.settings import settings


class ClusterService:
    """Service for cluster operations."""

    def create(self, request: ClusterCreate) -> ClusterResponse:
        """Register a cluster.

        Raises:
            ValueError: If the cluster already exists
        """
        record = db.create_cluster(
            id=str(uuid.uuid4()),
            infra_id=request.infra_id,
            name=request.name,
            subscription_id=request.subscription_id or settings.azure_subscription_id,
            region=request.region,
            base_group_name=request.base_group_name,
        )

        return ClusterResponse(
            cluster=self._to_model(record),
            message="Cluster registered. Save its ports, then prepare it.",
        )

    def get(self, infra_id: str) -> Cluster | None:
        """Get cluster by infra ID."""
        record = db.get_cluster(infra_id)
        return self._to_model(record) if record else None

    def list_all(self) -> list[Cluster]:
        """List all clusters."""
        return [self._to_model(r) for r in db.list_clusters()]

    def delete(self, infra_id: str) -> bool:
        """Delete cluster and its port configuration."""
        if not db.delete_cluster(infra_id):
            return False
        port_store.delete(infra_id)
        return True

    def _to_model(self, record: ClusterRecord) -> Cluster:
        """Convert record to model."""
        return Cluster(
            id=record.id,
            infra_id=record.infra_id,
            name=record.name,
            subscription_id=record.subscription_id,
            region=record.region,
            base_group_name=record.base_group_name,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


cluster_service = ClusterService()
