"""Preparation service."""

import json
import logging

from cloudprep.api import Cloud, PortSpec, PrepareForSubmarinerInput
from cloudprep.azure import CloudInfo, get_credential, new_cloud
from cloudprep.reporter import LoggingReporter, RecordingReporter
from controlplane.database import db, ClusterRecord, PreparationRecord
from controlplane.models import (
    Port,
    Preparation,
    PreparationEvent,
    PreparationStatus,
)
from controlplane.settings import settings

logger = logging.getLogger(__name__)


def get_cloud(cluster: ClusterRecord) -> Cloud:
    """Get the Cloud for a registered cluster."""
    info = CloudInfo(
        subscription_id=cluster.subscription_id,
        infra_id=cluster.infra_id,
        region=cluster.region,
        base_group_name=cluster.base_group_name,
        credential=get_credential(
            tenant_id=settings.azure_tenant_id,
            client_id=settings.azure_client_id,
            client_secret=settings.azure_client_secret,
        ),
    )
    return new_cloud(info)


class DatabaseReporter(RecordingReporter):
    """Records each progress event on the cluster's preparation record and logs it.

    Events are appended to those of earlier runs, tagged with the current
    run number.
    """

    def __init__(self, infra_id: str):
        super().__init__(delegate=LoggingReporter(logger))
        self.infra_id = infra_id
        record = db.get_preparation(infra_id)
        self.run = record.runs if record else 0
        self.history = json.loads(record.events) if record and record.events else []

    def _record(self, kind: str, message: str) -> None:
        super()._record(kind, message)
        current = [{"run": self.run, "kind": k, "message": m} for k, m in self.events]
        db.update_preparation(
            infra_id=self.infra_id,
            last_message=message,
            events=json.dumps(self.history + current),
        )


class PreparationService:
    """Service for prepare and cleanup runs."""

    def prepare(self, cluster: ClusterRecord, ports: list[PortSpec]) -> None:
        """Run the preparation of a cluster."""
        infra_id = cluster.infra_id

        db.update_preparation(infra_id=infra_id, status=PreparationStatus.IN_PROGRESS)

        try:
            cloud = get_cloud(cluster)
            cloud.prepare_for_submariner(
                PrepareForSubmarinerInput(internal_ports=ports),
                DatabaseReporter(infra_id),
            )
        except Exception as e:
            logger.exception("Preparing %s failed", infra_id)
            db.update_preparation(
                infra_id=infra_id,
                status=PreparationStatus.FAILED,
                error_message=str(e),
            )
            return

        db.update_preparation(infra_id=infra_id, status=PreparationStatus.PREPARED)

    def cleanup(self, cluster: ClusterRecord) -> None:
        """Revoke what preparation opened on a cluster."""
        infra_id = cluster.infra_id

        db.update_preparation(infra_id=infra_id, status=PreparationStatus.CLEANING_UP)

        try:
            cloud = get_cloud(cluster)
            cloud.cleanup_after_submariner(DatabaseReporter(infra_id))
        except Exception as e:
            logger.exception("Cleaning up %s failed", infra_id)
            db.update_preparation(
                infra_id=infra_id,
                status=PreparationStatus.FAILED,
                error_message=str(e),
            )
            return

        db.update_preparation(infra_id=infra_id, status=PreparationStatus.CLEANED)

    def get_status(self, infra_id: str) -> Preparation | None:
        """Return the preparation status of a cluster."""
        record = db.get_preparation(infra_id)
        return self._to_model(record) if record else None

    def _to_model(self, record: PreparationRecord) -> Preparation:
        """Convert record to model."""
        return Preparation(
            id=record.id,
            cluster_id=record.cluster_id,
            infra_id=record.infra_id,
            status=record.status,
            runs=record.runs,
            ports=[Port(**p) for p in json.loads(record.ports)] if record.ports else [],
            last_message=record.last_message,
            events=[PreparationEvent(**e) for e in json.loads(record.events)] if record.events else [],
            error_message=record.error_message,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


preparation_service = PreparationService()
