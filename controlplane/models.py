"""Pydantic models for API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from cloudprep.api import PortSpec
from cloudprep.config import DEFAULT_INTERNAL_PORTS


# =============================================================================
# ENUMS
# =============================================================================


class PreparationStatus(str, Enum):
    """Status of a cluster's cloud preparation."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PREPARED = "prepared"
    FAILED = "failed"
    CLEANING_UP = "cleaning_up"
    CLEANED = "cleaned"


# Statuses during which a background run owns the cluster
ACTIVE_STATUSES = (
    PreparationStatus.PENDING,
    PreparationStatus.IN_PROGRESS,
    PreparationStatus.CLEANING_UP,
)


# =============================================================================
# CLUSTER MODELS
# =============================================================================


class ClusterCreate(BaseModel):
    """Request to register a cluster."""

    infra_id: str = Field(
        ...,
        description="Infrastructure ID the installer gave the cluster (prefix of its Azure resources)",
        pattern=r"^[a-z0-9][a-z0-9-]*$",
        min_length=3,
        max_length=63,
    )
    name: str = Field(
        ...,
        description="Display name for the cluster",
        min_length=2,
        max_length=100,
    )
    region: str = Field(
        ...,
        description="Azure region the cluster runs in",
        min_length=2,
    )
    base_group_name: str = Field(
        ...,
        description="Resource group holding the cluster network",
        min_length=1,
        max_length=90,
    )
    subscription_id: Optional[str] = Field(
        default=None,
        description="Azure subscription ID (defaults to AZURE_SUBSCRIPTION_ID)",
        pattern=r"^[0-9a-fA-F-]{36}$",
    )


class Cluster(BaseModel):
    """Cluster record."""

    id: str
    infra_id: str
    name: str
    subscription_id: str
    region: str
    base_group_name: str
    created_at: datetime
    updated_at: datetime


class ClusterResponse(BaseModel):
    """Response after registering a cluster."""

    cluster: Cluster
    message: str


# =============================================================================
# PORT CONFIG MODELS
# =============================================================================


class Port(BaseModel):
    """A port Submariner needs opened."""

    port: int = Field(..., ge=1, le=65535)
    protocol: str = Field(default="udp", pattern=r"^(tcp|udp)$")

    def to_spec(self) -> PortSpec:
        return PortSpec(port=self.port, protocol=self.protocol)


class PortsConfig(BaseModel):
    """Ports to open when a cluster is prepared."""

    internal_ports: list[Port] = Field(
        default_factory=lambda: [
            Port(port=p.port, protocol=p.protocol) for p in DEFAULT_INTERNAL_PORTS
        ],
        min_length=1,
    )

    def to_specs(self) -> list[PortSpec]:
        return [p.to_spec() for p in self.internal_ports]


class PortsResponse(BaseModel):
    """Response for port config operations."""

    infra_id: str
    message: str
    config: Optional[PortsConfig] = None


# =============================================================================
# PREPARATION MODELS
# =============================================================================


class PrepareRequest(BaseModel):
    """Request to prepare (empty body - ports already saved)."""

    pass


class CleanupRequest(BaseModel):
    """Request to clean up a prepared cluster."""

    confirm: bool = Field(default=False)


class PreparationResponse(BaseModel):
    """Response for prepare and cleanup operations."""

    infra_id: str
    status: PreparationStatus
    message: str


class PreparationEvent(BaseModel):
    """A progress event reported during a run."""

    run: int = 0
    kind: str
    message: str


class Preparation(BaseModel):
    """Preparation record."""

    id: int
    cluster_id: str
    infra_id: str
    status: PreparationStatus
    runs: int = 0
    ports: list[Port] = Field(default_factory=list)
    last_message: Optional[str] = None
    events: list[PreparationEvent] = Field(default_factory=list)
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
