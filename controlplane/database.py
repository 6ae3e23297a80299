"""SQLite database for clusters and their preparation runs."""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    sessionmaker,
)

from controlplane.models import PreparationStatus
from controlplane.settings import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class ClusterRecord(Base):
    """Database model for clusters."""

    __tablename__ = "clusters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    infra_id: Mapped[str] = mapped_column(String(63), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    subscription_id: Mapped[str] = mapped_column(String(36), nullable=False)
    region: Mapped[str] = mapped_column(String(40), nullable=False)
    base_group_name: Mapped[str] = mapped_column(String(90), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class PreparationRecord(Base):
    """Database model for preparation runs (one per cluster, reused across runs)."""

    __tablename__ = "preparations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cluster_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    infra_id: Mapped[str] = mapped_column(String(63), unique=True, index=True, nullable=False)
    status: Mapped[PreparationStatus] = mapped_column(
        Enum(PreparationStatus), nullable=False, default=PreparationStatus.PENDING
    )
    ports: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    events: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class Database:
    """Database operations."""

    def __init__(self, database_url: str = "sqlite:///./cloudprep.db"):
        connect_args = {}
        if database_url.startswith("sqlite"):
            # Background runs use the database from worker threads
            connect_args["check_same_thread"] = False
        self.engine = create_engine(database_url, echo=False, connect_args=connect_args)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    # =========================================================================
    # CLUSTER OPERATIONS
    # =========================================================================

    def create_cluster(
        self,
        id: str,
        infra_id: str,
        name: str,
        subscription_id: str,
        region: str,
        base_group_name: str,
    ) -> ClusterRecord:
        """Create a new cluster."""
        with self.get_session() as session:
            existing = session.query(ClusterRecord).filter_by(infra_id=infra_id).first()
            if existing:
                raise ValueError(f"Cluster '{infra_id}' already exists")

            record = ClusterRecord(
                id=id,
                infra_id=infra_id,
                name=name,
                subscription_id=subscription_id,
                region=region,
                base_group_name=base_group_name,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def get_cluster(self, infra_id: str) -> Optional[ClusterRecord]:
        """Get cluster by infra ID."""
        with self.get_session() as session:
            return session.query(ClusterRecord).filter_by(infra_id=infra_id).first()

    def list_clusters(self) -> list[ClusterRecord]:
        """List all clusters."""
        with self.get_session() as session:
            return session.query(ClusterRecord).all()

    def delete_cluster(self, infra_id: str) -> bool:
        """Delete a cluster and its preparation record."""
        with self.get_session() as session:
            record = session.query(ClusterRecord).filter_by(infra_id=infra_id).first()
            if not record:
                return False
            session.query(PreparationRecord).filter_by(infra_id=infra_id).delete()
            session.delete(record)
            session.commit()
            return True

    # =========================================================================
    # PREPARATION OPERATIONS
    # =========================================================================

    def start_preparation(
        self,
        cluster_id: str,
        infra_id: str,
        status: PreparationStatus = PreparationStatus.PENDING,
        ports: Optional[str] = None,
    ) -> PreparationRecord:
        """Create the preparation record of a cluster, or start a new run on it.

        Events of earlier runs are kept; each new run gets the next run number.
        """
        with self.get_session() as session:
            record = session.query(PreparationRecord).filter_by(infra_id=infra_id).first()
            if record is None:
                record = PreparationRecord(cluster_id=cluster_id, infra_id=infra_id)
                session.add(record)

            record.status = status
            record.runs = (record.runs or 0) + 1
            record.last_message = None
            if record.events is None:
                record.events = json.dumps([])
            record.error_message = None
            record.updated_at = utcnow()
            if ports is not None:
                record.ports = ports

            session.commit()
            session.refresh(record)
            return record

    def get_preparation(self, infra_id: str) -> Optional[PreparationRecord]:
        """Get the preparation record of a cluster."""
        with self.get_session() as session:
            return session.query(PreparationRecord).filter_by(infra_id=infra_id).first()

    def update_preparation(
        self,
        infra_id: str,
        status: Optional[PreparationStatus] = None,
        last_message: Optional[str] = None,
        events: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Optional[PreparationRecord]:
        """Update a preparation record."""
        with self.get_session() as session:
            record = session.query(PreparationRecord).filter_by(infra_id=infra_id).first()
            if not record:
                return None

            record.updated_at = utcnow()

            if status:
                record.status = status
            if last_message:
                record.last_message = last_message
            if events is not None:
                record.events = events
            if error_message:
                record.error_message = error_message

            session.commit()
            session.refresh(record)
            return record


# Global database instance
db = Database(settings.database_url)
