"""Global test configuration.

Points the control plane database and port store at a temporary directory
before any controlplane module is imported, and provides Azure fixtures.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

_tmp_dir = tempfile.mkdtemp(prefix="cloudprep-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_dir}/cloudprep.db"
os.environ["CONFIG_DIR"] = os.path.join(_tmp_dir, "port-configs")
os.environ["AZURE_SUBSCRIPTION_ID"] = "00000000-0000-0000-0000-000000000000"

from cloudprep.azure.clients import CloudInfo  # noqa: E402
from cloudprep.reporter import RecordingReporter  # noqa: E402

INFRA_ID = "demo-x7k2p"
RESOURCE_GROUP = "demo-x7k2p-rg"
SUBSCRIPTION = "00000000-0000-0000-0000-000000000000"


def network_id(kind: str, name: str, *children: str) -> str:
    """Build an ARM ID for a Microsoft.Network resource in the test resource group."""
    resource_id = (
        f"/subscriptions/{SUBSCRIPTION}/resourceGroups/{RESOURCE_GROUP}"
        f"/providers/Microsoft.Network/{kind}/{name}"
    )
    if children:
        resource_id += "/" + "/".join(children)
    return resource_id


@pytest.fixture
def info() -> CloudInfo:
    return CloudInfo(
        subscription_id=SUBSCRIPTION,
        infra_id=INFRA_ID,
        region="eastus",
        base_group_name=RESOURCE_GROUP,
        credential=MagicMock(),
    )


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def nsg_ops() -> MagicMock:
    return MagicMock(name="network_security_groups")


@pytest.fixture
def subnet_ops() -> MagicMock:
    return MagicMock(name="subnets")


@pytest.fixture
def lb_ops() -> MagicMock:
    return MagicMock(name="load_balancers")


@pytest.fixture
def clean_state():
    """Empty the control plane database and port store."""
    from controlplane.database import Base, db
    from controlplane.port_store import port_store

    Base.metadata.drop_all(db.engine)
    Base.metadata.create_all(db.engine)
    shutil.rmtree(port_store.config_dir, ignore_errors=True)
    Path(port_store.config_dir).mkdir(parents=True, exist_ok=True)
    yield
