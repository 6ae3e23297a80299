"""Azure target configuration loaded from the environment."""

from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudprep.api import SUPPORTED_PROTOCOLS, PortSpec
from cloudprep.azure.clients import CloudInfo, get_credential

# Submariner VXLAN tunnel between gateway and non-gateway nodes, and metrics
DEFAULT_INTERNAL_PORTS = [
    PortSpec(port=4800, protocol="udp"),
    PortSpec(port=8080, protocol="tcp"),
]


class AzureSettings(BaseSettings):
    """Azure settings.

    Loaded from AZURE_* environment variables or a .env file. The client
    credentials are optional; without them DefaultAzureCredential is used.
    """

    model_config = SettingsConfigDict(
        env_prefix="AZURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    subscription_id: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    region: str = ""
    base_group_name: str = ""
    infra_id: str = ""


def parse_port(value: str) -> PortSpec:
    """Parse a "<port>/<protocol>" string such as "4800/udp"."""
    port, sep, protocol = value.strip().partition("/")
    if not sep or not protocol:
        raise ValueError(f"invalid port {value!r}, expected <port>/<protocol>")
    try:
        number = int(port)
    except ValueError:
        raise ValueError(f"invalid port number in {value!r}") from None
    if not 0 < number < 65536:
        raise ValueError(f"port {number} out of range")
    protocol = protocol.lower()
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ValueError(
            f"unsupported protocol {protocol!r}, expected one of: " + ", ".join(SUPPORTED_PROTOCOLS)
        )
    return PortSpec(port=number, protocol=protocol)


def load_cloud_info(settings: AzureSettings | None = None, **overrides: Any) -> CloudInfo:
    """Build the CloudInfo for a cluster.

    Args:
        settings: Azure settings (loaded from the environment when omitted)
        **overrides: Non-empty values replace the matching settings fields

    Returns:
        CloudInfo with a credential attached

    Raises:
        ValueError: If subscription, infra ID, region or resource group is missing
    """
    settings = settings or AzureSettings()
    values = settings.model_dump()
    values.update({k: v for k, v in overrides.items() if v})

    required = ("subscription_id", "infra_id", "region", "base_group_name")
    missing = [name for name in required if not values.get(name)]
    if missing:
        raise ValueError(
            "missing Azure configuration: "
            + ", ".join(f"AZURE_{name.upper()}" for name in missing)
        )

    return CloudInfo(
        subscription_id=values["subscription_id"],
        infra_id=values["infra_id"],
        region=values["region"],
        base_group_name=values["base_group_name"],
        credential=get_credential(
            tenant_id=values["tenant_id"],
            client_id=values["client_id"],
            client_secret=values["client_secret"],
        ),
    )
