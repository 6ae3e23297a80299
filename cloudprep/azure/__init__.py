"""Azure support: security groups, load-balancing rules and subnet associations."""

from cloudprep.azure.clients import CloudInfo, get_credential, get_network_client
from cloudprep.azure.cloud import AzureCloud, format_ports, new_cloud

__all__ = ["AzureCloud", "CloudInfo", "format_ports", "get_credential", "get_network_client", "new_cloud"]
