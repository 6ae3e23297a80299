"""Azure credential, target description and network client construction."""

import logging
from dataclasses import dataclass
from typing import Any

from azure.core.credentials import TokenCredential
from azure.core.exceptions import HttpResponseError
from azure.core.polling import LROPoller
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.network import NetworkManagementClient

from cloudprep.errors import CloudPrepareError

logger = logging.getLogger(__name__)

# Upper bound for a single long-running operation
OPERATION_TIMEOUT = 300


@dataclass
class CloudInfo:
    """The cluster being prepared and how to reach its subscription."""

    subscription_id: str
    infra_id: str
    region: str
    base_group_name: str
    credential: TokenCredential


def get_credential(
    tenant_id: str = "",
    client_id: str = "",
    client_secret: str = "",
) -> TokenCredential:
    """Create the credential used for every ARM call.

    A service principal is used when its tenant, client ID and secret are all
    given; otherwise DefaultAzureCredential walks the usual chain (environment,
    managed identity, Azure CLI, ...).
    """
    if tenant_id and client_id and client_secret:
        return ClientSecretCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            client_secret=client_secret,
        )
    return DefaultAzureCredential()


def get_network_client(subscription_id: str, credential: TokenCredential) -> NetworkManagementClient:
    """Create a network management client for a subscription.

    Its network_security_groups, load_balancers and subnets operation groups
    are what the provisioning steps call into.
    """
    return NetworkManagementClient(credential, subscription_id)


def wait_for_completion(poller: LROPoller, error_message: str) -> Any:
    """Wait for a long-running operation and return its result.

    Args:
        poller: Poller returned by a begin_* SDK call
        error_message: Message of the error raised if the operation fails

    Raises:
        CloudPrepareError: If the operation fails or does not finish in time
    """
    try:
        poller.wait(timeout=OPERATION_TIMEOUT)
        if not poller.done():
            raise CloudPrepareError(f"{error_message}: timed out after {OPERATION_TIMEOUT}s")
        return poller.result()
    except HttpResponseError as e:
        raise CloudPrepareError(error_message, cause=e) from e
