"""Azure implementation of the Cloud contract for OpenShift (RHOS) clusters."""

from typing import Optional

from azure.mgmt.network import NetworkManagementClient

from cloudprep.api import Cloud, PortSpec, PrepareForSubmarinerInput, Reporter
from cloudprep.azure.clients import CloudInfo, get_network_client
from cloudprep.azure.gateway import open_gw_ports, remove_gw_firewall_rules
from cloudprep.azure.load_balancer import (
    FRONTEND_IP_CONFIGURATION_NAME,
    create_submariner_load_balancing_rules,
    delete_submariner_load_balancing_rules,
)
from cloudprep.azure.security_groups import (
    INTERNAL_SECURITY_GROUP_SUFFIX,
    open_internal_ports,
    remove_internal_firewall_rules,
)


def format_ports(ports: list[PortSpec]) -> str:
    """Render ports as "4800/udp, 8080/tcp"."""
    return ", ".join(str(port) for port in ports)


class AzureCloud(Cloud):
    """Prepares an Azure-hosted cluster for Submariner.

    Preparing opens the gateway ports on an external security group, forwards
    them on the public load balancer and opens the internal ports on a
    security group attached to the worker and master subnets. Cleaning up
    undoes all three.
    """

    def __init__(self, info: CloudInfo, network_client: Optional[NetworkManagementClient] = None):
        self.info = info
        self._network_client = network_client

    @property
    def network_client(self) -> NetworkManagementClient:
        if self._network_client is None:
            self._network_client = get_network_client(self.info.subscription_id, self.info.credential)
        return self._network_client

    def prepare_for_submariner(self, input: PrepareForSubmarinerInput, reporter: Reporter) -> None:
        reporter.started("Opening internal ports for intra-cluster communications on RHOS")

        nsg_ops = self.network_client.network_security_groups
        lb_ops = self.network_client.load_balancers
        subnet_ops = self.network_client.subnets

        try:
            # TODO: move the gateway steps to a gateway deployer once one exists
            open_gw_ports(self.info, input.internal_ports, nsg_ops)
            create_submariner_load_balancing_rules(
                self.info, FRONTEND_IP_CONFIGURATION_NAME, input.internal_ports, lb_ops
            )
            open_internal_ports(self.info, input.internal_ports, nsg_ops, subnet_ops)
        except Exception as e:
            reporter.failed(e)
            raise

        reporter.succeeded(
            'Opened internal ports "%s" for intra-cluster communications on RHOS',
            format_ports(input.internal_ports),
        )

    def cleanup_after_submariner(self, reporter: Reporter) -> None:
        reporter.started("Revoking intra-cluster communication permissions")

        nsg_ops = self.network_client.network_security_groups
        lb_ops = self.network_client.load_balancers
        subnet_ops = self.network_client.subnets

        try:
            remove_gw_firewall_rules(self.info, nsg_ops)
            delete_submariner_load_balancing_rules(self.info, lb_ops)
            if not remove_internal_firewall_rules(self.info, nsg_ops, subnet_ops):
                reporter.warning(
                    "Security group %s not found, assuming it was already removed",
                    self.info.infra_id + INTERNAL_SECURITY_GROUP_SUFFIX,
                )
        except Exception as e:
            reporter.failed(e)
            raise

        reporter.succeeded("Revoked intra-cluster communication permissions")


def new_cloud(info: CloudInfo) -> Cloud:
    """Create a Cloud that can prepare an Azure cluster for Submariner."""
    return AzureCloud(info)
