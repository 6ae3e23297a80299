"""Internal network security group for intra-cluster Submariner traffic."""

import logging
from typing import Optional

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.core.tools import parse_resource_id
from azure.mgmt.network.models import (
    NetworkSecurityGroup,
    SecurityRule,
    SecurityRuleAccess,
    SecurityRuleDirection,
    SecurityRuleProtocol,
    Subnet,
)

from cloudprep.api import PortSpec
from cloudprep.azure.clients import CloudInfo, wait_for_completion
from cloudprep.errors import CloudPrepareError

logger = logging.getLogger(__name__)

INTERNAL_SECURITY_GROUP_SUFFIX = "-nsg"
INTERNAL_SECURITY_RULE_PREFIX = "Submariner-Internal-"
ALL_NETWORK_CIDR = "0.0.0.0/0"
BASE_PRIORITY = 100


def rule_protocol(protocol: str) -> SecurityRuleProtocol:
    """Map a port protocol such as "udp" to the security rule protocol."""
    if protocol in ("*", "all"):
        return SecurityRuleProtocol.ASTERISK
    try:
        return SecurityRuleProtocol[protocol.upper()]
    except KeyError:
        raise ValueError(f"unsupported security rule protocol {protocol!r}") from None


def create_security_rule(
    src_ip_prefix: str,
    dest_ip_prefix: str,
    protocol: str,
    port: int,
    priority: int,
    name_prefix: str = INTERNAL_SECURITY_RULE_PREFIX,
) -> SecurityRule:
    """Build an inbound rule allowing a single port from any source port."""
    return SecurityRule(
        name=f"{name_prefix}{protocol}-{port}",
        protocol=rule_protocol(protocol),
        destination_port_range=f"{port}-{port}",
        source_address_prefix=src_ip_prefix,
        destination_address_prefix=dest_ip_prefix,
        source_port_range="*",
        access=SecurityRuleAccess.ALLOW,
        direction=SecurityRuleDirection.INBOUND,
        priority=priority,
    )


def build_security_rules(ports: list[PortSpec], name_prefix: str) -> list[SecurityRule]:
    """One rule per port, with priorities counting up from BASE_PRIORITY."""
    return [
        create_security_rule(
            ALL_NETWORK_CIDR,
            ALL_NETWORK_CIDR,
            port.protocol,
            port.port,
            BASE_PRIORITY + i,
            name_prefix,
        )
        for i, port in enumerate(ports)
    ]


def get_security_group(group_name: str, nsg_ops, base_group_name: str) -> Optional[NetworkSecurityGroup]:
    """Get a network security group, or None if it does not exist."""
    try:
        return nsg_ops.get(base_group_name, group_name)
    except ResourceNotFoundError:
        return None
    except HttpResponseError as e:
        raise CloudPrepareError(f'error getting the securitygroup "{group_name}"', cause=e) from e


def security_group_exists(group_name: str, nsg_ops, base_group_name: str) -> bool:
    """Check whether a network security group exists in the resource group."""
    return get_security_group(group_name, nsg_ops, base_group_name) is not None


def get_subnet(virtual_network_name: str, subnet_name: str, base_group_name: str, subnet_ops) -> Subnet:
    """Get a subnet of a virtual network."""
    try:
        return subnet_ops.get(base_group_name, virtual_network_name, subnet_name)
    except HttpResponseError as e:
        raise CloudPrepareError(f'failed to retrieve subnet "{subnet_name}"', cause=e) from e


def is_associated(subnet: Subnet, security_group_id: str) -> bool:
    """Whether a subnet is already attached to the given security group."""
    current = subnet.network_security_group
    # ARM IDs are case-insensitive
    return current is not None and (current.id or "").lower() == security_group_id.lower()


def associate_security_group(
    subnet: Subnet,
    security_group: NetworkSecurityGroup,
    resource_group: str,
    virtual_network_name: str,
    subnet_ops,
) -> Subnet:
    """Associate a subnet with a security group.

    The association lives on the subnet; a security group's own subnets
    field is read-only.
    """
    subnet.network_security_group = security_group
    logger.debug("Associating subnet %s/%s with %s", virtual_network_name, subnet.name, security_group.id)

    try:
        poller = subnet_ops.begin_create_or_update(
            resource_group, virtual_network_name, subnet.name, subnet
        )
    except HttpResponseError as e:
        raise CloudPrepareError(f'updating subnet "{subnet.name}" failed', cause=e) from e

    return wait_for_completion(poller, f'waiting for subnet "{subnet.name}" to be updated failed')


def open_internal_ports(info: CloudInfo, ports: list[PortSpec], nsg_ops, subnet_ops) -> None:
    """Create the internal security group and attach it to the cluster subnets.

    An existing security group keeps its rules, but any worker or master
    subnet not yet attached to it is attached, so an interrupted run can be
    resumed.
    """
    group_name = info.infra_id + INTERNAL_SECURITY_GROUP_SUFFIX
    existing = get_security_group(group_name, nsg_ops, info.base_group_name)

    vnet_name = f"{info.infra_id}-vnet"
    worker_subnet = get_subnet(vnet_name, f"{info.infra_id}-worker-subnet", info.base_group_name, subnet_ops)
    master_subnet = get_subnet(vnet_name, f"{info.infra_id}-master-subnet", info.base_group_name, subnet_ops)
    logger.debug("Subnets for %s: worker=%s master=%s", group_name, worker_subnet.id, master_subnet.id)

    if existing is not None:
        logger.info("Security group %s already exists, keeping its rules", group_name)
        group_id = existing.id
    else:
        security_rules = build_security_rules(ports, INTERNAL_SECURITY_RULE_PREFIX)
        security_group = NetworkSecurityGroup(location=info.region, security_rules=security_rules)

        try:
            poller = nsg_ops.begin_create_or_update(info.base_group_name, group_name, security_group)
        except HttpResponseError as e:
            raise CloudPrepareError(f'creating security group "{group_name}" failed', cause=e) from e

        created = wait_for_completion(poller, f'error creating security group "{group_name}"')
        logger.info("Created security group %s with %d rules", group_name, len(security_rules))
        group_id = created.id

    reference = NetworkSecurityGroup(id=group_id)
    for subnet in (worker_subnet, master_subnet):
        if is_associated(subnet, group_id):
            logger.debug("Subnet %s already uses %s", subnet.name, group_name)
            continue
        associate_security_group(subnet, reference, info.base_group_name, vnet_name, subnet_ops)


def remove_internal_firewall_rules(info: CloudInfo, nsg_ops, subnet_ops) -> bool:
    """Detach the internal security group from its subnets and delete it.

    Returns:
        False if the security group did not exist, True once it is deleted
    """
    group_name = info.infra_id + INTERNAL_SECURITY_GROUP_SUFFIX

    try:
        security_group = nsg_ops.get(info.base_group_name, group_name)
    except ResourceNotFoundError:
        logger.info("Security group %s not found, nothing to remove", group_name)
        return False
    except HttpResponseError as e:
        raise CloudPrepareError(f'error getting the securitygroup "{group_name}"', cause=e) from e

    for reference in security_group.subnets or []:
        parts = parse_resource_id(reference.id)
        resource_group = parts["resource_group"]
        vnet_name = parts["name"]
        subnet_name = parts["child_name_1"]

        try:
            subnet = subnet_ops.get(resource_group, vnet_name, subnet_name)
            poller = subnet_ops.begin_create_or_update(
                resource_group, vnet_name, subnet_name, _detached(subnet)
            )
        except HttpResponseError as e:
            raise CloudPrepareError(
                f'removing security group "{group_name}" from subnets failed', cause=e
            ) from e

        wait_for_completion(
            poller, f'waiting for security group "{group_name}" to be updated failed'
        )
        logger.debug("Detached %s from subnet %s/%s", group_name, vnet_name, subnet_name)

    try:
        delete_poller = nsg_ops.begin_delete(info.base_group_name, group_name)
    except HttpResponseError as e:
        raise CloudPrepareError(f'deleting security group "{group_name}" failed', cause=e) from e

    wait_for_completion(
        delete_poller, f'waiting for security group "{group_name}" to be deleted failed'
    )
    logger.info("Deleted security group %s", group_name)
    return True


def _detached(subnet: Subnet) -> Subnet:
    subnet.network_security_group = None
    return subnet
