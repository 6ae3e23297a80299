"""External security group opening the Submariner gateway ports."""

import logging

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.network.models import NetworkSecurityGroup

from cloudprep.api import PortSpec
from cloudprep.azure.clients import CloudInfo, wait_for_completion
from cloudprep.azure.security_groups import build_security_rules
from cloudprep.errors import CloudPrepareError

logger = logging.getLogger(__name__)

EXTERNAL_SECURITY_GROUP_SUFFIX = "-submariner-external-sg"
INBOUND_RULE_PREFIX = "Submariner-Inbound-"


def open_gw_ports(info: CloudInfo, ports: list[PortSpec], nsg_ops) -> None:
    """Create or update the external security group with one inbound rule per port.

    An existing group that already carries every rule is left alone.
    """
    group_name = info.infra_id + EXTERNAL_SECURITY_GROUP_SUFFIX
    security_rules = build_security_rules(ports, INBOUND_RULE_PREFIX)

    try:
        existing = nsg_ops.get(info.base_group_name, group_name)
    except ResourceNotFoundError:
        existing = None
    except HttpResponseError as e:
        raise CloudPrepareError(f'error getting the securitygroup "{group_name}"', cause=e) from e

    if existing is not None:
        present = {rule.name for rule in existing.security_rules or []}
        if all(rule.name in present for rule in security_rules):
            logger.info("Security group %s already opens all gateway ports", group_name)
            return
        # Keep rules added by others, replace ours
        kept = [
            rule
            for rule in existing.security_rules or []
            if not rule.name.startswith(INBOUND_RULE_PREFIX)
        ]
        existing.security_rules = kept + security_rules
        security_group = existing
    else:
        security_group = NetworkSecurityGroup(location=info.region, security_rules=security_rules)

    try:
        poller = nsg_ops.begin_create_or_update(info.base_group_name, group_name, security_group)
    except HttpResponseError as e:
        raise CloudPrepareError(f'creating security group "{group_name}" failed', cause=e) from e

    wait_for_completion(poller, f'error creating security group "{group_name}"')
    logger.info("Opened gateway ports on security group %s", group_name)


def remove_gw_firewall_rules(info: CloudInfo, nsg_ops) -> bool:
    """Delete the external security group.

    Returns:
        False if the security group did not exist, True once it is deleted
    """
    group_name = info.infra_id + EXTERNAL_SECURITY_GROUP_SUFFIX

    try:
        nsg_ops.get(info.base_group_name, group_name)
    except ResourceNotFoundError:
        logger.info("Security group %s not found, nothing to remove", group_name)
        return False
    except HttpResponseError as e:
        raise CloudPrepareError(f'error getting the securitygroup "{group_name}"', cause=e) from e

    try:
        poller = nsg_ops.begin_delete(info.base_group_name, group_name)
    except HttpResponseError as e:
        raise CloudPrepareError(f'deleting security group "{group_name}" failed', cause=e) from e

    wait_for_completion(poller, f'waiting for security group "{group_name}" to be deleted failed')
    logger.info("Deleted security group %s", group_name)
    return True
