"""Load-balancing rules forwarding Submariner ports on the cluster's public load balancer."""

import logging

from azure.core.exceptions import HttpResponseError
from azure.mgmt.network.models import (
    LoadBalancer,
    LoadBalancingRule,
    LoadDistribution,
    SubResource,
    TransportProtocol,
)

from cloudprep.api import SUPPORTED_PROTOCOLS, PortSpec
from cloudprep.azure.clients import CloudInfo, wait_for_completion
from cloudprep.azure.gateway import INBOUND_RULE_PREFIX
from cloudprep.errors import CloudPrepareError

logger = logging.getLogger(__name__)

FRONTEND_IP_CONFIGURATION_NAME = "public-lb-ip-v4"
IDLE_TIMEOUT_MINUTES = 4


def transport_protocol(protocol: str) -> TransportProtocol:
    """Map a port protocol such as "udp" to the load balancer transport protocol.

    Only tcp and udp are accepted: Azure allows the All protocol solely on
    HA-ports rules with port 0, which never forward a single port.
    """
    if protocol.lower() not in SUPPORTED_PROTOCOLS:
        raise ValueError(f"unsupported load balancer protocol {protocol!r}")
    return TransportProtocol[protocol.upper()]


def _get_load_balancer(info: CloudInfo, lb_ops) -> LoadBalancer:
    # The installer names the public load balancer and its backend pool after the infra ID
    try:
        return lb_ops.get(info.base_group_name, info.infra_id)
    except HttpResponseError as e:
        raise CloudPrepareError(f'error getting the load balancer "{info.infra_id}"', cause=e) from e


def _update_load_balancer(info: CloudInfo, load_balancer: LoadBalancer, lb_ops) -> None:
    try:
        poller = lb_ops.begin_create_or_update(info.base_group_name, info.infra_id, load_balancer)
    except HttpResponseError as e:
        raise CloudPrepareError(f'updating load balancer "{info.infra_id}" failed', cause=e) from e

    wait_for_completion(
        poller, f'waiting for load balancer "{info.infra_id}" to be updated failed'
    )


def _find_by_name(items, name: str):
    return next((item for item in items or [] if item.name == name), None)


def create_submariner_load_balancing_rules(
    info: CloudInfo,
    frontend_ip_configuration_name: str,
    ports: list[PortSpec],
    lb_ops,
) -> list[str]:
    """Add a load-balancing rule per port that is not already forwarded.

    Args:
        info: Target cluster
        frontend_ip_configuration_name: Frontend IP configuration receiving the traffic
        ports: Ports to forward, each to the same backend port
        lb_ops: Load balancers operation group

    Returns:
        Names of the rules that were added
    """
    load_balancer = _get_load_balancer(info, lb_ops)

    frontend = _find_by_name(load_balancer.frontend_ip_configurations, frontend_ip_configuration_name)
    if frontend is None:
        raise CloudPrepareError(
            f'frontend IP configuration "{frontend_ip_configuration_name}" '
            f'not found on load balancer "{info.infra_id}"'
        )

    backend_pool = _find_by_name(load_balancer.backend_address_pools, info.infra_id)
    if backend_pool is None:
        raise CloudPrepareError(
            f'backend address pool "{info.infra_id}" not found on load balancer "{info.infra_id}"'
        )

    rules = list(load_balancer.load_balancing_rules or [])
    present = {rule.name for rule in rules}
    added = []

    for port in ports:
        name = f"{INBOUND_RULE_PREFIX}{port.protocol}-{port.port}"
        if name in present:
            continue
        rules.append(
            LoadBalancingRule(
                name=name,
                frontend_ip_configuration=SubResource(id=frontend.id),
                backend_address_pool=SubResource(id=backend_pool.id),
                protocol=transport_protocol(port.protocol),
                frontend_port=port.port,
                backend_port=port.port,
                enable_floating_ip=False,
                idle_timeout_in_minutes=IDLE_TIMEOUT_MINUTES,
                load_distribution=LoadDistribution.DEFAULT,
                # The installer's outbound rule already uses this frontend
                disable_outbound_snat=True,
            )
        )
        added.append(name)

    if not added:
        logger.info("Load balancer %s already forwards all Submariner ports", info.infra_id)
        return added

    load_balancer.load_balancing_rules = rules
    _update_load_balancer(info, load_balancer, lb_ops)
    logger.info("Added load-balancing rules %s to %s", ", ".join(added), info.infra_id)
    return added


def delete_submariner_load_balancing_rules(info: CloudInfo, lb_ops) -> list[str]:
    """Remove every Submariner load-balancing rule.

    Returns:
        Names of the rules that were removed
    """
    load_balancer = _get_load_balancer(info, lb_ops)

    rules = load_balancer.load_balancing_rules or []
    kept = [rule for rule in rules if not rule.name.startswith(INBOUND_RULE_PREFIX)]
    removed = [rule.name for rule in rules if rule.name.startswith(INBOUND_RULE_PREFIX)]

    if not removed:
        logger.info("No Submariner load-balancing rules on %s", info.infra_id)
        return removed

    load_balancer.load_balancing_rules = kept
    _update_load_balancer(info, load_balancer, lb_ops)
    logger.info("Removed load-balancing rules %s from %s", ", ".join(removed), info.infra_id)
    return removed
