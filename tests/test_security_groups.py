"""
Tests for the internal network security group steps.
"""

from unittest.mock import DEFAULT

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.network.models import (
    NetworkSecurityGroup,
    SecurityRuleAccess,
    SecurityRuleDirection,
    SecurityRuleProtocol,
    Subnet,
)

from cloudprep.api import PortSpec
from cloudprep.azure.security_groups import (
    create_security_rule,
    get_subnet,
    open_internal_ports,
    remove_internal_firewall_rules,
    rule_protocol,
    security_group_exists,
)
from cloudprep.errors import CloudPrepareError
from tests.conftest import INFRA_ID, RESOURCE_GROUP, network_id

PORTS = [PortSpec(port=4800, protocol="udp"), PortSpec(port=8080, protocol="tcp")]
GROUP_NAME = f"{INFRA_ID}-nsg"
VNET_NAME = f"{INFRA_ID}-vnet"


def _subnet(name: str) -> Subnet:
    return Subnet(id=network_id("virtualNetworks", VNET_NAME, "subnets", name), name=name)


def _attached(name: str, group_id: str) -> Subnet:
    subnet = _subnet(name)
    subnet.network_security_group = NetworkSecurityGroup(id=group_id)
    return subnet


class TestCreateSecurityRule:
    """Tests for create_security_rule."""

    def test_rule_shape(self):
        rule = create_security_rule("0.0.0.0/0", "0.0.0.0/0", "udp", 4800, 100)

        assert rule.name == "Submariner-Internal-udp-4800"
        assert rule.protocol == SecurityRuleProtocol.UDP
        assert rule.destination_port_range == "4800-4800"
        assert rule.source_port_range == "*"
        assert rule.source_address_prefix == "0.0.0.0/0"
        assert rule.destination_address_prefix == "0.0.0.0/0"
        assert rule.access == SecurityRuleAccess.ALLOW
        assert rule.direction == SecurityRuleDirection.INBOUND
        assert rule.priority == 100

    def test_name_prefix(self):
        rule = create_security_rule("0.0.0.0/0", "0.0.0.0/0", "tcp", 8080, 101, "Submariner-Inbound-")

        assert rule.name == "Submariner-Inbound-tcp-8080"

    def test_protocols(self):
        assert rule_protocol("tcp") == SecurityRuleProtocol.TCP
        assert rule_protocol("all") == SecurityRuleProtocol.ASTERISK
        with pytest.raises(ValueError):
            rule_protocol("sctp")


class TestSecurityGroupExists:
    """Tests for security_group_exists."""

    def test_found(self, nsg_ops):
        assert security_group_exists(GROUP_NAME, nsg_ops, RESOURCE_GROUP)
        nsg_ops.get.assert_called_once_with(RESOURCE_GROUP, GROUP_NAME)

    def test_not_found(self, nsg_ops):
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")

        assert not security_group_exists(GROUP_NAME, nsg_ops, RESOURCE_GROUP)

    def test_other_errors_propagate(self, nsg_ops):
        nsg_ops.get.side_effect = HttpResponseError("Forbidden")

        with pytest.raises(CloudPrepareError, match="error getting the securitygroup"):
            security_group_exists(GROUP_NAME, nsg_ops, RESOURCE_GROUP)


def test_get_subnet_failure(subnet_ops):
    subnet_ops.get.side_effect = ResourceNotFoundError("not found")

    with pytest.raises(CloudPrepareError, match=f'failed to retrieve subnet "{INFRA_ID}-worker-subnet"'):
        get_subnet(VNET_NAME, f"{INFRA_ID}-worker-subnet", RESOURCE_GROUP, subnet_ops)


class TestOpenInternalPorts:
    """Tests for open_internal_ports."""

    def test_existing_group_already_attached(self, info, nsg_ops, subnet_ops):
        group_id = network_id("networkSecurityGroups", GROUP_NAME)
        nsg_ops.get.return_value = NetworkSecurityGroup(id=group_id)
        subnet_ops.get.side_effect = lambda group, vnet, name: _attached(name, group_id.upper())

        open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        nsg_ops.begin_create_or_update.assert_not_called()
        subnet_ops.begin_create_or_update.assert_not_called()

    def test_existing_group_attaches_missing_subnets(self, info, nsg_ops, subnet_ops):
        group_id = network_id("networkSecurityGroups", GROUP_NAME)
        nsg_ops.get.return_value = NetworkSecurityGroup(id=group_id)
        subnets = {
            f"{INFRA_ID}-worker-subnet": _subnet(f"{INFRA_ID}-worker-subnet"),
            f"{INFRA_ID}-master-subnet": _attached(f"{INFRA_ID}-master-subnet", group_id),
        }
        subnet_ops.get.side_effect = lambda group, vnet, name: subnets[name]

        open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        nsg_ops.begin_create_or_update.assert_not_called()
        update = subnet_ops.begin_create_or_update.call_args
        assert update.args[2] == f"{INFRA_ID}-worker-subnet"
        assert update.args[3].network_security_group.id == group_id
        assert subnet_ops.begin_create_or_update.call_count == 1

    def test_rerun_after_failed_association_attaches_subnets(self, info, nsg_ops, subnet_ops):
        created = NetworkSecurityGroup(id=network_id("networkSecurityGroups", GROUP_NAME))
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")
        nsg_ops.begin_create_or_update.return_value.result.return_value = created
        subnet_ops.get.side_effect = lambda group, vnet, name: _subnet(name)
        subnet_ops.begin_create_or_update.side_effect = HttpResponseError("Conflict")

        with pytest.raises(CloudPrepareError, match="updating subnet"):
            open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        nsg_ops.get.side_effect = None
        nsg_ops.get.return_value = created
        nsg_ops.begin_create_or_update.reset_mock()
        subnet_ops.begin_create_or_update.reset_mock(side_effect=True)

        open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        nsg_ops.begin_create_or_update.assert_not_called()
        assert [call.args[2] for call in subnet_ops.begin_create_or_update.call_args_list] == [
            f"{INFRA_ID}-worker-subnet",
            f"{INFRA_ID}-master-subnet",
        ]

    def test_creates_group_and_associates_subnets(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")
        created = NetworkSecurityGroup(id=network_id("networkSecurityGroups", GROUP_NAME))
        nsg_ops.begin_create_or_update.return_value.result.return_value = created
        subnet_ops.get.side_effect = lambda group, vnet, name: _subnet(name)

        open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        group, name, security_group = nsg_ops.begin_create_or_update.call_args.args
        assert (group, name) == (RESOURCE_GROUP, GROUP_NAME)
        assert security_group.location == "eastus"
        assert [r.name for r in security_group.security_rules] == [
            "Submariner-Internal-udp-4800",
            "Submariner-Internal-tcp-8080",
        ]
        assert [r.priority for r in security_group.security_rules] == [100, 101]

        subnet_ops.get.assert_any_call(RESOURCE_GROUP, VNET_NAME, f"{INFRA_ID}-worker-subnet")
        subnet_ops.get.assert_any_call(RESOURCE_GROUP, VNET_NAME, f"{INFRA_ID}-master-subnet")

        updates = subnet_ops.begin_create_or_update.call_args_list
        assert [call.args[2] for call in updates] == [
            f"{INFRA_ID}-worker-subnet",
            f"{INFRA_ID}-master-subnet",
        ]
        for call in updates:
            assert call.args[3].network_security_group.id == created.id

    def test_missing_subnet_stops_before_creating(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")
        subnet_ops.get.side_effect = ResourceNotFoundError("not found")

        with pytest.raises(CloudPrepareError, match="failed to retrieve subnet"):
            open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        nsg_ops.begin_create_or_update.assert_not_called()

    def test_create_failure(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")
        subnet_ops.get.side_effect = lambda group, vnet, name: _subnet(name)
        nsg_ops.begin_create_or_update.side_effect = HttpResponseError("Quota exceeded")

        with pytest.raises(CloudPrepareError, match=f'creating security group "{GROUP_NAME}" failed'):
            open_internal_ports(info, PORTS, nsg_ops, subnet_ops)

        subnet_ops.begin_create_or_update.assert_not_called()


class TestRemoveInternalFirewallRules:
    """Tests for remove_internal_firewall_rules."""

    def test_missing_group(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.side_effect = ResourceNotFoundError("not found")

        assert remove_internal_firewall_rules(info, nsg_ops, subnet_ops) is False
        nsg_ops.begin_delete.assert_not_called()

    def test_get_failure(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.side_effect = HttpResponseError("Forbidden")

        with pytest.raises(CloudPrepareError, match=f'error getting the securitygroup "{GROUP_NAME}"'):
            remove_internal_firewall_rules(info, nsg_ops, subnet_ops)

    def test_detaches_subnets_then_deletes(self, info, nsg_ops, subnet_ops):
        security_group = NetworkSecurityGroup(location="eastus")
        security_group.subnets = [_subnet(f"{INFRA_ID}-worker-subnet")]
        nsg_ops.get.return_value = security_group
        attached = _subnet(f"{INFRA_ID}-worker-subnet")
        attached.network_security_group = NetworkSecurityGroup(id="nsg-id")
        subnet_ops.get.return_value = attached

        order = []
        subnet_ops.begin_create_or_update.side_effect = lambda *args: order.append("detach") or DEFAULT
        nsg_ops.begin_delete.side_effect = lambda *args: order.append("delete") or DEFAULT

        assert remove_internal_firewall_rules(info, nsg_ops, subnet_ops) is True

        subnet_ops.get.assert_called_once_with(RESOURCE_GROUP, VNET_NAME, f"{INFRA_ID}-worker-subnet")
        update = subnet_ops.begin_create_or_update.call_args
        assert update.args[:3] == (RESOURCE_GROUP, VNET_NAME, f"{INFRA_ID}-worker-subnet")
        assert update.args[3].network_security_group is None
        nsg_ops.begin_delete.assert_called_once_with(RESOURCE_GROUP, GROUP_NAME)
        assert order == ["detach", "delete"]

    def test_detach_failure(self, info, nsg_ops, subnet_ops):
        security_group = NetworkSecurityGroup(location="eastus")
        security_group.subnets = [_subnet(f"{INFRA_ID}-master-subnet")]
        nsg_ops.get.return_value = security_group
        subnet_ops.begin_create_or_update.side_effect = HttpResponseError("Conflict")

        with pytest.raises(
            CloudPrepareError, match=f'removing security group "{GROUP_NAME}" from subnets failed'
        ):
            remove_internal_firewall_rules(info, nsg_ops, subnet_ops)

        nsg_ops.begin_delete.assert_not_called()

    def test_delete_wait_failure(self, info, nsg_ops, subnet_ops):
        nsg_ops.get.return_value = NetworkSecurityGroup(location="eastus")
        nsg_ops.begin_delete.return_value.result.side_effect = HttpResponseError("InUse")

        with pytest.raises(
            CloudPrepareError, match=f'waiting for security group "{GROUP_NAME}" to be deleted failed'
        ):
            remove_internal_firewall_rules(info, nsg_ops, subnet_ops)
