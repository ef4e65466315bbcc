from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from sonic_lab.topology import (
    Interface,
    Neighbor,
    default_topology,
    load_topology,
    validate_topology,
)


def test_default_topology_matches_simple_sonic_lab() -> None:
    topo = default_topology()
    sonic1 = topo.router("sonic1")
    sonic2 = topo.router("sonic2")

    assert sonic1.container == "clab-simple-sonic-sonic1"
    assert sonic1.asn == 65001
    assert sonic1.router_id == "1.1.1.1"
    assert sonic1.peer_link.address == "10.0.0.0/31"
    assert sonic1.host_subnet == "192.168.1.0/24"
    assert sonic1.neighbor == Neighbor("10.0.0.1", 65002)

    assert sonic2.asn == 65002
    assert sonic2.router_id == "2.2.2.2"
    assert sonic2.peer_link.address == "10.0.0.1/31"
    assert sonic2.host_subnet == "192.168.2.0/24"
    assert sonic2.neighbor == Neighbor("10.0.0.0", 65001)

    assert [h.address for h in topo.hosts] == ["192.168.1.10", "192.168.2.10"]
    assert topo.host("host1").mgmt_gateway == "172.20.20.1"


def test_interfaces_are_listed_in_configuration_order() -> None:
    node = default_topology().router("sonic1")
    assert [iface.name for iface in node.interfaces()] == ["Ethernet0", "Ethernet4", "Loopback0"]


def test_validate_rejects_link_that_is_not_a_31() -> None:
    topo = default_topology()
    sonic1 = replace(topo.router("sonic1"), peer_link=Interface("Ethernet0", "10.0.0.0/30"))
    with pytest.raises(ValueError, match="/31"):
        validate_topology(replace(topo, routers=(sonic1, topo.routers[1])))


def test_validate_rejects_duplicate_loopback() -> None:
    topo = default_topology()
    sonic2 = replace(topo.router("sonic2"), loopback=Interface("Loopback0", "1.1.1.1/32"))
    with pytest.raises(ValueError, match="loopback 1.1.1.1"):
        validate_topology(replace(topo, routers=(topo.routers[0], sonic2)))


def test_validate_rejects_remote_as_mismatch() -> None:
    topo = default_topology()
    sonic1 = replace(topo.router("sonic1"), neighbor=Neighbor("10.0.0.1", 65099))
    with pytest.raises(ValueError, match="remote-as 65099"):
        validate_topology(replace(topo, routers=(sonic1, topo.routers[1])))


def test_validate_rejects_neighbor_pointing_at_itself() -> None:
    topo = default_topology()
    sonic1 = replace(topo.router("sonic1"), neighbor=Neighbor("10.0.0.0", 65001))
    with pytest.raises(ValueError, match="not another router"):
        validate_topology(replace(topo, routers=(sonic1, topo.routers[1])))


def test_validate_rejects_host_outside_gateway_subnet() -> None:
    topo = default_topology()
    host1 = replace(topo.host("host1"), address="192.168.9.10")
    with pytest.raises(ValueError, match="outside 192.168.1.0/24"):
        validate_topology(replace(topo, hosts=(host1, topo.hosts[1])))


def test_load_topology_defaults_container_names(tmp_path: Path) -> None:
    path = tmp_path / "lab.yaml"
    path.write_text(
        """
topology:
  name: mini
  routers:
    - name: r1
      asn: 64512
      peer_link: {name: Ethernet0, address: 10.9.0.0/31}
      host_link: {name: Ethernet4, address: 172.16.1.1/24}
      loopback: {name: Loopback0, address: 9.9.9.1/32}
      neighbor: {address: 10.9.0.1, remote_as: 64513}
    - name: r2
      container: custom-r2
      asn: 64513
      link_interfaces: [eth1]
      peer_link: {name: Ethernet0, address: 10.9.0.1/31}
      host_link: {name: Ethernet4, address: 172.16.2.1/24}
      loopback: {name: Loopback0, address: 9.9.9.2/32}
      neighbor: {address: 10.9.0.0, remote_as: 64512}
  hosts:
    - name: h1
      address: 172.16.1.10
      gateway: 172.16.1.1
""".strip(),
        encoding="utf-8",
    )
    topo = load_topology(path)

    assert topo.name == "mini"
    assert topo.router("r1").container == "clab-mini-r1"
    assert topo.router("r1").link_interfaces == ("eth1", "eth2")
    assert topo.router("r2").container == "custom-r2"
    assert topo.router("r2").link_interfaces == ("eth1",)
    assert topo.host("h1").container == "clab-mini-h1"
    assert topo.host("h1").device == "eth1"


def test_load_topology_missing_field_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "lab.yaml"
    path.write_text(
        """
routers:
  - name: r1
    peer_link: {name: Ethernet0, address: 10.9.0.0/31}
""".strip(),
        encoding="utf-8",
    )
    with pytest.raises(ValueError):
        load_topology(path)
