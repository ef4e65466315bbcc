from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from sonic_lab.io import load_yaml

DEFAULT_LAB_NAME = "simple-sonic"
DEFAULT_MGMT_GATEWAY = "172.20.20.1"


@dataclass(frozen=True)
class Interface:
    name: str
    address: str

    @property
    def ip(self) -> ipaddress.IPv4Interface:
        return ipaddress.IPv4Interface(self.address)

    @property
    def network(self) -> ipaddress.IPv4Network:
        return self.ip.network


@dataclass(frozen=True)
class Neighbor:
    address: str
    remote_as: int


@dataclass(frozen=True)
class RouterNode:
    name: str
    container: str
    asn: int
    peer_link: Interface
    host_link: Interface
    loopback: Interface
    neighbor: Neighbor
    link_interfaces: Tuple[str, ...] = ("eth1", "eth2")

    @property
    def router_id(self) -> str:
        return str(self.loopback.ip.ip)

    @property
    def host_subnet(self) -> str:
        return str(self.host_link.network)

    def interfaces(self) -> Tuple[Interface, ...]:
        return (self.peer_link, self.host_link, self.loopback)


@dataclass(frozen=True)
class HostNode:
    name: str
    container: str
    address: str
    gateway: str
    device: str = "eth1"
    mgmt_gateway: str = DEFAULT_MGMT_GATEWAY
    mgmt_device: str = "eth0"


@dataclass(frozen=True)
class LabTopology:
    name: str
    routers: Tuple[RouterNode, ...]
    hosts: Tuple[HostNode, ...]

    def router(self, name: str) -> RouterNode:
        for node in self.routers:
            if node.name == name:
                return node
        raise KeyError(f"unknown router: {name}")

    def host(self, name: str) -> HostNode:
        for node in self.hosts:
            if node.name == name:
                return node
        raise KeyError(f"unknown host: {name}")


def container_name(lab_name: str, node_name: str) -> str:
    return f"clab-{lab_name}-{node_name}"


def validate_topology(topology: LabTopology) -> LabTopology:
    names = [n.name for n in topology.routers] + [h.name for h in topology.hosts]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"duplicate node names: {duplicates}")
    if not topology.routers:
        raise ValueError("topology must define at least one router")

    seen_ids: Dict[str, str] = {}
    for node in topology.routers:
        for iface in node.interfaces():
            try:
                ipaddress.IPv4Interface(iface.address)
            except ValueError as exc:
                raise ValueError(f"{node.name}.{iface.name}: invalid address {iface.address!r}") from exc
        if node.router_id in seen_ids:
            raise ValueError(
                f"{node.name}: loopback {node.router_id} already used by {seen_ids[node.router_id]}"
            )
        seen_ids[node.router_id] = node.name

    by_link_ip = {str(n.peer_link.ip.ip): n for n in topology.routers}
    for node in topology.routers:
        if node.peer_link.network.prefixlen != 31:
            raise ValueError(f"{node.name}.{node.peer_link.name}: inter-node link must be a /31")
        peer = by_link_ip.get(node.neighbor.address)
        if peer is None or peer is node:
            raise ValueError(
                f"{node.name}: neighbor {node.neighbor.address} is not another router's link address"
            )
        if peer.peer_link.network != node.peer_link.network:
            raise ValueError(
                f"{node.name}: {node.peer_link.address} and {peer.name} "
                f"{peer.peer_link.address} are not a point-to-point pair"
            )
        if node.neighbor.remote_as != peer.asn:
            raise ValueError(
                f"{node.name}: neighbor remote-as {node.neighbor.remote_as} "
                f"does not match {peer.name} AS {peer.asn}"
            )

    gateways = {str(n.host_link.ip.ip): n for n in topology.routers}
    for host in topology.hosts:
        router = gateways.get(host.gateway)
        if router is None:
            raise ValueError(f"{host.name}: gateway {host.gateway} is not a router host-facing address")
        if ipaddress.IPv4Address(host.address) not in router.host_link.network:
            raise ValueError(f"{host.name}: address {host.address} outside {router.host_subnet}")
    return topology


def default_topology() -> LabTopology:
    lab = DEFAULT_LAB_NAME
    return validate_topology(
        LabTopology(
            name=lab,
            routers=(
                RouterNode(
                    name="sonic1",
                    container=container_name(lab, "sonic1"),
                    asn=65001,
                    peer_link=Interface("Ethernet0", "10.0.0.0/31"),
                    host_link=Interface("Ethernet4", "192.168.1.1/24"),
                    loopback=Interface("Loopback0", "1.1.1.1/32"),
                    neighbor=Neighbor("10.0.0.1", 65002),
                ),
                RouterNode(
                    name="sonic2",
                    container=container_name(lab, "sonic2"),
                    asn=65002,
                    peer_link=Interface("Ethernet0", "10.0.0.1/31"),
                    host_link=Interface("Ethernet4", "192.168.2.1/24"),
                    loopback=Interface("Loopback0", "2.2.2.2/32"),
                    neighbor=Neighbor("10.0.0.0", 65001),
                ),
            ),
            hosts=(
                HostNode(
                    name="host1",
                    container=container_name(lab, "host1"),
                    address="192.168.1.10",
                    gateway="192.168.1.1",
                ),
                HostNode(
                    name="host2",
                    container=container_name(lab, "host2"),
                    address="192.168.2.10",
                    gateway="192.168.2.1",
                ),
            ),
        )
    )


def _interface(raw: Dict[str, Any], field_name: str) -> Interface:
    item = raw.get(field_name)
    if not isinstance(item, dict):
        raise ValueError(f"missing required field: {field_name}")
    return Interface(name=str(item["name"]), address=str(item["address"]))


def topology_from_dict(raw: Dict[str, Any]) -> LabTopology:
    try:
        return validate_topology(_parse_topology(raw))
    except KeyError as exc:
        raise ValueError(f"missing required field: {exc.args[0]}") from exc
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"malformed topology: {exc}") from exc


def _parse_topology(raw: Dict[str, Any]) -> LabTopology:
    lab_name = str(raw.get("name", DEFAULT_LAB_NAME)).strip() or DEFAULT_LAB_NAME

    routers = []
    for item in raw.get("routers", []) or []:
        name = str(item["name"])
        neighbor_raw = dict(item.get("neighbor", {}))
        if "address" not in neighbor_raw or "remote_as" not in neighbor_raw:
            raise ValueError(f"{name}: neighbor needs `address` and `remote_as`")
        routers.append(
            RouterNode(
                name=name,
                container=str(item.get("container") or container_name(lab_name, name)),
                asn=int(item["asn"]),
                peer_link=_interface(item, "peer_link"),
                host_link=_interface(item, "host_link"),
                loopback=_interface(item, "loopback"),
                neighbor=Neighbor(
                    address=str(neighbor_raw["address"]),
                    remote_as=int(neighbor_raw["remote_as"]),
                ),
                link_interfaces=tuple(str(x) for x in item.get("link_interfaces", ("eth1", "eth2"))),
            )
        )

    hosts = []
    for item in raw.get("hosts", []) or []:
        name = str(item["name"])
        hosts.append(
            HostNode(
                name=name,
                container=str(item.get("container") or container_name(lab_name, name)),
                address=str(item["address"]),
                gateway=str(item["gateway"]),
                device=str(item.get("device", "eth1")),
                mgmt_gateway=str(item.get("mgmt_gateway", DEFAULT_MGMT_GATEWAY)),
                mgmt_device=str(item.get("mgmt_device", "eth0")),
            )
        )

    return LabTopology(name=lab_name, routers=tuple(routers), hosts=tuple(hosts))


def load_topology(path: str | Path) -> LabTopology:
    raw = load_yaml(path)
    section = raw.get("topology", raw)
    if not isinstance(section, dict):
        raise ValueError(f"`topology` must be a mapping: {path}")
    return topology_from_dict(section)
