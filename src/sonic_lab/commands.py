from __future__ import annotations

import shlex
from typing import List, Sequence, Tuple

from sonic_lab.topology import HostNode, Interface, RouterNode


def link_up(ifname: str) -> List[str]:
    return ["ip", "link", "set", ifname, "up"]


def tolerant_shell(argv: Sequence[str]) -> List[str]:
    return ["sh", "-c", f"{shlex.join(argv)} 2>/dev/null || true"]


def host_route_del_mgmt(host: HostNode) -> List[str]:
    return tolerant_shell(
        ["ip", "route", "del", "default", "via", host.mgmt_gateway, "dev", host.mgmt_device]
    )


def host_route_add_lab(host: HostNode) -> List[str]:
    return tolerant_shell(["ip", "route", "add", "default", "via", host.gateway, "dev", host.device])


def interface_ip_add(iface: Interface) -> List[str]:
    return ["config", "interface", "ip", "add", iface.name, iface.address]


def interface_startup(iface: Interface) -> List[str]:
    return ["config", "interface", "startup", iface.name]


def loopback_add(iface: Interface) -> List[str]:
    return ["config", "loopback", "add", iface.name]


def interface_commands(node: RouterNode) -> List[List[str]]:
    cmds: List[List[str]] = []
    for iface in (node.peer_link, node.host_link):
        cmds.append(interface_ip_add(iface))
        cmds.append(interface_startup(iface))
    cmds.append(loopback_add(node.loopback))
    cmds.append(interface_ip_add(node.loopback))
    cmds.append(interface_startup(node.loopback))
    return cmds


def enable_daemon(daemons_file: str, toggle: Tuple[str, str]) -> List[str]:
    disabled, enabled = (part.replace("/", r"\/") for part in toggle)
    return ["sed", "-i", f"s/{disabled}/{enabled}/", daemons_file]


def restart_service(service: str) -> List[str]:
    return ["service", service, "restart"]


def bgp_config_lines(node: RouterNode) -> List[str]:
    return [
        "configure terminal",
        f"router bgp {node.asn}",
        f"bgp router-id {node.router_id}",
        "bgp log-neighbor-changes",
        "no bgp ebgp-requires-policy",
        f"neighbor {node.neighbor.address} remote-as {node.neighbor.remote_as}",
        "address-family ipv4 unicast",
        f"network {node.host_subnet}",
        "redistribute connected",
        "exit-address-family",
        "exit",
    ]


def vtysh(lines: Sequence[str]) -> List[str]:
    argv = ["vtysh"]
    for line in lines:
        argv.extend(["-c", line])
    return argv


def bgp_batch(node: RouterNode) -> List[str]:
    return vtysh(bgp_config_lines(node))


def save_attempts() -> List[Tuple[str, List[str]]]:
    return [
        ("write memory", vtysh(["write memory"])),
        ("write", vtysh(["write"])),
    ]


def bgp_summary() -> List[str]:
    return vtysh(["show ip bgp summary"])


def ping(address: str, count: int) -> List[str]:
    return ["ping", "-c", str(int(count)), address]
