from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from sonic_lab import commands
from sonic_lab.config import SequencerSettings, Timers
from sonic_lab.fallback import Executor, FallbackOutcome, run_with_fallback, suppress_lines
from sonic_lab.topology import HostNode, LabTopology, RouterNode

PHASES: Tuple[Tuple[str, str], ...] = (
    ("Bring up containerlab eth interfaces", "activate_links"),
    ("Configure host default routes", "repair_host_routes"),
    ("Configure router interfaces", "configure_interfaces"),
    ("Wait for interfaces to stabilize", "wait_stabilize"),
    ("Enable bgpd on all routers", "enable_daemons"),
    ("Configure BGP on routers", "configure_peering"),
    ("Wait for BGP sessions to establish", "wait_convergence"),
    ("Verify BGP and host connectivity", "verify"),
)


@dataclass(frozen=True)
class ProbeResult:
    source: str
    target: str
    address: str
    ok: bool
    output: str = ""


@dataclass
class LabReport:
    lab_name: str
    saves: Dict[str, str | None] = field(default_factory=dict)
    bgp_summaries: Dict[str, str] = field(default_factory=dict)
    probes: List[ProbeResult] = field(default_factory=list)

    @property
    def all_probes_ok(self) -> bool:
        return all(probe.ok for probe in self.probes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lab_name": self.lab_name,
            "saves": dict(self.saves),
            "bgp_summaries": dict(self.bgp_summaries),
            "probes": [asdict(probe) for probe in self.probes],
            "all_probes_ok": self.all_probes_ok,
        }


class LabSequencer:
    def __init__(
        self,
        topology: LabTopology,
        runtime: Executor,
        *,
        timers: Timers | None = None,
        settings: SequencerSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._topology = topology
        self._runtime = runtime
        self._timers = timers or Timers()
        self._settings = settings or SequencerSettings()
        self._sleep = sleep
        self._log = logger or logging.getLogger("sonic_lab.sequencer")
        self._report = LabReport(lab_name=topology.name)

    @property
    def report(self) -> LabReport:
        return self._report

    def run(self) -> LabReport:
        self._report = LabReport(lab_name=self._topology.name)
        total = len(PHASES)
        for index, (title, method) in enumerate(PHASES, start=1):
            print(f"[{index}/{total}] {title}")
            self._log.info("phase %s/%s: %s", index, total, method)
            getattr(self, method)()
            print("")
        return self._report

    def _wait(self, seconds: float, reason: str) -> None:
        if seconds <= 0:
            return
        self._log.info("waiting %.1fs: %s", seconds, reason)
        self._sleep(seconds)

    def activate_links(self) -> None:
        for node in self._topology.routers:
            for ifname in node.link_interfaces:
                self._runtime.exec(node.container, commands.link_up(ifname))
        self._wait(self._timers.link_settle_s, "link settle")
        print("✓ All eth interfaces are up")

    def repair_host_routes(self) -> None:
        for host in self._topology.hosts:
            self._repair_host(host)
        print("✓ Host routes configured")

    def _repair_host(self, host: HostNode) -> None:
        # only the in-container `ip route` failure is tolerated; runtime errors still raise
        self._runtime.exec(host.container, commands.host_route_del_mgmt(host))
        self._runtime.exec(host.container, commands.host_route_add_lab(host))
        self._log.info("%s: default route via %s dev %s", host.name, host.gateway, host.device)

    def configure_interfaces(self) -> None:
        for node in self._topology.routers:
            print(f"Configuring interfaces on {node.name}...")
            for argv in commands.interface_commands(node):
                self._runtime.exec(node.container, argv)
            print(f"✓ Interfaces configured on {node.name}")

    def wait_stabilize(self) -> None:
        self._wait(self._timers.stabilize_s, "interface stabilization")
        print("✓ Interfaces stabilized")

    def enable_daemons(self) -> None:
        for node in self._topology.routers:
            print(f"Enabling bgpd in {node.container}...")
            self._runtime.exec(
                node.container,
                commands.enable_daemon(self._settings.daemons_file, self._settings.daemon_toggle),
            )
            self._runtime.exec(node.container, commands.restart_service(self._settings.frr_service))
            self._wait(self._timers.daemon_restart_s, f"{self._settings.frr_service} restart on {node.name}")

    def configure_peering(self) -> None:
        for node in self._topology.routers:
            self._configure_bgp(node)

    def _configure_bgp(self, node: RouterNode) -> FallbackOutcome:
        print(f"Configuring BGP on {node.name} (AS {node.asn})...")
        result = self._runtime.exec(node.container, commands.bgp_batch(node), check=False)
        for line in suppress_lines(result.output):
            print(line)
        if not result.ok:
            self._log.warning(
                "%s: vtysh batch exited %s, continuing with running config",
                node.name,
                result.returncode,
            )

        outcome = run_with_fallback(
            self._runtime,
            node.container,
            commands.save_attempts(),
            what="save configuration",
            logger=self._log,
        )
        self._report.saves[node.name] = outcome.used
        print(f"✓ Successfully configured {node.name}")
        return outcome

    def wait_convergence(self) -> None:
        self._wait(self._timers.convergence_s, "BGP convergence")

    def verify(self) -> None:
        for node in self._topology.routers:
            print(f"=== {node.container} BGP Summary ===")
            result = self._runtime.exec(node.container, commands.bgp_summary())
            self._report.bgp_summaries[node.name] = result.stdout
            if result.output:
                print(result.output)
            print("")

        for source in self._topology.hosts:
            for target in self._topology.hosts:
                if target is source:
                    continue
                self._report.probes.append(self._probe(source, target))

    def _probe(self, source: HostNode, target: HostNode) -> ProbeResult:
        label = f"{source.name} -> {target.name}"
        print(f"Testing {label} (via {target.address})...")
        result = self._runtime.exec(
            source.container,
            commands.ping(target.address, self._settings.probe_count),
            check=False,
        )
        if result.output:
            print(result.output)
        if result.ok:
            print(f"✓ {label} SUCCESS")
        else:
            print(f"✗ {label} FAILED")
            self._log.warning("probe %s failed with exit %s", label, result.returncode)
        return ProbeResult(
            source=source.name,
            target=target.name,
            address=target.address,
            ok=result.ok,
            output=result.output,
        )
