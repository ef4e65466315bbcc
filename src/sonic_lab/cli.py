from __future__ import annotations

import argparse
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from sonic_lab.config import DEFAULT_CONFIG_FILE, apply_overrides, load_lab_config
from sonic_lab.io import write_report
from sonic_lab.runtime import CommandError, ContainerRuntime, resolve_runtime_bin
from sonic_lab.sequencer import LabSequencer

BANNER = "=========================================="

log = logging.getLogger("sonic_lab.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Bring up the simple SONiC lab: links, host routes, interfaces, "
            "bgpd, BGP peering, then verify host-to-host connectivity."
        )
    )
    parser.add_argument(
        "--config",
        default="",
        help=f"Lab YAML (topology/timers/sequencer). Default: {DEFAULT_CONFIG_FILE.name}.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--sudo",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Prefix container runtime commands with sudo. Default from config (fallback false).",
    )
    parser.add_argument(
        "--runtime-bin",
        default="",
        help="Container runtime binary. Default: auto-detect docker/podman.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing.")
    parser.add_argument(
        "--probe-count",
        type=int,
        default=None,
        help="Echo requests per connectivity probe (default from config, 3).",
    )
    parser.add_argument(
        "--report-json",
        default="",
        help="Optional path to dump the run report (saves, BGP summaries, probes) as JSON.",
    )
    return parser.parse_args(argv)


def _no_wait(_seconds: float) -> None:
    return None


def print_hints() -> None:
    print("Verification commands:")
    print("  - Check BGP neighbors: docker exec <container> vtysh -c 'show ip bgp summary'")
    print("  - Check BGP routes:    docker exec <container> vtysh -c 'show ip bgp'")
    print("  - Check routing table: docker exec <container> vtysh -c 'show ip route'")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_lab_config(args.config or None)
        settings = apply_overrides(
            cfg.settings,
            use_sudo=args.sudo,
            runtime_bin=str(args.runtime_bin).strip(),
            dry_run=bool(args.dry_run),
            probe_count=args.probe_count,
        )
    except (FileNotFoundError, ValueError) as exc:
        log.error("invalid lab config: %s", exc)
        return 2

    if settings.dry_run:
        runtime_bin = settings.runtime_bin or "docker"
    else:
        try:
            runtime_bin = resolve_runtime_bin(settings.runtime_bin)
        except RuntimeError as exc:
            log.error("%s", exc)
            return 2

    runtime = ContainerRuntime(runtime_bin, use_sudo=settings.use_sudo, dry_run=settings.dry_run)
    sequencer = LabSequencer(
        cfg.topology,
        runtime,
        timers=cfg.timers,
        settings=settings,
        sleep=_no_wait if settings.dry_run else time.sleep,
    )

    print(BANNER)
    print(f"{cfg.topology.name} lab - complete configuration")
    print(BANNER)
    print("")
    try:
        report = sequencer.run()
    except CommandError as exc:
        log.error("aborting, lab left partially configured: %s", exc)
        return 1
    finally:
        if args.report_json:
            write_report(args.report_json, sequencer.report.to_dict())

    print(BANNER)
    print("Configuration Complete!")
    print(BANNER)
    print("")
    print_hints()
    if cfg.topology.hosts:
        first = cfg.topology.hosts[0]
        others = [h for h in cfg.topology.hosts if h is not first]
        if others:
            print(f"  - Test connectivity:   docker exec {first.container} ping {others[0].address}")
    print("")
    log.info(
        "finished at %s, probes ok: %s",
        datetime.now(timezone.utc).isoformat(),
        report.all_probes_ok,
    )
    return 0
