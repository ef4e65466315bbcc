from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sonic_lab.io import load_yaml
from sonic_lab.topology import LabTopology, default_topology, topology_from_dict

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_FILE = REPO_ROOT / "configs" / "simple-sonic.yaml"


@dataclass(frozen=True)
class Timers:
    link_settle_s: float = 2.0
    stabilize_s: float = 5.0
    daemon_restart_s: float = 3.0
    convergence_s: float = 30.0


@dataclass(frozen=True)
class SequencerSettings:
    runtime_bin: str = ""
    use_sudo: bool = False
    dry_run: bool = False
    probe_count: int = 3
    daemons_file: str = "/etc/frr/daemons"
    frr_service: str = "frr"
    daemon_toggle: Tuple[str, str] = ("bgpd=no", "bgpd=yes")


@dataclass(frozen=True)
class LabConfig:
    topology: LabTopology = field(default_factory=default_topology)
    timers: Timers = field(default_factory=Timers)
    settings: SequencerSettings = field(default_factory=SequencerSettings)


def _non_negative(value: Any, name: str) -> float:
    out = float(value)
    if out < 0:
        raise ValueError(f"timers.{name} must be >= 0")
    return out


def timers_from_dict(raw: Dict[str, Any]) -> Timers:
    base = Timers()
    return Timers(
        link_settle_s=_non_negative(raw.get("link_settle_s", base.link_settle_s), "link_settle_s"),
        stabilize_s=_non_negative(raw.get("stabilize_s", base.stabilize_s), "stabilize_s"),
        daemon_restart_s=_non_negative(
            raw.get("daemon_restart_s", base.daemon_restart_s), "daemon_restart_s"
        ),
        convergence_s=_non_negative(raw.get("convergence_s", base.convergence_s), "convergence_s"),
    )


def settings_from_dict(raw: Dict[str, Any]) -> SequencerSettings:
    base = SequencerSettings()
    toggle = raw.get("daemon_toggle", base.daemon_toggle)
    if not isinstance(toggle, (list, tuple)) or len(toggle) != 2:
        raise ValueError("sequencer.daemon_toggle must be a [disabled, enabled] pair")
    probe_count = int(raw.get("probe_count", base.probe_count))
    if probe_count < 1:
        raise ValueError("sequencer.probe_count must be >= 1")
    return SequencerSettings(
        runtime_bin=str(raw.get("runtime_bin", base.runtime_bin) or ""),
        use_sudo=bool(raw.get("sudo", base.use_sudo)),
        dry_run=bool(raw.get("dry_run", base.dry_run)),
        probe_count=probe_count,
        daemons_file=str(raw.get("daemons_file", base.daemons_file)),
        frr_service=str(raw.get("frr_service", base.frr_service)),
        daemon_toggle=(str(toggle[0]), str(toggle[1])),
    )


def load_lab_config(path: str | Path | None = None) -> LabConfig:
    if path is None:
        if not DEFAULT_CONFIG_FILE.is_file():
            return LabConfig()
        path = DEFAULT_CONFIG_FILE
    config_path = Path(path).expanduser().resolve()
    if not config_path.is_file():
        raise FileNotFoundError(f"lab config not found: {config_path}")

    raw = load_yaml(config_path)
    sections = {key: raw.get(key) or {} for key in ("topology", "timers", "sequencer")}
    for key, value in sections.items():
        if not isinstance(value, dict):
            raise ValueError(f"`{key}` must be a mapping in {config_path}")
    try:
        return LabConfig(
            topology=topology_from_dict(sections["topology"]) if sections["topology"] else default_topology(),
            timers=timers_from_dict(sections["timers"]),
            settings=settings_from_dict(sections["sequencer"]),
        )
    except TypeError as exc:
        raise ValueError(f"malformed lab config {config_path}: {exc}") from exc


def apply_overrides(
    settings: SequencerSettings,
    *,
    use_sudo: Optional[bool] = None,
    runtime_bin: str = "",
    dry_run: bool = False,
    probe_count: Optional[int] = None,
) -> SequencerSettings:
    out = settings
    if use_sudo is not None:
        out = replace(out, use_sudo=bool(use_sudo))
    if runtime_bin:
        out = replace(out, runtime_bin=runtime_bin)
    if dry_run:
        out = replace(out, dry_run=True)
    if probe_count is not None:
        if probe_count < 1:
            raise ValueError("--probe-count must be >= 1")
        out = replace(out, probe_count=int(probe_count))
    return out
