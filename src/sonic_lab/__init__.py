"""Bring-up sequencer for the simple SONiC BGP lab."""

from __future__ import annotations

from sonic_lab.config import LabConfig, SequencerSettings, Timers, load_lab_config
from sonic_lab.runtime import CommandError, CommandResult, ContainerRuntime
from sonic_lab.sequencer import LabReport, LabSequencer, ProbeResult
from sonic_lab.topology import (
    HostNode,
    Interface,
    LabTopology,
    Neighbor,
    RouterNode,
    default_topology,
    load_topology,
)

__all__ = [
    "CommandError",
    "CommandResult",
    "ContainerRuntime",
    "HostNode",
    "Interface",
    "LabConfig",
    "LabReport",
    "LabSequencer",
    "LabTopology",
    "Neighbor",
    "ProbeResult",
    "RouterNode",
    "SequencerSettings",
    "Timers",
    "default_topology",
    "load_lab_config",
    "load_topology",
]
