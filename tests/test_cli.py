from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from sonic_lab import cli
from sonic_lab.runtime import CommandError, CommandResult


def test_dry_run_completes_and_writes_report(tmp_path: Path, capsys) -> None:
    report_path = tmp_path / "out" / "report.json"
    rc = cli.main(["--dry-run", "--report-json", str(report_path)])
    assert rc == 0

    out = capsys.readouterr().out
    assert "[1/8] Bring up containerlab eth interfaces" in out
    assert "[8/8] Verify BGP and host connectivity" in out
    assert "Configuration Complete!" in out
    assert "docker exec clab-simple-sonic-host1 ping 192.168.2.10" in out

    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["lab_name"] == "simple-sonic"
    assert report["saves"] == {"sonic1": "write memory", "sonic2": "write memory"}
    assert [p["source"] for p in report["probes"]] == ["host1", "host2"]


def test_missing_config_returns_2(tmp_path: Path) -> None:
    assert cli.main(["--dry-run", "--config", str(tmp_path / "missing.yaml")]) == 2


def test_invalid_topology_returns_2(tmp_path: Path) -> None:
    path = tmp_path / "lab.yaml"
    path.write_text("sequencer:\n  probe_count: 0\n", encoding="utf-8")
    assert cli.main(["--dry-run", "--config", str(path)]) == 2


def test_unexpected_command_failure_returns_1(tmp_path: Path, monkeypatch) -> None:
    seen = []

    class FailingRuntime:
        def __init__(self, binary: str, **kwargs) -> None:  # type: ignore[no-untyped-def]
            seen.append((binary, kwargs))

        def exec(self, container: str, argv: Sequence[str], *, check: bool = True) -> CommandResult:
            result = CommandResult(argv=list(argv), returncode=1, stderr="Cannot find device")
            if check:
                raise CommandError(result)
            return result

    monkeypatch.setattr(cli, "ContainerRuntime", FailingRuntime)
    report_path = tmp_path / "report.json"
    rc = cli.main(["--runtime-bin", "docker", "--sudo", "--report-json", str(report_path)])
    assert rc == 1
    assert seen == [("docker", {"use_sudo": True, "dry_run": False})]
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["probes"] == []


def test_malformed_yaml_returns_2(tmp_path: Path) -> None:
    path = tmp_path / "lab.yaml"
    path.write_text("topology: [unclosed\n", encoding="utf-8")
    assert cli.main(["--dry-run", "--config", str(path)]) == 2


def test_wrong_typed_sections_return_2(tmp_path: Path) -> None:
    path = tmp_path / "lab.yaml"
    for body in (
        "timers: [1, 2]\n",
        "timers:\n  stabilize_s: null\n",
        "topology:\n  routers:\n    - name: r1\n      asn: null\n      neighbor: {address: 10.0.0.1, remote_as: 1}\n",
        "topology:\n  routers: [r1]\n",
    ):
        path.write_text(body, encoding="utf-8")
        assert cli.main(["--dry-run", "--config", str(path)]) == 2, body
