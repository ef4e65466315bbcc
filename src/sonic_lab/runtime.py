from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Sequence

RUNTIME_CANDIDATES = ("docker", "podman")


@dataclass(frozen=True)
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        parts = [part.strip() for part in (self.stdout, self.stderr) if part and part.strip()]
        return "\n".join(parts)


class CommandError(RuntimeError):
    def __init__(self, result: CommandResult) -> None:
        self.result = result
        super().__init__(
            f"Command failed ({result.returncode}): {shlex.join(result.argv)}\n{result.output}".rstrip()
        )


def resolve_runtime_bin(preferred: str = "") -> str:
    if preferred:
        return preferred
    for candidate in RUNTIME_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
    raise RuntimeError("Cannot find `docker` or `podman` in PATH.")


def with_sudo(cmd: List[str], use_sudo: bool) -> List[str]:
    if use_sudo:
        return ["sudo", *cmd]
    return cmd


class ContainerRuntime:
    """Runs commands inside lab containers through `<runtime> exec`.

    Every call blocks until the command exits. With ``check=True`` a non-zero
    exit raises :class:`CommandError`; otherwise the result is returned and the
    caller decides whether the failure is tolerable.
    """

    def __init__(
        self,
        binary: str = "docker",
        *,
        use_sudo: bool = False,
        dry_run: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._binary = binary
        self._use_sudo = use_sudo
        self._dry_run = dry_run
        self._log = logger or logging.getLogger("sonic_lab.runtime")

    def command_for(self, container: str, argv: Sequence[str]) -> List[str]:
        return with_sudo([self._binary, "exec", container, *argv], self._use_sudo)

    def exec(self, container: str, argv: Sequence[str], *, check: bool = True) -> CommandResult:
        cmd = self.command_for(container, argv)
        if self._dry_run:
            self._log.info("dry-run: %s", shlex.join(cmd))
            return CommandResult(argv=cmd, returncode=0)

        self._log.debug("exec: %s", shlex.join(cmd))
        proc = subprocess.run(
            cmd,
            check=False,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        result = CommandResult(
            argv=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if not result.ok:
            self._log.debug("exit %s: %s", result.returncode, shlex.join(cmd))
            if check:
                raise CommandError(result)
        return result
