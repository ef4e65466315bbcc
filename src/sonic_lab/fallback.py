from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Protocol, Sequence, Tuple

from sonic_lab.runtime import CommandResult

UNKNOWN_COMMAND_RE = re.compile(r"Unknown command")

_log = logging.getLogger("sonic_lab.fallback")


class Executor(Protocol):
    def exec(self, container: str, argv: Sequence[str], *, check: bool = True) -> CommandResult: ...


@dataclass(frozen=True)
class FallbackOutcome:
    what: str
    used: Optional[str]
    results: Tuple[CommandResult, ...]

    @property
    def ok(self) -> bool:
        return self.used is not None


def run_with_fallback(
    runtime: Executor,
    container: str,
    attempts: Sequence[Tuple[str, Sequence[str]]],
    *,
    what: str,
    logger: logging.Logger | None = None,
) -> FallbackOutcome:
    """Try each ``(label, argv)`` in order until one exits zero.

    A failed attempt is taken as "unsupported here" and the next one is tried.
    Running out of attempts is only a warning.
    """
    log = logger or _log
    results: List[CommandResult] = []
    for label, argv in attempts:
        result = runtime.exec(container, argv, check=False)
        results.append(result)
        if result.ok:
            log.debug("%s on %s: `%s` succeeded", what, container, label)
            return FallbackOutcome(what=what, used=label, results=tuple(results))
        log.debug("%s on %s: `%s` exited %s", what, container, label, result.returncode)
    log.warning(
        "%s on %s: no variant succeeded (%s)",
        what,
        container,
        ", ".join(label for label, _ in attempts),
    )
    return FallbackOutcome(what=what, used=None, results=tuple(results))


def suppress_lines(text: str, pattern: Pattern[str] = UNKNOWN_COMMAND_RE) -> List[str]:
    return [line for line in text.splitlines() if line.strip() and not pattern.search(line)]
