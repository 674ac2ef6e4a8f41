# errors.py
from __future__ import annotations

from dataclasses import dataclass, field

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_STARTUP = 2
EXIT_UNKNOWN_DEP = 3
EXIT_CYCLE = 4
EXIT_INTERRUPTED = 130


@dataclass
class BabuError(Exception):
    """
    Structured error raised before any dep runs, with enough context for
    clean CLI output without a traceback.

    kind is one of "startup" (no Babufile) or "definition" (the Babufile
    itself is broken).
    """
    kind: str
    message: str
    details: dict = field(default_factory=dict)
    exit_code: int = EXIT_STARTUP

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class DeclarationError(BabuError):
    """requires()/met()/meet() used outside a dep() declaration."""


def exit_status(code: int) -> int:
    """
    Fold a met/meet status into something a process can exit with.

    Negative codes (a child killed by signal N) become 128 + N, the way a
    shell reports them. Anything else is truncated to 0..255; a non-zero
    code that truncates to 0 becomes EXIT_FAILURE so a failure never
    turns into success.
    """
    if code == 0:
        return EXIT_OK
    if code < 0:
        return 128 + (-code & 0x7F)
    return code & 0xFF or EXIT_FAILURE
