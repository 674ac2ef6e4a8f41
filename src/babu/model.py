# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .actions import Action
from .errors import exit_status


@dataclass
class Dep:
    """
    A dep: a met test + a meet remediation + the deps it requires.

    `requires` holds names as written in the Babufile; they are resolved
    against the registry only when the dep runs.
    """
    name: str
    canonical_id: str
    met: Action
    meet: Action
    requires: Tuple[str, ...] = ()
    args: Tuple = ()

    # Flipped by the engine once the dep has been met in this process
    satisfied: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class Result:
    """Outcome of running one dep."""
    ok: bool
    dep: str
    caused_by: Optional[str] = None
    exit_code: int = 0
    cached: bool = False

    @classmethod
    def success(cls, dep: str, *, cached: bool = False) -> Result:
        return cls(ok=True, dep=dep, cached=cached)

    @classmethod
    def failure(cls, dep: str, exit_code: int, caused_by: Optional[str] = None) -> Result:
        return cls(
            ok=False,
            dep=dep,
            caused_by=caused_by or dep,
            exit_code=exit_status(exit_code) or 1,
        )

    def propagate(self, dep: str) -> Result:
        """Re-attribute a prerequisite failure to the dep that required it."""
        return Result(
            ok=self.ok,
            dep=dep,
            caused_by=self.caused_by,
            exit_code=self.exit_code,
            cached=self.cached,
        )
