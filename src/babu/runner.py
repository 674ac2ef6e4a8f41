# runner.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Dict, List, Optional

from .actions import ActionResult
from .dsl import Declarations, get_declarations, set_declarations
from .errors import EXIT_CYCLE, EXIT_FAILURE, EXIT_UNKNOWN_DEP, BabuError
from .model import Dep, Result
from .registry import Registry, canonical_id
from .ui.console import Console, get_console

# How many times meet may run for a single run() of a dep
MAX_MEET_ATTEMPTS = 1


# ----------------------------------------------------------------------
# Babufile loading
# ----------------------------------------------------------------------

def find_babufile(directory: str | Path = ".", filename: str = "Babufile") -> Path:
    """
    Locate the Babufile.

    `filename` may be absolute, or relative to `directory`.
    """
    root = Path(directory).expanduser().resolve()
    path = (root / Path(filename).expanduser()).resolve()
    if not path.is_file():
        raise BabuError(
            kind="startup",
            message=f"{Path(filename).name} not found in {root}",
            details={"path": str(path)},
        )
    return path


def load_babufile(path: str | Path) -> Declarations:
    """
    Execute a Babufile and return the deps it declared.

    The file runs against a fresh declaration session, so module-level
    dep()/requires()/met()/meet() calls inside it land in the returned
    Declarations. The session is finalized before it is returned.
    """
    bf_path = Path(path).expanduser().resolve()
    if not bf_path.exists():
        raise BabuError(kind="startup", message=f"Babufile not found: {bf_path}")

    declarations = Declarations()
    previous = get_declarations()
    set_declarations(declarations)
    try:
        runpy.run_path(str(bf_path), run_name=f"babufile_{bf_path.stem}")
    except BabuError:
        raise
    except Exception as e:
        raise BabuError(
            kind="definition",
            message=f"error while loading {bf_path.name}: {e}",
            details={"path": str(bf_path), "error_type": type(e).__name__},
        ) from e
    finally:
        set_declarations(previous)

    declarations.finalize()
    return declarations


# ----------------------------------------------------------------------
# Execution engine
# ----------------------------------------------------------------------

class Engine:
    """
    Depth-first dep runner.

    run(name) satisfies the dep's requirements in declared order, then
    tests it, runs meet at most MAX_MEET_ATTEMPTS times and re-tests. A dep
    that gets met is remembered for the rest of the process and reported
    as "(cached)" when required again.
    """

    def __init__(
        self,
        registry: Registry,
        console: Optional[Console] = None,
        *,
        env: Optional[Dict[str, str]] = None,
        max_meet_attempts: int = MAX_MEET_ATTEMPTS,
    ):
        self.registry = registry
        self.console = console or get_console()
        self.env = dict(env or {})
        self.max_meet_attempts = max_meet_attempts
        self._stack: List[str] = []

    def run(self, name: str) -> Result:
        dep = self.registry.lookup(canonical_id(name))
        if dep is None:
            self.console.print_error(f"unknown dep: {name}")
            return Result.failure(name, EXIT_UNKNOWN_DEP)

        if dep.satisfied:
            self.console.print_cached(dep.name)
            return Result.success(dep.name, cached=True)

        if dep.canonical_id in self._stack:
            return self._cycle(dep)

        self._stack.append(dep.canonical_id)
        try:
            return self._run_dep(dep)
        finally:
            self._stack.pop()

    # ---- internals ----

    def _run_dep(self, dep: Dep) -> Result:
        self.console.enter_section(dep.name)
        try:
            result = self._converge(dep)
        except BaseException:
            # Ctrl-C or a crash mid-dep still closes the section
            self.console.exit_section(dep.name, ok=False)
            raise
        self.console.exit_section(dep.name, ok=result.ok)
        return result

    def _converge(self, dep: Dep) -> Result:
        failed = self._satisfy_requirements(dep)
        if failed is not None:
            return failed.propagate(dep.name)

        attempts_left = self.max_meet_attempts
        while True:
            test = self._run_action(dep, "met")
            if test.ok:
                dep.satisfied = True
                return Result.success(dep.name)

            if attempts_left <= 0:
                return Result.failure(dep.name, test.exit_code or EXIT_FAILURE)

            self.console.enter_section("meet")
            try:
                fix = self._run_action(dep, "meet")
            except BaseException:
                self.console.exit_section(ok=False)
                raise
            self.console.exit_section(ok=fix.ok)
            attempts_left -= 1

    def _satisfy_requirements(self, dep: Dep) -> Optional[Result]:
        """Run each required dep in order; return the first failure, if any."""
        for required in dep.requires:
            result = self.run(required)
            if not result.ok:
                return result
        return None

    def _run_action(self, dep: Dep, which: str) -> ActionResult:
        action = dep.met if which == "met" else dep.meet
        self.console.print_debug(f"{dep.name}: {which} -> {action!r}")
        result = action.run(dep.args, on_line=self.console.print_output, env=self.env)
        self.console.print_debug(f"{dep.name}: {which} exited {result.exit_code}")
        return result

    def _cycle(self, dep: Dep) -> Result:
        start = self._stack.index(dep.canonical_id)
        chain = [self.registry.lookup(i).name for i in self._stack[start:]]
        chain.append(dep.name)
        self.console.print_error(f"cyclic dependency: {' -> '.join(chain)}")
        return Result.failure(dep.name, EXIT_CYCLE)


def run_dep(
    declarations: Declarations,
    name: str,
    console: Optional[Console] = None,
    *,
    env: Optional[Dict[str, str]] = None,
) -> Result:
    """Finalize the declaration session and run one root dep."""
    declarations.finalize()
    return Engine(declarations.registry, console, env=env).run(name)
