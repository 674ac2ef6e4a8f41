# src/babu/dsl.py
from __future__ import annotations

from typing import Any, Callable, Optional

from .actions import Action, as_action, missing_meet, missing_met
from .errors import DeclarationError
from .model import Dep
from .registry import Registry, canonical_id


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class DepBuilder:
    """
    One dep while it is being declared.

        DepBuilder("branch").requires("git").met("test ...").meet("git ...").build()

    met()/meet() take a shell command string, a callable or an Action.
    Called with a function they also work as decorators.
    """

    def __init__(self, name: str, *args: Any):
        self.name = name
        self.args = tuple(args)
        self._requires: list[str] = []
        self._met: Optional[Action] = None
        self._meet: Optional[Action] = None

    def requires(self, *dep_names: str):
        self._requires.extend(dep_names)
        return self

    def met(self, body):
        self._met = as_action(body)
        return self

    def meet(self, body):
        self._meet = as_action(body)
        return self

    def build(self) -> Dep:
        return Dep(
            name=self.name,
            canonical_id=canonical_id(self.name),
            met=self._met or missing_met(self.name),
            meet=self._meet or missing_meet(self.name),
            requires=tuple(self._requires),
            args=self.args,
        )


# ---------------------------------------------------------------------
# Declaration session (what a Babufile talks to)
# ---------------------------------------------------------------------

class Declarations:
    """
    Sequential declaration protocol.

    dep() opens a new builder and finalizes the previous one; requires(),
    met() and meet() apply to whichever builder is open. finalize() must
    run before execution so the last dep makes it into the registry.
    """

    def __init__(self, registry: Optional[Registry] = None):
        self.registry = registry if registry is not None else Registry()
        self._current: Optional[DepBuilder] = None

    @property
    def current(self) -> Optional[DepBuilder]:
        return self._current

    def dep(self, name: str, *args: Any) -> DepBuilder:
        self.finalize()
        self._current = DepBuilder(name, *args)
        return self._current

    def requires(self, *dep_names: str) -> None:
        self._open("requires").requires(*dep_names)

    def met(self, body):
        self._open("met").met(body)
        return body

    def meet(self, body):
        self._open("meet").meet(body)
        return body

    def finalize(self) -> None:
        if self._current is None:
            return
        builder, self._current = self._current, None
        self.registry.register(builder.build())

    def _open(self, what: str) -> DepBuilder:
        if self._current is None:
            raise DeclarationError(
                kind="definition",
                message=f"{what}() called before any dep() declaration",
            )
        return self._current


# ---------------------------------------------------------------------
# Module-level facade: `from babu import dep, requires, met, meet`
# ---------------------------------------------------------------------

_declarations: Optional[Declarations] = None


def get_declarations() -> Declarations:
    """Get the active declaration session."""
    global _declarations
    if _declarations is None:
        _declarations = Declarations()
    return _declarations


def set_declarations(declarations: Optional[Declarations]) -> None:
    """Set (or clear) the active declaration session."""
    global _declarations
    _declarations = declarations


def dep(name: str, *args: Any) -> DepBuilder:
    """Start declaring a dep; finishes the one declared before it."""
    return get_declarations().dep(name, *args)


def requires(*dep_names: str) -> None:
    """Add prerequisites to the dep being declared (appends, in order)."""
    get_declarations().requires(*dep_names)


def met(body: str | Action | Callable[..., Any]):
    """
    Set the test of the dep being declared.

        met("command -v git")

        @met
        def _():
            return Path("~/.gitconfig").expanduser().exists()
    """
    return get_declarations().met(body)


def meet(body: str | Action | Callable[..., Any]):
    """Set the remediation of the dep being declared (same forms as met)."""
    return get_declarations().meet(body)
