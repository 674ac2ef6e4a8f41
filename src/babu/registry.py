# registry.py
from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional

from .model import Dep

CANONICAL_PREFIX = "dep__"
CANONICAL_SEPARATOR = "_x_"

_UNSAFE = re.compile(r"[^A-Za-z0-9]")


def canonical_id(name: str) -> str:
    """
    Map a free-form dep name to the key it is stored under.

    Every character outside [A-Za-z0-9] becomes the same separator, so
    "a b", "a-b" and "a.b" all collide on "dep__a_x_b". Colliding
    declarations are not detected: the last one wins.
    """
    return CANONICAL_PREFIX + _UNSAFE.sub(CANONICAL_SEPARATOR, name)


class Registry:
    """All declared deps, keyed by canonical id."""

    def __init__(self) -> None:
        self._deps: Dict[str, Dep] = {}

    def register(self, dep: Dep) -> None:
        # Re-inserting moves a replaced id to the end, matching declaration order
        self._deps.pop(dep.canonical_id, None)
        self._deps[dep.canonical_id] = dep

    def lookup(self, dep_id: str) -> Optional[Dep]:
        return self._deps.get(dep_id)

    def find(self, name: str) -> Optional[Dep]:
        return self.lookup(canonical_id(name))

    def names(self) -> List[str]:
        return [d.name for d in self]

    def __iter__(self) -> Iterator[Dep]:
        return iter(list(self._deps.values()))

    def __len__(self) -> int:
        return len(self._deps)
