from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BABUFILE = "Babufile"
DEFAULT_DEP = "default"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    babufile: str = DEFAULT_BABUFILE
    debug: bool = False
    color: Optional[bool] = None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read BABU_FILE, BABU_DEBUG and NO_COLOR."""
    env = os.environ if environ is None else environ
    return Settings(
        babufile=env.get("BABU_FILE") or DEFAULT_BABUFILE,
        debug=env.get("BABU_DEBUG", "").strip().lower() in _TRUTHY,
        color=False if env.get("NO_COLOR") else None,
    )


def env_default(**values: object) -> None:
    """
    Give environment variables a default from a Babufile.

        env_default(BRANCH="main")

    Values already present in the environment are left alone. Everything
    in os.environ is passed through to met/meet bodies.
    """
    for name, value in values.items():
        os.environ.setdefault(name, str(value))
