from __future__ import annotations

import pytest

from babu.dsl import set_declarations
from babu.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def _fresh_globals():
    set_declarations(None)
    set_console(None)
    yield
    set_declarations(None)
    set_console(None)


@pytest.fixture
def console() -> Console:
    return Console(color=False)
