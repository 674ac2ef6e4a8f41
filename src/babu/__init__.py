from .dsl import dep, requires, met, meet, Declarations, DepBuilder
from .actions import sh
from .config import env_default
from .runner import Engine, run_dep, load_babufile
from .model import Dep, Result

__all__ = [
    "dep",
    "requires",
    "met",
    "meet",
    "sh",
    "env_default",
    "Declarations",
    "DepBuilder",
    "Engine",
    "run_dep",
    "load_babufile",
    "Dep",
    "Result",
]

__version__ = "0.1.0"
