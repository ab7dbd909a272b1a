"""booker-scenarios - end-to-end scenario checks for the restful-booker API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("booker-scenarios")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

from .main import main
from .runner import ScenarioReport, ScenarioRunner, run_scenario
from .state import SessionState

__all__ = [
    "main",
    "run_scenario",
    "ScenarioRunner",
    "ScenarioReport",
    "SessionState",
    "__version__",
]
