import sys
from pathlib import Path
from typing import Iterable

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from shoal.rng import RandomSource  # noqa: E402


class ScriptedRng(RandomSource):
    """Replays fixed values, then keeps returning ``default``.

    The default of 0.99 never triggers drift or a breakaway onset.
    """

    def __init__(self, values: Iterable[float] = (), default: float = 0.99):
        super().__init__(0)
        self._values = list(values)
        self._default = default

    def next_float(self) -> float:
        if self._values:
            return self._values.pop(0)
        return self._default


@pytest.fixture
def scripted_rng():
    return ScriptedRng


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-config-tests",
        action="store_true",
        default=False,
        help="run tests that are intended only for configuration changes",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "config_change: marks tests that should only run when configuration files change",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-config-tests"):
        return

    skip_marker = pytest.mark.skip(
        reason="Run only when configuration is modified (use --run-config-tests)",
    )

    for item in items:
        if "config_change" in item.keywords:
            item.add_marker(skip_marker)
