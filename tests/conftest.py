import asyncio
import inspect
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from prometheus_client import CollectorRegistry  # noqa: E402


def pytest_configure(config):
    """Register compatibility markers and defaults."""

    config.addinivalue_line("markers", "asyncio: mark a test as requiring the event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute ``async`` tests using a minimal event loop implementation."""

    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    signature = inspect.signature(testfunction)
    call_args = {
        name: value for name, value in pyfuncitem.funcargs.items() if name in signature.parameters
    }

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(testfunction(**call_args))
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()

    return True


@pytest.fixture
def registry():
    """Fresh registry so gauges never leak between tests."""
    return CollectorRegistry()


def make_allocation(name="my-cluster", properties=None, **numbers):
    """JSON object for one allocation, zero everywhere unless overridden."""
    allocation = {
        "name": name,
        "properties": properties if properties is not None else {"cluster": name},
        "window": {"start": "1970-01-01T01:32:00Z", "end": "1970-01-01T01:33:00Z"},
        "start": "1970-01-01T01:32:00Z",
        "end": "1970-01-01T01:33:00Z",
    }
    allocation.update(numbers)
    return allocation


@pytest.fixture
def allocation_factory():
    return make_allocation


@pytest.fixture
def config_dir(tmp_path):
    """Directory holding a minimal default.yaml."""
    directory = tmp_path / "configs"
    directory.mkdir()
    (directory / "default.yaml").write_text(
        """
api:
  host: kubecost.local
  port: 9003
  path: /allocation/compute
  parameters:
    window: 1m
    aggregate: namespace
server:
  port: 9101
  path: /metrics
  update_interval: 1m
metrics:
  namespace: kubecost
  subsystem: allocation
  names:
    - name: total_cost
      field: TotalCost
  labels:
    - name: namespace
      key: namespace
""",
        encoding="utf-8",
    )
    return directory
