"""
Root conftest.py: shared Pytest fixtures and configuration.

Provides fixtures for:
- Loggers that capture their formatted lines.
- A ConfigRegistry with the "ZMU" demo configuration.
- Tick scheduler and loopback network for sync tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from zmu.config import ConfigEvent, ConfigRegistry, Configuration, Role
from zmu.logger import Logger
from zmu.scheduler import TickScheduler
from zmu.sync import LoopbackNetwork


# ---------------------------------------------------------------------------
# Logging Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_lines() -> List[str]:
    """Lines emitted by the ``zmu_logger`` fixture."""
    return []


@pytest.fixture
def zmu_logger(log_lines: List[str]) -> Logger:
    """A DEBUG-level logger named ZMU that records its output."""
    return Logger("ZMU", Logger.DEBUG, callback=log_lines.append)


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


def declare_demo_options(config: Configuration) -> Configuration:
    """Declare the BoolTest / FloatTest / IntTest options."""
    config.add("BoolTest", {"type": "boolean", "default": True})
    config.add("FloatTest", {"type": "float", "min": 0.1, "default": 0.6})
    config.add("IntTest", {"type": "integer", "min": 0, "max": 100, "default": 50})
    return config


@pytest.fixture
def registry() -> ConfigRegistry:
    """A host-role registry."""
    return ConfigRegistry(role=Role.HOST)


@pytest.fixture
def config(registry: ConfigRegistry, zmu_logger: Logger) -> Configuration:
    """The "ZMU" configuration with the demo options declared."""
    return declare_demo_options(registry.create("ZMU", zmu_logger))


@pytest.fixture
def recorded_events(registry: ConfigRegistry) -> List[tuple]:
    """Every event fired by the registry's notifier, as (event, *args)."""
    events: List[tuple] = []
    for event in ConfigEvent:
        registry.events.subscribe(
            event, lambda config, *args, _event=event: events.append((_event, *args))
        )
    return events


@pytest.fixture
def ini_path(tmp_path: Path) -> Path:
    """Path for a settings file inside the test's temp directory."""
    return tmp_path / "testing.ini"


# ---------------------------------------------------------------------------
# Sync Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scheduler() -> TickScheduler:
    return TickScheduler()


@pytest.fixture
def network() -> LoopbackNetwork:
    return LoopbackNetwork()


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom Pytest markers."""
    config.addinivalue_line("markers", "persistence: Settings file read/write tests")
    config.addinivalue_line("markers", "sync: Host/remote synchronization tests")
