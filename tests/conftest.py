"""
Shared test fixtures and configurations for pysnaps tests.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pysnaps.context import SnapsContext, default_context
from pysnaps.snap import Snap

pytest_plugins = ["pytester"]


class MockT:
    """Records everything the matcher reports through the test context."""

    def __init__(self, name: str = "mock-name") -> None:
        self._name = name
        self.logs: list[tuple[Any, ...]] = []
        self.errors: list[Any] = []
        self.cleanups: list[Callable[[], None]] = []
        self.skips: list[tuple[Any, ...]] = []

    def helper(self) -> None:
        pass

    def name(self) -> str:
        return self._name

    def log(self, *args: Any) -> None:
        self.logs.append(args)

    def error(self, *args: Any) -> None:
        self.errors.extend(args)

    def cleanup(self, fn: Callable[[], None]) -> None:
        self.cleanups.append(fn)

    def skip(self, *args: Any) -> None:
        self.skips.append(args)

    def skipf(self, format: str, *args: Any) -> None:
        self.skips.append((format % args,))

    def skip_now(self) -> None:
        self.skips.append(())

    def run_cleanups(self) -> None:
        """Play the role of the framework finishing the test."""
        while self.cleanups:
            self.cleanups.pop()()


class FakeEnv:
    """Environment stand-in handed to SnapsContext.getenv."""

    def __init__(self, **values: str) -> None:
        self.values = values

    def __call__(self, name: str) -> str | None:
        return self.values.get(name)


@pytest.fixture(autouse=True)
def reset_default_context() -> None:
    """Ensure the module-level registries are empty between tests."""
    default_context.reset()
    yield
    default_context.reset()


@pytest.fixture
def env() -> FakeEnv:
    return FakeEnv()


@pytest.fixture
def ci() -> dict[str, bool]:
    """Mutable switch read by the context's CI detector."""
    return {"enabled": False}


@pytest.fixture
def context(env: FakeEnv, ci: dict[str, bool]) -> SnapsContext:
    return SnapsContext(is_ci=lambda: ci["enabled"], getenv=env)


@pytest.fixture
def mock_t() -> MockT:
    return MockT()


@pytest.fixture
def make_t() -> Callable[[str], MockT]:
    return MockT


@pytest.fixture
def caller_file(tmp_path: Path) -> Path:
    """Pretend every match call comes from ``<tmp>/test_mock.py``."""
    return tmp_path / "test_mock.py"


@pytest.fixture
def make_snap(context: SnapsContext, caller_file: Path) -> Callable[..., Snap]:
    def factory(t: Any, **config: Any) -> Snap:
        snap = Snap(t, context=context, frame_provider=lambda skip: str(caller_file))
        return snap.with_config(**config) if config else snap

    return factory


@pytest.fixture
def snap_file(tmp_path: Path) -> Path:
    """Default shared snapshot file for ``caller_file``."""
    return tmp_path / "__snapshots__" / "test_mock.snap"
