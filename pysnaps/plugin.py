"""
pytest integration.

Registered through the ``pytest11`` entry point. Provides the ``snaps``
fixture, the ``--snaps-run``/``--snaps-sort`` options and the end-of-session
obsolescence report.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from .clean import clean, summary
from .context import default_context
from .skip import RunSelection
from .snap import Snap

logger = logging.getLogger(__name__)

_errors_key = pytest.StashKey[list[str]]()
_summary_key = pytest.StashKey[str]()
_deselected_key = pytest.StashKey[list[pytest.Item]]()


def _render(args: tuple[Any, ...]) -> str:
    return " ".join(str(arg) for arg in args)


def node_test_name(nodeid: str) -> str:
    """``tests/test_user.py::TestUser::test_save[1]`` -> ``TestUser/test_save[1]``."""
    return "/".join(nodeid.split("::")[1:])


class PytestTestingT:
    """Adapts a pytest ``request`` to the test-context protocol."""

    def __init__(self, request: pytest.FixtureRequest) -> None:
        self.request = request
        self.node = request.node

    def helper(self) -> None:
        pass

    def name(self) -> str:
        return node_test_name(self.node.nodeid)

    def log(self, *args: Any) -> None:
        logger.info("%s: %s", self.name(), _render(args))

    def error(self, *args: Any) -> None:
        self.node.stash.setdefault(_errors_key, []).append(_render(args))

    def cleanup(self, fn: Callable[[], None]) -> None:
        self.request.addfinalizer(fn)

    def skip(self, *args: Any) -> None:
        pytest.skip(_render(args))

    def skipf(self, format: str, *args: Any) -> None:
        pytest.skip(format % args if args else format)

    def skip_now(self) -> None:
        pytest.skip()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("pysnaps", "snapshot testing")
    group.addoption(
        "--snaps-run",
        action="store",
        default="",
        metavar="REGEX",
        help="Only consider snapshots of tests matching REGEX when looking for obsolete ones.",
    )
    group.addoption(
        "--snaps-sort",
        action="store_true",
        default=False,
        help="Rewrite snapshot files with their entries in natural order.",
    )


@pytest.fixture
def snaps(request: pytest.FixtureRequest) -> Snap:
    """Snapshot matcher bound to the running test."""
    return Snap(PytestTestingT(request))


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item: pytest.Item) -> Generator[None, Any, Any]:
    result = yield
    errors = item.stash.get(_errors_key, [])
    if errors:
        pytest.fail("\n".join(errors), pytrace=False)
    return result


def pytest_deselected(items: list[pytest.Item]) -> None:
    if items:
        items[0].config.stash.setdefault(_deselected_key, []).extend(items)


def _resolved(path: str | Path) -> str:
    return str(Path(path).resolve())


def _run_selection(session: pytest.Session) -> RunSelection:
    """Describe which tests of the suite this session selected."""
    config = session.config
    deselected = config.stash.get(_deselected_key, [])
    invocation_dir = config.invocation_params.dir
    # "path::name" arguments collect only part of a module
    narrowed = {
        _resolved(invocation_dir / arg.split("::")[0]) for arg in config.args if "::" in arg
    }

    modules = {_resolved(item.path) for item in session.items}
    modules.difference_update(_resolved(item.path) for item in deselected)
    modules.difference_update(narrowed)

    return RunSelection(
        selected={node_test_name(item.nodeid) for item in session.items},
        deselected={node_test_name(item.nodeid) for item in deselected},
        complete_modules=modules,
        narrowed=bool(narrowed),
    )


def _stopped_early(session: pytest.Session, exitstatus: int | pytest.ExitCode) -> bool:
    # --maxfail and -x set shouldfail; Ctrl-C and collection errors interrupt
    if session.shouldfail or session.shouldstop:
        return True
    return exitstatus == pytest.ExitCode.INTERRUPTED


def pytest_sessionfinish(session: pytest.Session, exitstatus: int | pytest.ExitCode) -> None:
    config = session.config
    # only the controlling process sees every test under pytest-xdist
    if hasattr(config, "workerinput"):
        return

    if _stopped_early(session, exitstatus):
        logger.info("Session stopped early, not looking for obsolete snapshots")
        config.stash[_summary_key] = summary(
            [], [], len(default_context.skipped), default_context.events, should_update=False
        )
        return

    # pytest-repeat gives every repetition its own node id, so counters are never divided
    result = clean(
        run_only=config.getoption("snaps_run", default=""),
        sort=config.getoption("snaps_sort", default=False),
        context=default_context,
        selection=_run_selection(session),
    )
    config.stash[_summary_key] = result.summary


def pytest_terminal_summary(terminalreporter: Any, config: pytest.Config) -> None:
    text = config.stash.get(_summary_key, "")
    if text:
        terminalreporter.write(text)


__all__ = ["PytestTestingT", "snaps"]
