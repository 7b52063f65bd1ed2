"""End-to-end tests of the pytest plugin."""

import pytest

from pysnaps.config import CI_ENV_VARS
from pysnaps.context import default_context


@pytest.fixture
def run(pytester, monkeypatch):
    for name in CI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("UPDATE_SNAPS", raising=False)

    def runner(*args):
        default_context.reset()
        return pytester.runpytest_inprocess(*args)

    return runner


def test_fixture_creates_then_matches(pytester, run):
    pytester.makepyfile(
        test_flow_render="""
        def test_page(snaps):
            snaps.match_snapshot("hello", 10)

        class TestGroup:
            def test_nested(self, snaps):
                snaps.match_snapshot("nested")
        """
    )

    first = run()
    first.assert_outcomes(passed=2)
    first.stdout.fnmatch_lines(["*Snapshot Summary*", "*2 snapshots added*"])

    snap = pytester.path / "__snapshots__" / "test_flow_render.snap"
    assert snap.read_text() == (
        "\n[test_page - 1]\nhello\nint(10)\n---\n"
        "\n[TestGroup/test_nested - 1]\nnested\n---\n"
    )

    second = run()
    second.assert_outcomes(passed=2)
    second.stdout.fnmatch_lines(["*2 snapshots passed*"])


def test_mismatch_fails_the_test(pytester, run):
    pytester.makepyfile(
        test_flow_mismatch="def test_value(snaps):\n    snaps.match_snapshot('new')\n"
    )
    snaps_dir = pytester.path / "__snapshots__"
    snaps_dir.mkdir()
    (snaps_dir / "test_flow_mismatch.snap").write_text("\n[test_value - 1]\nold\n---\n")

    result = run()

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(["*- Snapshot - 1*", "*+ Received + 1*", "*- old*", "*+ new*"])


def test_update_env_rewrites(pytester, run, monkeypatch):
    pytester.makepyfile(
        test_flow_update="def test_value(snaps):\n    snaps.match_snapshot('new')\n"
    )
    snaps_dir = pytester.path / "__snapshots__"
    snaps_dir.mkdir()
    (snaps_dir / "test_flow_update.snap").write_text("\n[test_value - 1]\nold\n---\n")
    monkeypatch.setenv("UPDATE_SNAPS", "true")

    run().assert_outcomes(passed=1)

    assert (snaps_dir / "test_flow_update.snap").read_text() == "\n[test_value - 1]\nnew\n---\n"


def test_obsolete_entries_are_reported(pytester, run):
    pytester.makepyfile(test_flow_obsolete="def test_kept(snaps):\n    snaps.match_snapshot('x')\n")
    snaps_dir = pytester.path / "__snapshots__"
    snaps_dir.mkdir()
    (snaps_dir / "test_flow_obsolete.snap").write_text(
        "\n[test_kept - 1]\nx\n---\n\n[test_removed - 1]\ny\n---\n"
    )

    result = run()

    result.assert_outcomes(passed=1)
    result.stdout.fnmatch_lines(
        ["*1 snapshot test obsolete*", "*test_removed - 1*", "*UPDATE_SNAPS=clean pytest*"]
    )


def test_parametrized_names_and_skip(pytester, run):
    pytester.makepyfile(
        test_flow_params="""
        import pytest

        @pytest.mark.parametrize("n", [1, 2])
        def test_square(snaps, n):
            snaps.match_snapshot(n * n)

        def test_later(snaps):
            snaps.skip("not yet")
        """
    )

    result = run("--snaps-sort")

    result.assert_outcomes(passed=2, skipped=1)
    result.stdout.fnmatch_lines(["*1 snapshot skipped*"])
    assert (pytester.path / "__snapshots__" / "test_flow_params.snap").read_text() == (
        "\n[test_square[1] - 1]\nint(1)\n---\n"
        "\n[test_square[2] - 1]\nint(4)\n---\n"
    )


def _snapshots(pytester):
    return {path.name: path.read_text() for path in (pytester.path / "__snapshots__").iterdir()}


@pytest.fixture
def two_modules(pytester, run):
    """Three snapshots across two modules, all created by a full run."""
    pytester.makepyfile(
        test_flow_sel_one="""
        def test_a(snaps):
            snaps.match_snapshot("a")

        def test_b(snaps):
            snaps.match_snapshot("b")
        """,
        test_flow_sel_two="""
        def test_c(snaps):
            snaps.match_snapshot("c")
        """,
    )
    run().assert_outcomes(passed=3)
    return _snapshots(pytester)


def test_keyword_selection_keeps_unselected_snapshots(pytester, run, monkeypatch, two_modules):
    monkeypatch.setenv("UPDATE_SNAPS", "true")

    result = run("-k", "test_a")

    result.assert_outcomes(passed=1, deselected=2)
    result.stdout.no_fnmatch_line("*obsolete*")
    result.stdout.no_fnmatch_line("*removed*")
    assert _snapshots(pytester) == two_modules
    assert "[test_b - 1]" in two_modules["test_flow_sel_one.snap"]


def test_node_id_selection_keeps_unselected_snapshots(pytester, run, monkeypatch, two_modules):
    monkeypatch.setenv("UPDATE_SNAPS", "clean")

    result = run("test_flow_sel_one.py::test_a")

    result.assert_outcomes(passed=1)
    assert _snapshots(pytester) == two_modules


def test_module_selection_keeps_other_modules(pytester, run, monkeypatch, two_modules):
    monkeypatch.setenv("UPDATE_SNAPS", "clean")

    run("test_flow_sel_two.py").assert_outcomes(passed=1)

    assert _snapshots(pytester) == two_modules


def test_full_run_still_removes_orphans(pytester, run, monkeypatch, two_modules):
    snaps_dir = pytester.path / "__snapshots__"
    (snaps_dir / "test_flow_deleted.snap").write_text("\n[test_x - 1]\nx\n---\n")
    monkeypatch.setenv("UPDATE_SNAPS", "clean")

    result = run()

    result.assert_outcomes(passed=3)
    result.stdout.fnmatch_lines(["*1 snapshot file removed*", "*test_flow_deleted.snap*"])
    assert _snapshots(pytester) == two_modules


def test_early_stop_does_not_clean(pytester, run, monkeypatch):
    pytester.makepyfile(
        test_flow_stop="""
        def test_fails(snaps):
            assert False

        def test_kept(snaps):
            snaps.match_snapshot("kept")
        """
    )
    snaps_dir = pytester.path / "__snapshots__"
    snaps_dir.mkdir()
    content = "\n[test_kept - 1]\nkept\n---\n\n[test_gone - 1]\nx\n---\n"
    (snaps_dir / "test_flow_stop.snap").write_text(content)
    monkeypatch.setenv("UPDATE_SNAPS", "clean")

    result = run("-x")

    result.assert_outcomes(failed=1)
    result.stdout.no_fnmatch_line("*removed*")
    assert (snaps_dir / "test_flow_stop.snap").read_text() == content


def test_repetition_ids_stay_live(pytester, run, monkeypatch):
    pytester.makepyfile(
        test_flow_repeat="""
        import pytest

        @pytest.mark.parametrize("rep", ["1-2", "2-2"])
        def test_a(snaps, rep):
            snaps.match_snapshot("same")
        """
    )
    run().assert_outcomes(passed=2)
    created = _snapshots(pytester)

    monkeypatch.setenv("UPDATE_SNAPS", "true")
    result = run()

    result.assert_outcomes(passed=2)
    result.stdout.no_fnmatch_line("*removed*")
    assert _snapshots(pytester) == created
    assert created["test_flow_repeat.snap"] == (
        "\n[test_a[1-2] - 1]\nsame\n---\n\n[test_a[2-2] - 1]\nsame\n---\n"
    )
