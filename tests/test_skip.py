"""Tests for skip tracking and run filter handling."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from pysnaps.skip import RunSelection, SkipTracker, is_file_skipped, is_test_skipped


class TestIsTestSkipped:
    @pytest.mark.parametrize(
        "test_id, skipped, expected",
        [
            ("TestUser - 1", ["TestUser"], True),
            ("TestUser/test_save - 2", ["TestUser"], True),
            ("TestUserAdmin - 1", ["TestUser"], False),
            ("TestUser/test_save - 1", ["TestUser/test_save"], True),
            ("TestUser/test_load - 1", ["TestUser/test_save"], False),
            ("test_x[a - b] - 1", ["test_x[a - b]"], True),
            ("test_x[a - c] - 1", ["test_x[a - b]"], False),
        ],
    )
    def test_skip_set(self, test_id, skipped, expected):
        assert is_test_skipped(test_id, "", skipped) is expected

    def test_run_filter(self):
        assert not is_test_skipped("test_alpha - 1", "alpha", [])
        assert is_test_skipped("test_beta - 1", "alpha", [])
        assert not is_test_skipped("test_beta - 1", "", [])

    def test_invalid_run_filter_excludes_everything(self):
        assert is_test_skipped("test_alpha - 1", "(unclosed", [])


class TestIsFileSkipped:
    @pytest.fixture
    def snaps_dir(self, tmp_path):
        (tmp_path / "test_users.py").write_text(
            "class TestUsers:\n"
            "    def test_save(self):\n"
            "        pass\n"
            "\n"
            "async def test_async_load():\n"
            "    pass\n"
        )
        return tmp_path / "__snapshots__"

    def test_no_filter_never_skips(self, snaps_dir):
        assert not is_file_skipped(snaps_dir, "test_users.snap", "")

    @pytest.mark.parametrize("run_only", ["TestUsers", "test_save", "async_load", "^test_"])
    def test_selected_module_is_not_skipped(self, snaps_dir, run_only):
        assert not is_file_skipped(snaps_dir, "test_users.snap", run_only)

    def test_unselected_module_is_skipped(self, snaps_dir):
        assert is_file_skipped(snaps_dir, "test_users.snap", "test_delete")

    def test_extension_suffix_is_ignored(self, snaps_dir):
        assert is_file_skipped(snaps_dir, "test_users.snap.txt", "test_delete")

    def test_missing_module_is_not_skipped(self, snaps_dir):
        assert not is_file_skipped(snaps_dir, "test_gone.snap", "test_delete")

    def test_unparsable_module_is_not_skipped(self, tmp_path):
        (tmp_path / "test_broken.py").write_text("def broken(:\n")

        assert not is_file_skipped(tmp_path / "__snapshots__", "test_broken.snap", "x")


class TestRunSelection:
    """Tests pytest did not select are never obsolete."""

    @pytest.fixture
    def module(self, tmp_path):
        path = tmp_path / "test_users.py"
        path.write_text("def test_save():\n    pass\n")
        return path

    def test_deselected_tests_are_skipped(self):
        selection = RunSelection(selected={"test_a"}, deselected={"test_b", "TestC"})

        assert not is_test_skipped("test_a - 1", "", [], selection)
        assert is_test_skipped("test_b - 1", "", [], selection)
        assert is_test_skipped("TestC/test_d - 2", "", [], selection)

    def test_removed_tests_stay_obsolete_in_a_complete_run(self):
        selection = RunSelection(selected={"test_a"})

        assert not is_test_skipped("test_removed - 1", "", [], selection)

    def test_narrowed_run_skips_everything_unselected(self):
        selection = RunSelection(selected={"test_x[a - b]"}, narrowed=True)

        assert not is_test_skipped("test_x[a - b] - 1", "", [], selection)
        assert is_test_skipped("test_removed - 1", "", [], selection)

    def test_module_not_run_in_full_is_skipped(self, module):
        snaps_dir = module.parent / "__snapshots__"

        assert is_file_skipped(snaps_dir, "test_users.snap", "", RunSelection())

    def test_module_run_in_full_is_not_skipped(self, module):
        selection = RunSelection(complete_modules={str(module.resolve())})

        snaps_dir = module.parent / "__snapshots__"

        assert not is_file_skipped(snaps_dir, "test_users.snap", "", selection)

    def test_orphan_files_are_not_skipped(self, tmp_path):
        assert not is_file_skipped(tmp_path / "__snapshots__", "test_gone.snap", "", RunSelection())


def test_skip_tracker_is_thread_safe():
    tracker = SkipTracker()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda n: tracker.add(f"test_{n}"), range(100)))

    assert len(tracker) == 100
    assert sorted(tracker.values()) == sorted(f"test_{n}" for n in range(100))
