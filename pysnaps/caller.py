"""Locating the test module that called into the plugin."""

from __future__ import annotations

import fnmatch
import os
import sys

TEST_FILE_PATTERNS: tuple[str, ...] = ("test_*.py", "*_test.py")

_RUNNER_FUNCTION = "pytest_pyfunc_call"


def is_test_file(filename: str) -> bool:
    basename = os.path.basename(filename)
    return any(fnmatch.fnmatch(basename, pattern) for pattern in TEST_FILE_PATTERNS)


def _is_runner_frame(filename: str, function: str) -> bool:
    return function == _RUNNER_FUNCTION and f"{os.sep}_pytest{os.sep}" in filename


def base_caller(skip: int = 0) -> str:
    """Return the file of the nearest calling test module.

    Frames are walked outward starting ``skip`` frames above the caller.
    The walk stops at pytest's test-call frame, in which case the last file
    seen before it is returned.
    """
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return ""

    prev_file = ""
    while frame is not None:
        code = frame.f_code
        if _is_runner_frame(code.co_filename, code.co_name):
            return prev_file
        if is_test_file(code.co_filename):
            return code.co_filename

        prev_file = code.co_filename
        frame = frame.f_back

    return prev_file


__all__ = ["base_caller", "is_test_file"]
