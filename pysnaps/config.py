"""Centralized configuration for the pysnaps snapshot plugin."""

# Snapshot file format
END_SEQUENCE = "---"
ESCAPED_END_SEQUENCE = "/-/-/-/"
SNAPS_EXT = ".snap"
DEFAULT_SNAPS_DIR = "__snapshots__"
OCCURRENCE_PLACEHOLDER = "%d"

# Entry headers must start with one of these to be recognized while scanning
ENTRY_ID_PREFIXES: tuple[str, ...] = ("Test", "test")
ENTRY_ID_SEPARATOR = " - "

# Update mode toggles
UPDATE_ENV_VAR = "UPDATE_SNAPS"
UPDATE_VALUE = "true"
CLEAN_VALUE = "clean"

# Diff rendering
DIFF_CONTEXT_LINES = 3

# CI detection environment variables
CI_ENV_VARS: tuple[str, ...] = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_NUMBER",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "BUILDKITE",
    "CIRCLECI",
    "TRAVIS",
    "JENKINS_URL",
    "TF_BUILD",
)

# Symbols
ARROW_SYMBOL = "› "
BULLET_SYMBOL = "• "
ERROR_SYMBOL = "✕ "
SUCCESS_SYMBOL = "✓ "
UPDATE_SYMBOL = "✎ "
ENTER_SYMBOL = "↳ "
SKIP_SYMBOL = "⟳ "

# User facing messages
SKIPPED_MSG = f"{SKIP_SYMBOL}Snapshot skipped"
ADDED_MSG = f"{UPDATE_SYMBOL}Snapshot added"
UPDATED_MSG = f"{UPDATE_SYMBOL}Snapshot updated"
NO_VALUES_MSG = "[warning] match_snapshot call without params\n"
CLEAN_HINT = "To remove {it}, re-run tests with `UPDATE_SNAPS=clean pytest`"
