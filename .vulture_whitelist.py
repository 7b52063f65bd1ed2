# Vulture whitelist for legitimate API definitions that appear unused
# This file tells vulture to ignore these symbols which are part of our public API

# Config constants - file format and toggles
DEFAULT_SNAPS_DIR
ENTRY_ID_PREFIXES
CLEAN_VALUE

# Exception classes and utilities - part of public API
InvalidInputError

# Diff engine helpers
matching_blocks
MatchBlock

# Protocol definitions - test framework collaborator
TestingT
helper  # Protocol method
skipf  # Protocol method
skip_now  # Protocol method
Serializable
__snapshot__  # Protocol method

# pytest hooks and fixtures - discovered by name
pytest_addoption
pytest_deselected
pytest_runtest_call
pytest_sessionfinish
pytest_terminal_summary
snaps
