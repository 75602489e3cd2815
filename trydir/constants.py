"""Constants and default values for trydir."""

import re

APP_NAME = "try"
VERSION = "0.1.0"

# Workspace defaults
WORKSPACE_ENV_VAR = "TRY_PATH"
DEFAULT_WORKSPACE = "~/project/test"

# History / log files (inside the app config dir)
HISTORY_FILENAME = "workspaces"
EVENT_LOG_FILENAME = "events.ndjson"

# Directory naming
DATE_FORMAT = "%Y-%m-%d"
DATED_NAME_RE = re.compile(r"^(.+)-(\d{4}-\d{2}-\d{2})$")
REPO_NAME_RE = re.compile(r"([^/:]+?)(\.git)?/*$")

# Query prefixes that turn a commit into a clone
URL_PREFIXES = ("https://", "http://", "git@", "ssh://", "git://")

# Selector layout
MIN_VISIBLE_ROWS = 3
CHROME_ROWS = 6  # header, search bar, separators, footer
DEFAULT_TERMINAL_SIZE = (80, 24)

# Keys accepted in delete-confirm mode
CONFIRM_KEYS = {"y", "Y"}

# Ignore file read from the workspace root
IGNORE_FILENAME = ".tryignore"

# Built-in ignore patterns for workspace scans
BUILTIN_IGNORES = [
    # Hidden directories
    ".*/",
]

# Shell dialects
DEFAULT_DIALECT = "posix"
SHELL_DIALECTS = {
    "sh": "posix",
    "bash": "posix",
    "zsh": "posix",
    "dash": "posix",
    "ksh": "posix",
    "posix": "posix",
    "fish": "fish",
    "pwsh": "powershell",
    "powershell": "powershell",
}
