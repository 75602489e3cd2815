"""Directory naming policy for new workspaces."""

from datetime import date
from typing import Optional

from trydir.constants import DATE_FORMAT, DATED_NAME_RE, REPO_NAME_RE, URL_PREFIXES
from trydir.errors import InvalidDirectoryName, InvalidRepositoryUrl


def date_suffix(today: date) -> str:
    return today.strftime(DATE_FORMAT)


def check_dirname(name: str) -> str:
    """Ensure ``name`` names a single directory directly under the root.

    Raises:
        InvalidDirectoryName: If the name is empty, "." or "..", or holds a
            path separator (which also rules out absolute paths)
    """
    if name in ("", ".", "..") or "/" in name or "\\" in name:
        raise InvalidDirectoryName(f"Not a plain directory name: {name}")
    return name


def dated_name(name: str, today: date) -> str:
    """Append the date suffix to a directory name.

    Spaces become dashes so the result is shell- and listing-friendly.

    Raises:
        InvalidDirectoryName: If the name is not a plain directory name
    """
    base = check_dirname(name.strip().replace(' ', '-'))
    return f"{base}-{date_suffix(today)}"


def split_dated_name(name: str) -> tuple[str, Optional[str]]:
    """Split ``name-YYYY-MM-DD`` into its name and date parts."""
    match = DATED_NAME_RE.match(name)
    if not match:
        return name, None
    return match.group(1), match.group(2)


def is_repository_url(text: str) -> bool:
    return text.startswith(URL_PREFIXES)


def repository_name(url: str) -> str:
    """Extract the repository name from a git URL.

    Args:
        url: e.g. ``https://github.com/user/repo.git`` or ``git@host:user/repo``

    Returns:
        Last path segment without a ``.git`` suffix
    """
    match = REPO_NAME_RE.search(url.strip())
    # A name still holding "@" means the URL has no path (e.g. "git@host")
    if not match or "@" in match.group(1):
        raise InvalidRepositoryUrl(f"Cannot derive a directory name from: {url}")
    return match.group(1)


def clone_dirname(url: str, today: date) -> str:
    return dated_name(repository_name(url), today)
