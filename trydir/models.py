"""Entries, list sources and user actions."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Entry:
    """A candidate directory shown by the selector."""

    name: str
    path: Path
    modified_at: float
    name_folded: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "name_folded", self.name.casefold())


@dataclass(frozen=True)
class ScanSource:
    """Entries are the subdirectories of ``root``, listed once."""

    root: Path


@dataclass(frozen=True)
class HistorySource:
    """Entries are previously used workspace roots, in the given order."""

    paths: tuple[Path, ...]


ListSource = Union[ScanSource, HistorySource]


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class ChangeDirectory(_Action):
    """Switch to an existing directory."""

    kind: Literal["cd"] = "cd"
    path: Path = Field(description="Directory to enter")


class CreateAndEnter(_Action):
    """Create a directory (recursively) and enter it."""

    kind: Literal["mkdir"] = "mkdir"
    path: Path = Field(description="Directory to create and enter")


class SetWorkspaceRoot(_Action):
    """Adopt a directory as the workspace root and enter it."""

    kind: Literal["set"] = "set"
    path: Path = Field(description="New workspace root")


class CloneRepository(_Action):
    """Clone a git repository into a fresh directory and enter it."""

    kind: Literal["clone"] = "clone"
    url: str = Field(description="Repository URL")
    destination: Path = Field(description="Clone target directory")
    proxy_command: Optional[str] = Field(
        None, description="Command token prefixed to the git invocation"
    )


UserAction = Union[ChangeDirectory, CreateAndEnter, SetWorkspaceRoot, CloneRepository]
