"""Translate user actions into shell command strings."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from trydir.constants import SHELL_DIALECTS, WORKSPACE_ENV_VAR
from trydir.errors import ConfigError
from trydir.models import (
    ChangeDirectory,
    CloneRepository,
    CreateAndEnter,
    SetWorkspaceRoot,
    UserAction,
)

# First arguments the shell wrapper passes through unchanged; anything else
# is treated as a query for "cd".
WRAPPED_COMMANDS = ("init", "clone", "worktree", "set", "cd")
PASSTHROUGH_FLAGS = ("-h", "--help", "--version")


class Dialect(ABC):
    """Syntax rules of one shell family."""

    name: str

    @abstractmethod
    def quote(self, value: str) -> str:
        """Quote a literal so the shell reads it back unchanged."""

    @abstractmethod
    def join(self, statements: list[str]) -> str:
        """Combine statements into one sequence."""

    @abstractmethod
    def cd(self, path: Path) -> str: ...

    @abstractmethod
    def mkdir(self, path: Path) -> str:
        """Recursive, idempotent directory creation."""

    @abstractmethod
    def set_env(self, name: str, value: str) -> str: ...

    @abstractmethod
    def echo(self, message: str) -> str: ...

    @abstractmethod
    def worktree_add(self, path: Path, base: Optional[str]) -> str:
        """Add a detached git worktree, only when inside a work tree."""

    @abstractmethod
    def init_script(self, executable: str, default_root: str) -> str:
        """Shell wrapper that evaluates the tool's output."""

    def clone(self, url: str, destination: Path, proxy_command: Optional[str] = None) -> str:
        command = f"git clone {self.quote(url)} {self.quote(str(destination))}"
        if proxy_command:
            command = f"{proxy_command} {command}"
        return command


class PosixDialect(Dialect):
    """sh, bash, zsh and friends."""

    name = "posix"

    def quote(self, value: str) -> str:
        return "'" + value.replace("'", "'\\''") + "'"

    def join(self, statements: list[str]) -> str:
        return " && \\\n  ".join(statements)

    def cd(self, path: Path) -> str:
        return f"cd {self.quote(str(path))}"

    def mkdir(self, path: Path) -> str:
        return f"mkdir -p {self.quote(str(path))}"

    def set_env(self, name: str, value: str) -> str:
        return f"export {name}={self.quote(value)}"

    def echo(self, message: str) -> str:
        return f"echo {self.quote(message)}"

    def worktree_add(self, path: Path, base: Optional[str]) -> str:
        target = self.quote(str(path))
        if base:
            target += f" {self.quote(base)}"
        return (
            "if git rev-parse --is-inside-work-tree >/dev/null 2>&1; then "
            'repo=$(git rev-parse --show-toplevel); '
            f'git -C "$repo" worktree add --detach {target}; '
            "fi"
        )

    def init_script(self, executable: str, default_root: str) -> str:
        exe = self.quote(executable)
        commands = "|".join(WRAPPED_COMMANDS)
        flags = "|".join(PASSTHROUGH_FLAGS)
        return f"""try() {{
    local out
    case "$1" in
        {flags}) command {exe} "$@"; return ;;
        {commands}) out=$({exe} "$@" 2>/dev/tty) ;;
        *) out=$({exe} cd "$@" 2>/dev/tty) ;;
    esac
    if [ $? -eq 0 ]; then
        eval "$out"
    fi
}}
export TRY_SHELL={self.name}
export {WORKSPACE_ENV_VAR}={self.quote(default_root)}
"""


class FishDialect(Dialect):
    """fish 3.0+ (needs ``&&``)."""

    name = "fish"

    def quote(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"

    def join(self, statements: list[str]) -> str:
        return " && ".join(statements)

    def cd(self, path: Path) -> str:
        return f"cd {self.quote(str(path))}"

    def mkdir(self, path: Path) -> str:
        return f"mkdir -p {self.quote(str(path))}"

    def set_env(self, name: str, value: str) -> str:
        return f"set -gx {name} {self.quote(value)}"

    def echo(self, message: str) -> str:
        return f"echo {self.quote(message)}"

    def worktree_add(self, path: Path, base: Optional[str]) -> str:
        target = self.quote(str(path))
        if base:
            target += f" {self.quote(base)}"
        return (
            "if git rev-parse --is-inside-work-tree >/dev/null 2>&1; "
            f"git -C (git rev-parse --show-toplevel) worktree add --detach {target}; "
            "end"
        )

    def init_script(self, executable: str, default_root: str) -> str:
        exe = self.quote(executable)
        return f"""function try
    if contains -- "$argv[1]" {' '.join(PASSTHROUGH_FLAGS)}
        command {exe} $argv
        return
    end
    set -l out
    if contains -- "$argv[1]" {' '.join(WRAPPED_COMMANDS)}
        set out ({exe} $argv 2>/dev/tty)
    else
        set out ({exe} cd $argv 2>/dev/tty)
    end
    if test $status -eq 0
        eval (string join \\n -- $out)
    end
end
set -gx TRY_SHELL {self.name}
set -gx {WORKSPACE_ENV_VAR} {self.quote(default_root)}
"""


class PowerShellDialect(Dialect):
    """Windows PowerShell 5.1 and PowerShell 7."""

    name = "powershell"

    def quote(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def join(self, statements: list[str]) -> str:
        # 5.1 has no "&&"
        return "; ".join(statements)

    def cd(self, path: Path) -> str:
        return f"Set-Location -LiteralPath {self.quote(str(path))}"

    def mkdir(self, path: Path) -> str:
        return f"New-Item -ItemType Directory -Force -Path {self.quote(str(path))} | Out-Null"

    def set_env(self, name: str, value: str) -> str:
        return f"$env:{name} = {self.quote(value)}"

    def echo(self, message: str) -> str:
        return f"Write-Host {self.quote(message)}"

    def worktree_add(self, path: Path, base: Optional[str]) -> str:
        target = self.quote(str(path))
        if base:
            target += f" {self.quote(base)}"
        return (
            "if (git rev-parse --is-inside-work-tree 2>$null) { "
            f"git -C (git rev-parse --show-toplevel) worktree add --detach {target} "
            "}"
        )

    def init_script(self, executable: str, default_root: str) -> str:
        exe = self.quote(executable)
        commands = ", ".join(self.quote(c) for c in WRAPPED_COMMANDS)
        flags = ", ".join(self.quote(f) for f in PASSTHROUGH_FLAGS)
        return f"""function try {{
    if ($args.Count -gt 0 -and $args[0] -in @({flags})) {{
        & {exe} @args
        return
    }}
    if ($args.Count -gt 0 -and $args[0] -in @({commands})) {{
        $out = & {exe} @args
    }} else {{
        $out = & {exe} cd @args
    }}
    if ($LASTEXITCODE -eq 0 -and $out) {{
        Invoke-Expression ($out -join "`n")
    }}
}}
$env:TRY_SHELL = '{self.name}'
$env:{WORKSPACE_ENV_VAR} = {self.quote(default_root)}
"""


DIALECTS: dict[str, Dialect] = {
    d.name: d for d in (PosixDialect(), FishDialect(), PowerShellDialect())
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by dialect or shell name (e.g. ``zsh``, ``pwsh``).

    Raises:
        ConfigError: If the name is unknown
    """
    key = Path(name).name.lower()
    if key.endswith(".exe"):
        key = key[: -len(".exe")]
    dialect_name = SHELL_DIALECTS.get(key)
    if dialect_name is None:
        raise ConfigError(
            f"Unknown shell: {name}. Supported: {', '.join(sorted(SHELL_DIALECTS))}"
        )
    return DIALECTS[dialect_name]


def escape(path: Union[Path, str], dialect: Dialect) -> str:
    """Make a path literal safe to embed in a dialect's command text."""
    return dialect.quote(str(path))


def translate(action: UserAction, dialect: Dialect, env_var: str = WORKSPACE_ENV_VAR) -> str:
    """Render a user action as a command sequence for ``dialect``.

    Args:
        action: The action chosen in the selector (or by a subcommand)
        dialect: Target shell syntax
        env_var: Variable naming the workspace root

    Returns:
        Complete command text, ready to print
    """
    if isinstance(action, ChangeDirectory):
        statements = [dialect.cd(action.path)]
    elif isinstance(action, CreateAndEnter):
        statements = [dialect.mkdir(action.path), dialect.cd(action.path)]
    elif isinstance(action, SetWorkspaceRoot):
        statements = [dialect.set_env(env_var, str(action.path)), dialect.cd(action.path)]
    elif isinstance(action, CloneRepository):
        statements = [
            dialect.mkdir(action.destination),
            dialect.echo(f"Cloning {action.url}..."),
            dialect.clone(action.url, action.destination, action.proxy_command),
            dialect.cd(action.destination),
        ]
    else:
        raise TypeError(f"Unknown action: {action!r}")

    return dialect.join(statements)


def worktree_script(path: Path, base: Optional[str], dialect: Dialect) -> str:
    """Commands that create a dated directory, add a worktree there, and enter it."""
    return dialect.join([dialect.mkdir(path), dialect.worktree_add(path, base), dialect.cd(path)])
