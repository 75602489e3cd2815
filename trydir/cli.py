"""Command-line interface for try."""

import os
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from trydir.config import Config, expand_path
from trydir.constants import DEFAULT_WORKSPACE, VERSION
from trydir.errors import TryError, exit_code_for_exception
from trydir.history import WorkspaceHistoryStore, with_current_first
from trydir.models import (
    ChangeDirectory,
    CloneRepository,
    HistorySource,
    ListSource,
    ScanSource,
    SetWorkspaceRoot,
    UserAction,
)
from trydir.naming import check_dirname, clone_dirname, dated_name, is_repository_url
from trydir.scripts import get_dialect, translate, worktree_script
from trydir.selector import Selector
from trydir.terminal import TtyTerminal
from trydir.utils.logging import SessionLogger
from trydir.workspace import WorkspaceFS

app = typer.Typer(
    help="try - Ephemeral workspace manager",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
# stdout is reserved for the command the shell wrapper evaluates
console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"try {VERSION}")
        raise typer.Exit()


def _fail(error: BaseException) -> typer.Exit:
    console.print(f"[red]Error: {error}[/red]")
    return typer.Exit(exit_code_for_exception(error))


def _warn(message: str, logger: Optional[SessionLogger] = None) -> None:
    console.print(f"[yellow]Warning: {message}[/yellow]")
    if logger:
        logger.log_event("warning", message=message)


def _logger(config: Config) -> SessionLogger:
    return SessionLogger(config.config_dir, enabled=config.log_enabled)


def _emit(script: str) -> None:
    typer.echo(script)


def _emit_action(action: UserAction, config: Config, logger: SessionLogger) -> None:
    """Record workspace changes, then print the action's commands."""
    script = translate(action, get_dialect(config.shell))

    if isinstance(action, SetWorkspaceRoot):
        try:
            WorkspaceHistoryStore(config.config_dir).record(action.path)
        except TryError as e:
            _warn(f"Failed to save workspace: {e}", logger)

    _emit(script)


def _run_selector(
    config: Config,
    source: ListSource,
    query: str,
    logger: SessionLogger,
) -> None:
    """Run an interactive session and print its result."""
    selector = Selector(
        source,
        filesystem=WorkspaceFS(),
        initial_query=query,
        clone_proxy=config.clone_proxy,
        logger=logger,
    )
    logger.log_event(
        "start", source=type(source).__name__, query=query, config=config.to_dict()
    )

    try:
        # Scan before touching the terminal so failures print normally
        state = selector.start()
        with TtyTerminal() as terminal:
            selector.terminal = terminal
            action = selector.run(state)
    except TryError as e:
        raise _fail(e) from e

    if action is None:
        raise typer.Exit(1)

    _emit_action(action, config, logger)


def _clone_action(config: Config, url: str, name: Optional[str]) -> UserAction:
    dirname = check_dirname(name) if name else clone_dirname(url, date.today())
    destination = config.workspace_root / dirname
    if destination.exists():
        return ChangeDirectory(path=destination)
    return CloneRepository(url=url, destination=destination, proxy_command=config.clone_proxy)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    shell: Optional[str] = typer.Option(
        None,
        "--shell", "-s",
        help="Shell dialect for emitted commands (posix, bash, zsh, fish, powershell)",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Pick, create or clone an experiment directory and cd into it."""
    try:
        config = Config.load()
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(2)

    if shell:
        config.shell = shell

    errors = config.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        raise typer.Exit(2)

    ctx.obj = config

    if ctx.invoked_subcommand is None:
        _run_selector(config, ScanSource(config.workspace_root), "", _logger(config))


@app.command("cd")
def cd(
    ctx: typer.Context,
    query: Optional[list[str]] = typer.Argument(None, help="Initial search text, or a git URL to clone"),
) -> None:
    """Fuzzy-select a directory under the workspace root."""
    config: Config = ctx.obj
    logger = _logger(config)
    text = " ".join(query or [])

    if is_repository_url(text):
        try:
            action = _clone_action(config, text, None)
        except TryError as e:
            raise _fail(e) from e
        logger.log_event("commit", action=action.model_dump(mode="json"))
        _emit_action(action, config, logger)
        return

    _run_selector(config, ScanSource(config.workspace_root), text, logger)


@app.command()
def clone(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Git repository URL"),
    name: Optional[str] = typer.Argument(None, help="Directory name (default: <repo>-<date>)"),
) -> None:
    """Clone a git repository into a dated directory."""
    config: Config = ctx.obj
    logger = _logger(config)
    try:
        action = _clone_action(config, url, name)
    except TryError as e:
        raise _fail(e) from e

    logger.log_event("commit", action=action.model_dump(mode="json"))
    _emit_action(action, config, logger)


@app.command()
def worktree(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Worktree name"),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Commit-ish to check out"),
) -> None:
    """Create a git worktree of the current repository in a dated directory."""
    config: Config = ctx.obj
    logger = _logger(config)
    dialect = get_dialect(config.shell)
    try:
        path = config.workspace_root / dated_name(name, date.today())
    except TryError as e:
        raise _fail(e) from e

    if path.exists():
        action = ChangeDirectory(path=path)
        logger.log_event("commit", action=action.model_dump(mode="json"))
        _emit(translate(action, dialect))
        return

    logger.log_event("worktree", path=str(path), base=base)
    _emit(worktree_script(path, base, dialect))


@app.command("set")
def set_workspace(ctx: typer.Context) -> None:
    """Select a workspace root from history."""
    config: Config = ctx.obj
    logger = _logger(config)

    try:
        paths = WorkspaceHistoryStore(config.config_dir).load()
    except TryError as e:
        _warn(f"{e} (showing current directory only)", logger)
        paths = []

    paths = with_current_first(paths, Path.cwd())
    _run_selector(config, HistorySource(tuple(paths)), "", logger)


@app.command()
def init(
    ctx: typer.Context,
    path: str = typer.Argument(DEFAULT_WORKSPACE, help="Default workspace root"),
) -> None:
    """Print the shell function that wraps try (eval it in your shell rc)."""
    config: Config = ctx.obj
    logger = _logger(config)

    try:
        WorkspaceHistoryStore(config.config_dir).record(expand_path(path))
    except TryError as e:
        _warn(f"Failed to save workspace: {e}", logger)

    executable = os.path.abspath(sys.argv[0]) if sys.argv and sys.argv[0] else "try"
    _emit(get_dialect(config.shell).init_script(executable, path))


if __name__ == "__main__":
    app()
