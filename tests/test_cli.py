"""Tests for the command-line interface."""

from datetime import date
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import ScriptedTerminal, press, type_text
from trydir.cli import app
from trydir.errors import RenderFailure
from trydir.history import WorkspaceHistoryStore
from trydir.terminal import Key
from trydir.utils.logging import SessionLogger

runner = CliRunner()


@pytest.fixture
def run(workspace, config_dir, monkeypatch):
    """Invoke the CLI against the test workspace."""
    monkeypatch.delenv("TRY_CLONE_PROXY", raising=False)
    env = {
        "TRY_PATH": str(workspace),
        "TRY_CONFIG_DIR": str(config_dir),
        "TRY_SHELL": "bash",
        "TRY_LOG": "0",
    }

    def invoke(*args, **extra_env):
        return runner.invoke(app, list(args), env={**env, **extra_env})

    return invoke


@pytest.fixture
def keys(monkeypatch):
    """Replace the tty with a scripted terminal."""

    def script(events):
        monkeypatch.setattr("trydir.cli.TtyTerminal", lambda: ScriptedTerminal(events))

    return script


def today() -> str:
    return date.today().isoformat()


def test_version(run):
    """Test --version."""
    result = run("--version")

    assert result.exit_code == 0
    assert "try 0.1.0" in result.stdout


def test_clone_into_dated_directory(run, workspace):
    """Test clone emits mkdir, clone and cd."""
    result = run("clone", "https://github.com/user/widget.git")

    destination = workspace / f"widget-{today()}"
    assert result.exit_code == 0
    assert f"mkdir -p '{destination}'" in result.stdout
    assert f"git clone 'https://github.com/user/widget.git' '{destination}'" in result.stdout
    assert result.stdout.rstrip().endswith(f"cd '{destination}'")


def test_clone_with_proxy(run):
    """Test the clone proxy setting prefixes git."""
    result = run("clone", "git@host:repo.git", TRY_CLONE_PROXY="proxychains4 -q")

    assert result.exit_code == 0
    assert "proxychains4 -q git clone 'git@host:repo.git'" in result.stdout


def test_clone_with_explicit_name(run, workspace):
    """Test an explicit name is used as given."""
    result = run("clone", "https://github.com/user/widget.git", "mine")

    assert result.exit_code == 0
    assert f"cd '{workspace / 'mine'}'" in result.stdout


def test_clone_into_existing_directory_enters_it(run, workspace):
    """Test an existing destination is entered instead of cloned over."""
    (workspace / "mine").mkdir()

    result = run("clone", "https://github.com/user/widget.git", "mine")

    assert result.exit_code == 0
    assert result.stdout.strip() == f"cd '{workspace / 'mine'}'"


def test_clone_invalid_url(run):
    """Test a URL without a repository name is a usage error."""
    result = run("clone", "git@github.com")

    assert result.exit_code == 2
    assert "git clone" not in result.stdout


def test_cd_with_url_clones(run, workspace):
    """Test a URL given to cd clones without opening the selector."""
    result = run("cd", "https://github.com/user/widget.git")

    assert result.exit_code == 0
    assert f"cd '{workspace / f'widget-{today()}'}'" in result.stdout


def test_worktree(run, workspace):
    """Test worktree emits a guarded worktree add."""
    result = run("worktree", "feat", "--base", "main")

    path = workspace / f"feat-{today()}"
    assert result.exit_code == 0
    assert f"worktree add --detach '{path}' 'main'" in result.stdout
    assert result.stdout.rstrip().endswith(f"cd '{path}'")


def test_worktree_existing_directory(run, workspace):
    """Test an existing dated worktree directory is just entered."""
    path = workspace / f"feat-{today()}"
    path.mkdir()

    result = run("worktree", "feat")

    assert result.exit_code == 0
    assert result.stdout.strip() == f"cd '{path}'"


def test_init_prints_wrapper_and_records_root(run, config_dir, temp_dir):
    """Test init emits the shell function and remembers the root."""
    root = temp_dir / "tries"

    result = run("init", str(root))

    assert result.exit_code == 0
    assert "try() {" in result.stdout
    assert f"export TRY_PATH='{root}'" in result.stdout
    assert WorkspaceHistoryStore(config_dir).load() == [root]


def test_init_fish(run):
    """Test --shell selects the dialect."""
    result = run("--shell", "fish", "init")

    assert result.exit_code == 0
    assert "function try" in result.stdout


def test_unknown_shell_is_config_error(run):
    """Test an unsupported shell exits with the config error code."""
    result = run("--shell", "tcsh", "init")

    assert result.exit_code == 2
    assert "try() {" not in result.stdout


def test_workspace_root_not_a_directory(run, temp_dir):
    """Test a workspace root that is a file is rejected."""
    path = temp_dir / "file"
    path.write_text("")

    result = run("clone", "https://github.com/user/widget.git", TRY_PATH=str(path))

    assert result.exit_code == 2


def test_interactive_cd(run, keys, workspace):
    """Test the selector result is printed as a cd."""
    keys(press(Key.ENTER))

    result = run("cd")

    assert result.exit_code == 0
    assert result.stdout.strip() == f"cd '{workspace / 'bar-2025-01-02'}'"


def test_interactive_cd_initial_query(run, keys, workspace):
    """Test query words seed the search."""
    keys(press(Key.ENTER))

    result = run("cd", "foo")

    assert result.stdout.strip() == f"cd '{workspace / 'foo-2025-01-01'}'"


def test_bare_invocation_opens_selector(run, keys, workspace):
    """Test running without a subcommand starts the selector."""
    keys(type_text("idea") + press(Key.ENTER))

    result = run()

    path = workspace / f"idea-{today()}"
    assert result.exit_code == 0
    assert result.stdout.strip() == f"mkdir -p '{path}' && \\\n  cd '{path}'"


def test_cancel_exits_nonzero(run, keys):
    """Test cancelling prints nothing and exits 1."""
    keys(press(Key.ESCAPE))

    result = run("cd")

    assert result.exit_code == 1
    assert result.stdout == ""


def test_set_selects_workspace_from_history(run, keys, config_dir, temp_dir, monkeypatch):
    """Test set exports the chosen root and moves it to the front."""
    other = temp_dir / "other"
    other.mkdir()
    store = WorkspaceHistoryStore(config_dir)
    store.record(other)
    monkeypatch.chdir(temp_dir)
    keys(press(Key.DOWN, Key.ENTER))

    result = run("set")

    assert result.exit_code == 0
    assert result.stdout.strip() == f"export TRY_PATH='{other}' && \\\n  cd '{other}'"
    assert store.load()[0] == other


class BrokenTerminal(ScriptedTerminal):
    """Terminal whose screen writes fail; records that it was restored."""

    def __init__(self, events):
        super().__init__(events)
        self.exited = False

    def __exit__(self, exc_type, exc, tb):
        self.exited = True
        return None

    def draw(self, lines):
        raise RenderFailure("Terminal write failed: broken pipe")


def test_short_help_flag(run):
    """Test -h is accepted like --help."""
    result = run("-h")

    assert result.exit_code == 0
    assert "Usage" in result.output


@pytest.mark.parametrize("name", ["../escaped", "/tmp/evil"])
def test_worktree_rejects_path_names(run, name):
    """Test worktree names must stay under the workspace root."""
    result = run("worktree", name)

    assert result.exit_code == 2
    assert "mkdir" not in result.stdout


@pytest.mark.parametrize("name", ["../escaped", "/tmp/evil", ".."])
def test_clone_rejects_path_names(run, name):
    """Test explicit clone names must stay under the workspace root."""
    result = run("clone", "https://github.com/user/widget.git", name)

    assert result.exit_code == 2
    assert "git clone" not in result.stdout


def test_set_with_unreadable_history(run, keys, config_dir, temp_dir, monkeypatch):
    """Test set warns about broken history, lists the cwd and still prints."""
    (config_dir / "workspaces").mkdir()
    monkeypatch.chdir(temp_dir)
    cwd = Path.cwd()
    keys(press(Key.ENTER))

    result = run("set")

    assert result.exit_code == 0
    assert "Warning" in result.output
    assert f"export TRY_PATH='{cwd}'" in result.stdout
    assert f"cd '{cwd}'" in result.stdout


def test_render_failure_restores_terminal(run, monkeypatch):
    """Test a drawing error exits 3 after the terminal is restored."""
    terminal = BrokenTerminal(press(Key.ENTER))
    monkeypatch.setattr("trydir.cli.TtyTerminal", lambda: terminal)

    result = run("cd")

    assert result.exit_code == 3
    assert terminal.exited
    assert "cd '" not in result.stdout


def test_start_event_includes_config(run, keys, config_dir, workspace):
    """Test the session start event records the resolved configuration."""
    keys(press(Key.ESCAPE))

    run("cd", TRY_LOG="1")

    events = SessionLogger(config_dir).read_events()
    start = [e for e in events if e["event"] == "start"][0]
    assert start["config"]["workspace_root"] == str(workspace)
    assert start["config"]["shell"] == "bash"
