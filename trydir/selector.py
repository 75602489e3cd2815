"""Interactive selector: keystrokes in, one user action out."""

import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from rich.text import Text

from trydir.constants import (
    CHROME_ROWS,
    CONFIRM_KEYS,
    DEFAULT_TERMINAL_SIZE,
    MIN_VISIBLE_ROWS,
)
from trydir.errors import InputFailure, InvalidDirectoryName, InvalidRepositoryUrl
from trydir.models import (
    ChangeDirectory,
    CloneRepository,
    CreateAndEnter,
    Entry,
    HistorySource,
    ListSource,
    ScanSource,
    SetWorkspaceRoot,
    UserAction,
)
from trydir.naming import clone_dirname, dated_name, is_repository_url, split_dated_name
from trydir.scorer import rank
from trydir.terminal import Event, Key, KeyEvent, ResizeEvent, Terminal
from trydir.utils.logging import SessionLogger
from trydir.workspace import WorkspaceFS


class Mode(str, Enum):
    BROWSING = "browsing"
    DELETE_CONFIRM = "delete_confirm"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class SessionState:
    """Mutable state of one selector session.

    Attributes:
        entries: All entries of the list source still on disk
        view: Entries matching the query, best first
        query: Search text
        caret: Insertion point within ``query``
        selected: Highlighted row (``len(view)`` is the synthetic row)
        scroll: First visible row
        marked: Paths marked for deletion
        mode: Current state machine mode
        width: Last known terminal width
        height: Last known terminal height
        status: One-line message shown in the footer
        action: Result once committed
    """

    entries: list[Entry]
    view: list[Entry] = field(default_factory=list)
    query: str = ""
    caret: int = 0
    selected: int = 0
    scroll: int = 0
    marked: set[Path] = field(default_factory=set)
    mode: Mode = Mode.BROWSING
    width: int = DEFAULT_TERMINAL_SIZE[0]
    height: int = DEFAULT_TERMINAL_SIZE[1]
    status: Optional[str] = None
    action: Optional[UserAction] = None

    @property
    def finished(self) -> bool:
        return self.mode in (Mode.COMMITTED, Mode.CANCELLED)


class Selector:
    """Fuzzy directory selector over a scan or history list source."""

    def __init__(
        self,
        source: ListSource,
        terminal: Optional[Terminal] = None,
        filesystem: Optional[WorkspaceFS] = None,
        initial_query: str = "",
        clone_proxy: Optional[str] = None,
        logger: Optional[SessionLogger] = None,
        clock: Callable[[], float] = time.time,
        today: Optional[date] = None,
    ):
        """Initialize selector.

        Args:
            source: Where the candidate entries come from
            terminal: Event source and renderer (required for run())
            filesystem: Scanning and removal collaborator
            initial_query: Query to start with
            clone_proxy: Command token prefixed to git clone
            logger: Optional session event logger
            clock: Returns the current POSIX time (recency reference)
            today: Date used for new directory names (local today by default)
        """
        self.source = source
        self.terminal = terminal
        self.filesystem = filesystem or WorkspaceFS()
        self.initial_query = initial_query.replace(" ", "-")
        self.clone_proxy = clone_proxy
        self.logger = logger
        self.clock = clock
        self.today = today

    @property
    def root(self) -> Optional[Path]:
        return self.source.root if isinstance(self.source, ScanSource) else None

    def run(self, state: Optional[SessionState] = None) -> Optional[UserAction]:
        """Run the interactive loop until commit or cancel.

        Args:
            state: Session from start() (started here if not given)

        Returns:
            The chosen action, or None if the user cancelled

        Raises:
            ScanFailure: If the scan root cannot be listed
            RenderFailure: If drawing to the terminal fails
        """
        if self.terminal is None:
            raise ValueError("Selector.run() needs a terminal")

        if state is None:
            state = self.start()
        while not state.finished:
            state.width, state.height = self.terminal.size()
            self.terminal.draw(self.render(state))
            try:
                event = self.terminal.read_event()
            except InputFailure:
                self._cancel(state)
                break
            self.handle_event(state, event)

        return state.action

    def start(self) -> SessionState:
        """Load the list source and rank it for the initial query."""
        state = SessionState(entries=self.filesystem.load_entries(self.source))
        state.query = self.initial_query
        state.caret = len(state.query)
        self.refresh(state)
        return state

    # State transitions

    def handle_event(self, state: SessionState, event: Event) -> None:
        """Apply one input event to the session state."""
        if isinstance(event, ResizeEvent):
            state.width, state.height = event.width, event.height
            self._follow_selection(state)
            return

        if state.mode == Mode.DELETE_CONFIRM:
            self._handle_confirm(state, event)
        elif state.mode == Mode.BROWSING:
            state.status = None
            self._handle_browsing(state, event)

    def _handle_browsing(self, state: SessionState, event: KeyEvent) -> None:
        key = event.key

        if key == Key.ESCAPE:
            self._cancel(state)
        elif key == Key.ENTER:
            if state.marked:
                state.mode = Mode.DELETE_CONFIRM
            else:
                self._commit(state)
        elif key == Key.CHAR:
            char = "-" if event.char == " " else event.char
            state.query = state.query[: state.caret] + char + state.query[state.caret :]
            state.caret += len(char)
            self._query_changed(state)
        elif key == Key.BACKSPACE:
            if state.caret > 0:
                state.query = state.query[: state.caret - 1] + state.query[state.caret :]
                state.caret -= 1
                self._query_changed(state)
        elif key == Key.LEFT:
            state.caret = max(0, state.caret - 1)
        elif key == Key.RIGHT:
            state.caret = min(len(state.query), state.caret + 1)
        elif key == Key.HOME:
            state.caret = 0
        elif key == Key.END:
            state.caret = len(state.query)
        elif key == Key.UP:
            state.selected = max(0, state.selected - 1)
            self._follow_selection(state)
        elif key == Key.DOWN:
            state.selected = min(self.row_count(state) - 1, state.selected + 1)
            state.selected = max(0, state.selected)
            self._follow_selection(state)
        elif key == Key.DELETE:
            self._toggle_mark(state)

    def _handle_confirm(self, state: SessionState, event: KeyEvent) -> None:
        if event.key == Key.CHAR and event.char in CONFIRM_KEYS:
            self._delete_marked(state)
        else:
            state.marked.clear()
            state.status = "Delete cancelled."
        state.mode = Mode.BROWSING

    def _query_changed(self, state: SessionState) -> None:
        state.selected = 0
        state.scroll = 0
        self.refresh(state)

    def _cancel(self, state: SessionState) -> None:
        state.marked.clear()
        state.mode = Mode.CANCELLED
        if self.logger:
            self.logger.log_event("cancel", query=state.query)

    def _toggle_mark(self, state: SessionState) -> None:
        # Only scanned experiment directories can be deleted, never whole
        # workspace roots from history
        if not isinstance(self.source, ScanSource):
            return
        if state.selected >= len(state.view):
            return

        path = state.view[state.selected].path
        if path in state.marked:
            state.marked.discard(path)
        else:
            state.marked.add(path)

    def _delete_marked(self, state: SessionState) -> None:
        removed = set()
        failures = []
        for path in sorted(state.marked):
            try:
                self.filesystem.remove(path)
                removed.add(path)
            except OSError as e:
                failures.append(f"{path.name}: {e}")

        if self.logger:
            self.logger.log_event(
                "delete",
                removed=[str(p) for p in sorted(removed)],
                failed=failures,
            )

        state.entries = [e for e in state.entries if e.path not in removed]
        state.marked.clear()
        self.refresh(state)

        state.status = f"Deleted {len(removed)} item(s)."
        if failures:
            state.status += " Failed: " + "; ".join(failures)

    def _commit(self, state: SessionState) -> None:
        action = self.resolve(state)
        if action is None:
            return

        state.action = action
        state.mode = Mode.COMMITTED
        if self.logger:
            self.logger.log_event("commit", action=action.model_dump(mode="json"))

    def resolve(self, state: SessionState) -> Optional[UserAction]:
        """Turn the highlighted row (or a URL query) into an action."""
        root = self.root
        today = self.today or date.today()

        if root is not None and is_repository_url(state.query):
            try:
                destination = root / clone_dirname(state.query, today)
            except (InvalidRepositoryUrl, InvalidDirectoryName) as e:
                state.status = str(e)
                return None
            if self.filesystem.exists(destination):
                return ChangeDirectory(path=destination)
            return CloneRepository(
                url=state.query,
                destination=destination,
                proxy_command=self.clone_proxy,
            )

        if state.selected < len(state.view):
            path = state.view[state.selected].path
            if isinstance(self.source, HistorySource):
                return SetWorkspaceRoot(path=path)
            return ChangeDirectory(path=path)

        if self.offers_create(state):
            try:
                destination = root / dated_name(state.query, today)
            except InvalidDirectoryName as e:
                state.status = str(e)
                return None
            if self.filesystem.exists(destination):
                return ChangeDirectory(path=destination)
            return CreateAndEnter(path=destination)

        return None

    # View computation

    def refresh(self, state: SessionState) -> None:
        """Recompute the ranked view for the current query."""
        if isinstance(self.source, HistorySource) and not state.query:
            state.view = list(state.entries)
        else:
            state.view = rank(state.entries, state.query, self.clock())

        state.selected = min(state.selected, max(0, self.row_count(state) - 1))
        self._follow_selection(state)

    def offers_create(self, state: SessionState) -> bool:
        """Whether the synthetic "create new" row is shown."""
        if self.root is None or not state.query:
            return False
        return not any(entry.name == state.query for entry in state.entries)

    def row_count(self, state: SessionState) -> int:
        return len(state.view) + (1 if self.offers_create(state) else 0)

    def visible_rows(self, state: SessionState) -> int:
        return max(MIN_VISIBLE_ROWS, state.height - CHROME_ROWS)

    def _follow_selection(self, state: SessionState) -> None:
        visible = self.visible_rows(state)
        if state.selected < state.scroll:
            state.scroll = state.selected
        elif state.selected >= state.scroll + visible:
            state.scroll = state.selected + 1 - visible

    # Rendering

    def render(self, state: SessionState) -> list[Text]:
        """Build the screen lines for the current state."""
        separator = Text("─" * max(1, state.width - 1), style="bright_black")
        lines = [self._render_header(), separator, self._render_search(state), separator]

        visible = self.visible_rows(state)
        end = min(state.scroll + visible, self.row_count(state))
        for row in range(state.scroll, end):
            lines.append(self._render_row(state, row))
        lines.extend(Text("") for _ in range(visible - (end - state.scroll)))

        lines.append(separator)
        lines.append(self._render_footer(state))
        return lines

    def _render_header(self) -> Text:
        header = Text()
        if self.root is not None:
            header.append("📁 Try Selector", style="bold red")
            header.append(" @ ", style="bright_black")
            header.append(str(self.root), style="cyan")
        else:
            header.append("🗂  Workspace History", style="bold red")
        return header

    def _render_search(self, state: SessionState) -> Text:
        line = Text("Search: ", style="bright_black")
        line.append(state.query[: state.caret], style="bold yellow")
        line.append(state.query[state.caret : state.caret + 1] or " ", style="reverse")
        line.append(state.query[state.caret + 1 :], style="bold yellow")
        return line

    def _render_row(self, state: SessionState, row: int) -> Text:
        selected = row == state.selected
        line = Text("→ " if selected else "  ", style="bold yellow" if selected else "")
        base_style = "bold" if selected else ""

        if row >= len(state.view):
            today = self.today or date.today()
            if is_repository_url(state.query):
                line.append(f"🔗 Clone: {state.query}", style=base_style)
            else:
                try:
                    line.append(f"✨ Create new: {dated_name(state.query, today)}", style=base_style)
                except InvalidDirectoryName:
                    line.append(f"✨ Create new: {state.query} (not a valid name)", style="red")
            return line

        entry = state.view[row]
        marked = entry.path in state.marked
        if marked:
            line.append("🗑️  ")
            base_style = f"{base_style} strike".strip()
        else:
            line.append("📁 ")

        name, date_part = split_dated_name(entry.name)
        line.append_text(highlight_matches(name, state.query, base_style))
        if date_part:
            dash_style = "bold yellow" if "-" in state.query else "bright_black"
            line.append("-", style=dash_style)
            line.append(date_part, style=f"bright_black {base_style}".strip())
        return line

    def _render_footer(self, state: SessionState) -> Text:
        if state.mode == Mode.DELETE_CONFIRM:
            return Text(
                f"Delete {len(state.marked)} director{'y' if len(state.marked) == 1 else 'ies'}? "
                "y: Confirm  any other key: Cancel",
                style="bold red",
            )
        if state.status:
            return Text(state.status, style="bold")
        if state.marked:
            return Text(
                f"{len(state.marked)} marked | Enter: Delete  Del: Unmark  Esc: Cancel",
                style="bold red",
            )
        hint = "↑↓: Navigate  Enter: Select  Esc: Cancel"
        if self.root is not None:
            hint = "↑↓: Navigate  Enter: Select  Del: Delete  Esc: Cancel"
        return Text(hint, style="bright_black")


def highlight_matches(text: str, query: str, style: str = "") -> Text:
    """Render ``text`` with the fuzzy-matched query characters highlighted."""
    result = Text(style=style)
    folded_query = query.casefold()
    index = 0
    for char in text:
        if index < len(folded_query) and char.casefold() == folded_query[index]:
            result.append(char, style="bold yellow")
            index += 1
        else:
            result.append(char)
    return result
