"""Session event logging."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from trydir.constants import EVENT_LOG_FILENAME


class SessionLogger:
    """Appends the events of one invocation to an NDJSON log."""

    def __init__(self, log_dir: Path, run_id: Optional[str] = None, enabled: bool = True):
        """Initialize session logger.

        Args:
            log_dir: Directory holding the event log (the app config dir)
            run_id: Optional run ID (generated if not provided)
            enabled: When False, events are dropped
        """
        self.log_dir = log_dir
        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.enabled = enabled
        self.log_path = log_dir / EVENT_LOG_FILENAME

    def log_event(self, event: str, **fields: Any) -> None:
        """Log one event.

        Logging never interrupts the session: write errors disable the
        logger for the rest of the run.

        Args:
            event: Event name (start, commit, cancel, delete, warning)
            **fields: JSON-serializable event details
        """
        if not self.enabled:
            return

        entry = {
            "ts": datetime.now().isoformat(),
            "run_id": self.run_id,
            "event": event,
            **fields,
        }

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError:
            self.enabled = False

    def read_events(self) -> list[dict]:
        """Read back all logged events (all runs).

        Returns:
            List of event dicts, oldest first
        """
        if not self.log_path.exists():
            return []

        events = []
        with open(self.log_path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return events
