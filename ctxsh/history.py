"""Per-context command history.

A session has one current history list. Entering a context pushes it aside
and loads the context's history file; leaving writes the list back to that
file and restores what was there before.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from ctxsh.utils.logging import get_logger

logger = get_logger(__name__)


def read_history_file(path: Path) -> List[str]:
    """Read one command per line; a missing file is an empty history."""
    if not path.exists():
        return []
    return [line for line in path.read_text().splitlines() if line.strip()]


def write_history_file(path: Path, entries: List[str]) -> None:
    """Write one command per line, replacing the file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{line}\n" for line in entries))


class HistoryStore:
    """In-memory history list with a stack of pushed history files."""

    # whether lines read by input() are recorded without an explicit add()
    records_input = False

    def __init__(self, max_entries: int = 1000) -> None:
        self.max_entries = max_entries
        self.path: Optional[Path] = None
        self._entries: List[str] = []
        self._stack: List[Tuple[Optional[Path], List[str]]] = []

    def _trim(self, entries: List[str]) -> List[str]:
        """Keep the newest max_entries lines; none when the limit is 0."""
        if self.max_entries <= 0:
            return []
        return entries[-self.max_entries:]

    def add(self, line: str) -> None:
        """Record a command line; blank lines are ignored."""
        line = line.replace("\n", " ").rstrip()
        if line.strip():
            self._entries.append(line)

    def entries(self) -> List[str]:
        """Return the current history list."""
        return list(self._entries)

    def _replace(self, entries: List[str]) -> None:
        self._entries = list(entries)

    def push(self, path: Path) -> None:
        """Switch to the history stored at path, keeping the current list aside."""
        self._stack.append((self.path, self.entries()))
        loaded = self._trim(read_history_file(path))
        self._replace(loaded)
        self.path = path
        logger.debug("history_pushed", path=str(path), entries=len(loaded))

    def flush(self) -> None:
        """Write the current list to the current history file."""
        if self.path is None:
            return
        entries = self._trim(self.entries())
        write_history_file(self.path, entries)
        logger.debug("history_flushed", path=str(self.path), entries=len(entries))

    def pop(self) -> None:
        """Persist the current list and go back to the previous one."""
        if not self._stack:
            return
        self.flush()
        self.path, previous = self._stack.pop()
        self._replace(previous)


class ReadlineHistory(HistoryStore):
    """HistoryStore backed by the readline module's history list.

    readline records lines itself when input() is used, so add() only
    covers lines that did not come through input(). File I/O is kept in
    HistoryStore so the on-disk format does not depend on readline vs libedit.
    """

    records_input = True

    def __init__(self, readline, max_entries: int = 1000) -> None:
        super().__init__(max_entries)
        self._readline = readline
        self._readline.set_history_length(max(max_entries, 0))

    def add(self, line: str) -> None:
        """Record a line in readline's history."""
        line = line.replace("\n", " ").rstrip()
        if line.strip():
            self._readline.add_history(line)

    def entries(self) -> List[str]:
        """Return readline's current history list."""
        rl = self._readline
        items = (rl.get_history_item(i) for i in range(1, rl.get_current_history_length() + 1))
        return [item for item in items if item]

    def _replace(self, entries: List[str]) -> None:
        self._readline.clear_history()
        for line in entries:
            self._readline.add_history(line)
