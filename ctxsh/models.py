import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

ENTER_HOOK = "enter"
LEAVE_HOOK = "leave"
HISTORY_FILE = "history"


@dataclass
class Context:
    """A named context living in its own directory under the store root"""
    name: str
    path: Path

    @property
    def enter_hook(self) -> Path:
        return self.path / ENTER_HOOK

    @property
    def leave_hook(self) -> Path:
        return self.path / LEAVE_HOOK

    @property
    def history_path(self) -> Path:
        return self.path / HISTORY_FILE

    def exists(self) -> bool:
        """Check if the context directory is on disk"""
        return self.path.is_dir()


@dataclass
class SessionState:
    """Per-session state: the active context, plus the environment and
    working directory that child commands and hooks run with."""
    active: Optional[str] = None
    env: Dict[str, str] = field(default_factory=lambda: dict(os.environ))
    cwd: Path = field(default_factory=Path.cwd)
