"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ctxsh.errors import ConfigError

_DEFAULT_ROOT = Path.home() / ".ctxsh" / "contexts"
_DEFAULT_SHELL = "/bin/sh"
_DEFAULT_HISTSIZE = 1000


@dataclass
class CtxshConfig:
    """Top-level ctxsh configuration."""

    root: Path = _DEFAULT_ROOT
    editor: Optional[str] = None
    shell: str = _DEFAULT_SHELL
    history_size: int = _DEFAULT_HISTSIZE
    log_level: str = "WARNING"
    log_file: Optional[str] = None


def _first_env(*names: str) -> Optional[str]:
    """Return the first of the named environment variables that is set and non-empty."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _history_size() -> int:
    """Read CTXSH_HISTSIZE as a non-negative integer."""
    raw = os.getenv("CTXSH_HISTSIZE")
    if raw is None or not raw.strip():
        return _DEFAULT_HISTSIZE
    try:
        size = int(raw)
    except ValueError:
        raise ConfigError(f"CTXSH_HISTSIZE must be a non-negative integer, got '{raw}'")
    if size < 0:
        raise ConfigError(f"CTXSH_HISTSIZE must be a non-negative integer, got '{raw}'")
    return size


def load_config(root: Optional[Path] = None) -> CtxshConfig:
    """Load configuration from environment variables.

    Priority: explicit arguments > environment variables > defaults.
    Raises ConfigError when a variable holds an unusable value.
    """
    env_root = os.getenv("CTXSH_ROOT")
    if root is None:
        root = Path(env_root) if env_root else _DEFAULT_ROOT

    return CtxshConfig(
        root=root.expanduser().resolve(),
        editor=_first_env("CTXSH_EDITOR", "VISUAL", "EDITOR"),
        shell=os.getenv("CTXSH_SHELL", _DEFAULT_SHELL),
        history_size=_history_size(),
        log_level=os.getenv("CTXSH_LOG_LEVEL", "WARNING"),
        log_file=os.getenv("CTXSH_LOG_FILE") or None,
    )
