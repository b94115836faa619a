"""Run enter/leave hook scripts and capture what they export.

A hook is sourced by a child shell. When it finishes successfully the child
dumps its exported environment and working directory, and the caller applies
the difference to its session. Exported variables and ``cd`` therefore carry
over to the session; shell functions, aliases and unexported variables do not.
"""

import json
import os
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ctxsh.utils.logging import get_logger

logger = get_logger(__name__)

# Variables the child shell manages on its own.
SHELL_MANAGED = frozenset({"_", "SHLVL", "PWD", "OLDPWD"})

# $1 hook, $2 dump file, $3 python. Locale coercion is turned off for the
# dumping interpreter so it does not add LC_CTYPE to what it reports.
_SOURCE_SCRIPT = """\
. "$1" || exit $?
__ctxsh_dump='import json, os, sys
env = dict(os.environ)
if len(sys.argv) > 2:
    env.pop("PYTHONCOERCECLOCALE", None)
with open(sys.argv[1], "w") as fp:
    json.dump({"env": env, "cwd": os.getcwd()}, fp)'
if [ "${PYTHONCOERCECLOCALE+set}" = set ]; then
    exec "$3" -c "$__ctxsh_dump" "$2"
fi
PYTHONCOERCECLOCALE=0 exec "$3" -c "$__ctxsh_dump" "$2" drop
"""


@dataclass
class HookResult:
    """Environment changes made by a hook."""

    exported: Dict[str, str] = field(default_factory=dict)
    unset: List[str] = field(default_factory=list)
    cwd: Optional[Path] = None

    def apply(self, env: Dict[str, str]) -> Dict[str, str]:
        """Return a copy of env with the changes applied."""
        updated = {k: v for k, v in env.items() if k not in self.unset}
        updated.update(self.exported)
        return updated


def diff_env(before: Dict[str, str], after: Dict[str, str]) -> Tuple[Dict[str, str], List[str]]:
    """Variables added or changed in after, and variables removed from before."""
    changed = {
        k: v for k, v in after.items() if k not in SHELL_MANAGED and before.get(k) != v
    }
    removed = sorted(k for k in before if k not in after and k not in SHELL_MANAGED)
    return changed, removed


class HookRunner:
    """Sources hook scripts in a child shell."""

    def __init__(self, shell: str = "/bin/sh", python: Optional[str] = None) -> None:
        self.shell = shell
        self.python = python or sys.executable

    def should_run(self, hook: Path) -> bool:
        """Check if a hook file exists and has content"""
        return hook.is_file() and hook.stat().st_size > 0

    def run(self, hook: Path, env: Dict[str, str], cwd: Path) -> HookResult:
        """Source hook with env and cwd.

        Raises subprocess.CalledProcessError if the hook exits non-zero, and
        OSError if the shell cannot be started.
        """
        if not self.should_run(hook):
            return HookResult()

        fd, dump_path = tempfile.mkstemp(prefix="ctxsh-hook-", suffix=".json")
        os.close(fd)
        try:
            logger.debug("hook_started", hook=str(hook))
            subprocess.run(
                [self.shell, "-c", _SOURCE_SCRIPT, "ctxsh-hook",
                 str(hook.resolve()), dump_path, self.python],
                env=env,
                cwd=str(cwd),
                check=True,
            )
            raw = Path(dump_path).read_text()
        finally:
            os.unlink(dump_path)

        if not raw:
            # the hook called exit itself, so nothing was captured
            logger.info("hook_finished", hook=str(hook), captured=False)
            return HookResult()
        dumped = json.loads(raw)

        changed, removed = diff_env(env, dumped["env"])
        new_cwd = Path(dumped["cwd"])
        logger.info(
            "hook_finished",
            hook=str(hook),
            exported=sorted(changed),
            unset=removed,
            cwd=str(new_cwd),
        )
        if new_cwd == Path(cwd).resolve():
            new_cwd = None
        return HookResult(exported=changed, unset=removed, cwd=new_cwd)
