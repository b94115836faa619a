"""Interactive session: reads command lines, runs ``ctx`` and a few builtins
in-process and everything else through a child shell."""

import atexit
import os
import shlex
import signal
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional

import click

from ctxsh.dispatch import ROOT_COMMAND, complete, dispatch, report_error
from ctxsh.manager import ContextManager
from ctxsh.utils.logging import get_logger

logger = get_logger(__name__)


class ExitShell(Exception):
    def __init__(self, status: int = 0):
        super().__init__(status)
        self.status = status


class Shell:
    """A line-oriented interactive session bound to one ContextManager."""

    def __init__(
        self,
        manager: ContextManager,
        shell: str = "/bin/sh",
        input_func: Callable[[str], str] = input,
        readline=None,
    ) -> None:
        self.manager = manager
        self.shell = shell
        self.input_func = input_func
        self.readline = readline
        self.status = 0
        self._matches: List[str] = []
        self._closed = False

    @property
    def state(self):
        """The session state owned by the manager"""
        return self.manager.session

    def prompt(self) -> str:
        """Prompt showing the active context and the current directory"""
        cwd = self.state.cwd
        label = "~" if cwd == Path.home() else (cwd.name or str(cwd))
        prefix = ""
        if self.manager.current:
            prefix = f"[{self.manager.current}] "
        return f"{prefix}{label} $ "

    # builtins

    def _cd(self, args: List[str]) -> int:
        home = self.state.env.get("HOME", str(Path.home()))
        target = Path(os.path.expanduser(args[0])) if args else Path(home)
        if not target.is_absolute():
            target = self.state.cwd / target
        if not target.is_dir():
            click.secho(f"cd: no such directory: {args[0] if args else target}", fg="red", err=True)
            return 1
        self.state.env["OLDPWD"] = str(self.state.cwd)
        self.state.cwd = target.resolve()
        self.state.env["PWD"] = str(self.state.cwd)
        return 0

    def _exit(self, args: List[str]) -> int:
        status = self.status
        if args:
            try:
                status = int(args[0])
            except ValueError:
                click.secho(f"exit: numeric argument required: {args[0]}", fg="red", err=True)
                return 1
        raise ExitShell(status)

    def _run_child(self, line: str) -> int:
        try:
            result = subprocess.run(
                line,
                shell=True,
                executable=self.shell,
                env=self.state.env,
                cwd=str(self.state.cwd),
            )
        except OSError as e:
            report_error(f"cannot run {self.shell}: {e}")
            return 127
        except KeyboardInterrupt:
            click.echo()
            return 130
        return result.returncode

    def execute(self, line: str) -> int:
        """Run one command line and return its exit status."""
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return self.status

        first = stripped.split()[0]
        if first not in (ROOT_COMMAND, "cd", "exit"):
            return self._run_child(stripped)

        try:
            words = shlex.split(stripped)
        except ValueError as e:
            report_error(f"parse error: {e}")
            return 2

        if first == "cd":
            return self._cd(words[1:])
        if first == "exit":
            return self._exit(words[1:])
        try:
            return dispatch(self.manager, words[1:])
        except subprocess.CalledProcessError as e:
            # the hook already printed its own output, like an inline script
            logger.warning("hook_failed", command=words[1:], returncode=e.returncode)
            return e.returncode
        except KeyboardInterrupt:
            click.echo()
            return 130
        except OSError as e:
            # e.g. a missing hook shell or an unwritable context directory
            report_error(str(e))
            return 1

    # completion

    def complete(self, text: str, state: int) -> Optional[str]:
        """readline completer."""
        if state == 0:
            buffer = self.readline.get_line_buffer()[: self.readline.get_endidx()]
            words = buffer.split()
            if text and words:
                words = words[:-1]
            self._matches = complete(self.manager, words, text)
        if state < len(self._matches):
            return self._matches[state]
        return None

    def install_completion(self) -> None:
        """Register tab completion with readline, when available"""
        if self.readline is None:
            return
        self.readline.set_completer(self.complete)
        self.readline.set_completer_delims(" \t\n")
        if "libedit" in (self.readline.__doc__ or ""):
            self.readline.parse_and_bind("bind ^I rl_complete")
        else:
            self.readline.parse_and_bind("tab: complete")

    # lifecycle

    def shutdown(self) -> None:
        """Leave the active context. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self.manager.leave()
        except subprocess.CalledProcessError as e:
            logger.warning("leave_hook_failed_on_exit", returncode=e.returncode)
        except OSError as e:
            logger.warning("leave_hook_failed_on_exit", error=str(e))

    def _on_signal(self, signum, frame):
        raise SystemExit(128 + signum)

    def install_exit_trap(self) -> None:
        """Leave the active context when the session ends.

        Covers normal exit, SIGHUP and SIGTERM. A killed process skips it.
        """
        atexit.register(self.shutdown)
        for signame in ("SIGHUP", "SIGTERM"):
            signum = getattr(signal, signame, None)
            if signum is not None:
                signal.signal(signum, self._on_signal)

    def read_line(self) -> str:
        """Prompt for one line and record it in the history"""
        line = self.input_func(self.prompt())
        if not self.manager.history.records_input:
            self.manager.history.add(line)
        return line

    def run(self) -> int:
        """Read and run lines until exit or end of input."""
        self.install_completion()
        try:
            while True:
                try:
                    line = self.read_line()
                except EOFError:
                    click.echo()
                    break
                except KeyboardInterrupt:
                    click.echo()
                    continue
                try:
                    self.status = self.execute(line)
                except ExitShell as e:
                    self.status = e.status
                    break
        finally:
            self.shutdown()
        return self.status


def load_readline():
    """Return the readline module when the session is interactive."""
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        return None
    try:
        import readline
    except ImportError:
        return None
    return readline
