"""Context lifecycle: create, delete, enter, leave, reload, edit."""

from pathlib import Path
from typing import Callable, List, Optional

import click

from ctxsh.errors import (
    ActiveContextError,
    AlreadyInContext,
    EditorFailed,
    NoActiveContext,
    NoEditorConfigured,
    NotFound,
)
from ctxsh.history import HistoryStore
from ctxsh.hooks import HookRunner
from ctxsh.models import ENTER_HOOK, LEAVE_HOOK, Context, SessionState
from ctxsh.storage.context_storage import ContextStorage
from ctxsh.utils.logging import get_logger

logger = get_logger(__name__)

# Exported to hooks and child commands while a context is active.
CONTEXT_VAR = "CTXSH_CONTEXT"
HOOK_VAR = "CTXSH_HOOK"

EditorLauncher = Callable[[str, Path, dict], None]


def launch_editor(editor: str, path: Path, env: dict) -> None:
    """Open path in editor; click raises ClickException if that fails"""
    click.edit(filename=str(path), editor=editor, env=env)


class ContextManager:
    """Owns one session's active context and moves it between contexts.

    Only one context can be active at a time. Entering runs the context's
    enter hook and then switches the session history to the context's
    history file; leaving writes the history back and then runs the leave
    hook.
    """

    def __init__(
        self,
        storage: ContextStorage,
        session: Optional[SessionState] = None,
        history: Optional[HistoryStore] = None,
        hooks: Optional[HookRunner] = None,
        editor: Optional[str] = None,
        launcher: EditorLauncher = launch_editor,
    ) -> None:
        self.storage = storage
        self.session = session or SessionState()
        self.history = history or HistoryStore()
        self.hooks = hooks or HookRunner()
        self.editor = editor
        self.launcher = launcher

    @property
    def current(self) -> Optional[str]:
        """Name of the active context, or None"""
        return self.session.active

    def create(self, name: str) -> Context:
        """Create a context with empty hooks"""
        return self.storage.create(name)

    def delete(self, name: str) -> None:
        """Delete a context; the active one is refused"""
        if name and name == self.session.active:
            raise ActiveContextError(f"cannot delete '{name}' while it is active, leave it first")
        self.storage.delete(name)

    def list(self) -> List[str]:
        """Names of all contexts"""
        return self.storage.list_contexts()

    def files(self, name: Optional[str] = None) -> List[str]:
        """Files in a context directory, the active one by default"""
        name = name or self.session.active
        if not name:
            return []
        return self.storage.list_files(name)

    def _run_hook(self, context: Context, hook: Path, kind: str) -> None:
        if not self.hooks.should_run(hook):
            return
        env = dict(self.session.env)
        env[CONTEXT_VAR] = context.name
        env[HOOK_VAR] = kind
        result = self.hooks.run(hook, env, self.session.cwd)
        result.unset = [k for k in result.unset if k not in (CONTEXT_VAR, HOOK_VAR)]
        result.exported.pop(HOOK_VAR, None)
        result.exported.pop(CONTEXT_VAR, None)
        self.session.env = result.apply(self.session.env)
        if result.cwd is not None:
            self.session.cwd = result.cwd

    def enter(self, name: str) -> None:
        """Make name the active context.

        A no-op if it already is; refused while another context is active.
        """
        active = self.session.active
        if active == name:
            return
        if active is not None:
            raise AlreadyInContext(f"already in context '{active}', leave it first")
        context = self.storage.get(name)
        if not context.exists():
            raise NotFound(f"context '{name}' does not exist")

        # hook first, so it runs against the previous history
        self._run_hook(context, context.enter_hook, ENTER_HOOK)
        self.history.push(context.history_path)
        self.session.active = name
        self.session.env[CONTEXT_VAR] = name
        logger.info("context_entered", name=name)

    def leave(self) -> None:
        """Save history, run the leave hook and clear the active context"""
        name = self.session.active
        if name is None:
            return
        context = self.storage.get(name)
        self.history.pop()
        try:
            self._run_hook(context, context.leave_hook, LEAVE_HOOK)
        finally:
            self.session.active = None
            self.session.env.pop(CONTEXT_VAR, None)
            logger.info("context_left", name=name)

    def reload(self) -> None:
        """Leave and re-enter the active context"""
        name = self.session.active
        if name is None:
            raise NoActiveContext("not in a context")
        self.leave()
        self.enter(name)

    def edit(self, relpath: str) -> Path:
        """Open a file of the active context in the configured editor"""
        name = self.session.active
        if name is None:
            raise NoActiveContext("not in a context")
        if not self.editor:
            raise NoEditorConfigured("no editor configured, set CTXSH_EDITOR or EDITOR")
        path = self.storage.get(name).path / relpath
        logger.debug("editing", name=name, path=str(path))
        try:
            self.launcher(self.editor, path, self.session.env)
        except click.ClickException as e:
            raise EditorFailed(e.format_message())
        except OSError as e:
            raise EditorFailed(f"{self.editor}: {e}")
        return path
