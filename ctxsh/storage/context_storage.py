import os
import shutil
from pathlib import Path
from typing import List

from ctxsh.errors import AlreadyExists, InvalidInvocation, NotFound
from ctxsh.models import ENTER_HOOK, LEAVE_HOOK, Context
from ctxsh.utils.logging import get_logger

logger = get_logger(__name__)


class ContextStorage:
    """Directory-based storage: one directory per context under a root"""

    def __init__(self, root: Path = None):
        """Initialize storage with default or custom root"""
        root = root or (Path.home() / ".ctxsh" / "contexts")
        # absolute, so hook paths still work after the session changes directory
        self.root = root.expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def get(self, name: str) -> Context:
        """Return the context for a name, whether or not it exists"""
        if not name:
            raise InvalidInvocation("context name cannot be empty")
        if not self.is_valid_name(name):
            raise InvalidInvocation(f"invalid context name '{name}', it must be a single path segment")
        return Context(name=name, path=self.root / name)

    @staticmethod
    def is_valid_name(name: str) -> bool:
        """Check that a name is one path segment directly under the root"""
        if not name or name in (".", ".."):
            return False
        separators = {"/", os.sep, os.altsep} - {None}
        return not any(sep in name for sep in separators)

    def exists(self, name: str) -> bool:
        """Check if a context with this name is on disk"""
        return self.is_valid_name(name) and self.get(name).exists()

    def create(self, name: str) -> Context:
        """Create a context directory with empty enter/leave hooks"""
        context = self.get(name)
        if context.exists():
            raise AlreadyExists(f"context '{name}' already exists")
        context.path.mkdir()
        for hook in (ENTER_HOOK, LEAVE_HOOK):
            (context.path / hook).touch()
        logger.info("context_created", name=name, path=str(context.path))
        return context

    def delete(self, name: str):
        """Remove a context directory and everything in it"""
        context = self.get(name)
        if not context.exists():
            raise NotFound(f"context '{name}' does not exist")
        shutil.rmtree(context.path)
        logger.info("context_deleted", name=name)

    def list_contexts(self) -> List[str]:
        """List all context names"""
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    def list_files(self, name: str) -> List[str]:
        """List files inside a context directory, relative to it"""
        context = self.get(name)
        if not context.exists():
            return []
        return sorted(
            str(p.relative_to(context.path)) for p in context.path.rglob("*") if p.is_file()
        )

    def __repr__(self):
        return f"<ContextStorage root={self.root}>"
