class CtxshError(Exception):
    """Base class for user-facing errors. Never fatal to a session."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInvocation(CtxshError):
    """Wrong number or shape of arguments"""


class AlreadyExists(CtxshError):
    pass


class NotFound(CtxshError):
    pass


class AlreadyInContext(CtxshError):
    """Entering a context while a different one is active"""


class NoActiveContext(CtxshError):
    pass


class NoEditorConfigured(CtxshError):
    pass


class UnknownCommand(CtxshError):
    pass


class ActiveContextError(CtxshError):
    """The active context cannot be deleted"""


class EditorFailed(CtxshError):
    """The configured editor could not be started or exited with an error"""


class ConfigError(CtxshError):
    """An environment variable holds a value ctxsh cannot use"""
