import os
import subprocess
import sys
from pathlib import Path

import click

from ctxsh import __version__
from ctxsh.config import CtxshConfig, load_config
from ctxsh.errors import CtxshError
from ctxsh.history import HistoryStore, ReadlineHistory
from ctxsh.hooks import HookRunner
from ctxsh.manager import CONTEXT_VAR, ContextManager
from ctxsh.models import SessionState
from ctxsh.shell import Shell, load_readline
from ctxsh.storage.context_storage import ContextStorage
from ctxsh.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_manager(config: CtxshConfig, session: SessionState = None,
                  history: HistoryStore = None) -> ContextManager:
    """Wire a ContextManager from configuration"""
    return ContextManager(
        storage=ContextStorage(config.root),
        session=session,
        history=history or HistoryStore(config.history_size),
        hooks=HookRunner(shell=config.shell),
        editor=config.editor,
    )


def inherited_session() -> SessionState:
    """Session state for a child of a ctxsh shell, which exports the active context"""
    return SessionState(active=os.environ.get(CONTEXT_VAR) or None)


def fail(error: CtxshError):
    click.secho(f"Error: {error.message}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="ctxsh")
@click.option('--root', type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding the contexts (default: $CTXSH_ROOT or ~/.ctxsh/contexts)')
@click.pass_context
def cli(ctx, root):
    """ctxsh - named shell contexts with their own hooks and history"""
    try:
        config = load_config(root)
    except CtxshError as e:
        fail(e)
    setup_logging(level=config.log_level, log_file=config.log_file)
    ctx.obj = config


@cli.command()
@click.argument('name')
@click.pass_obj
def new(config, name):
    """Create a new context"""
    try:
        context = build_manager(config).create(name)
    except CtxshError as e:
        fail(e)
    click.echo(click.style(f"Created context '{name}'", fg="green") + f" in {context.path}")


@cli.command()
@click.argument('name')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def delete(config, name, yes):
    """Delete a context with its hooks and history"""
    manager = build_manager(config, session=inherited_session())
    if not yes and not click.confirm(f"Delete context '{name}'?", default=False):
        click.echo("Aborted")
        return
    try:
        manager.delete(name)
    except CtxshError as e:
        fail(e)
    click.secho(f"Deleted context '{name}'", fg="green")


@cli.command(name='list')
@click.pass_obj
def list_contexts(config):
    """List contexts"""
    session = inherited_session()
    names = build_manager(config, session=session).list()
    if not names:
        click.echo("No contexts found")
        return
    for name in names:
        if name == session.active:
            click.echo(click.style(f"* {name}", fg="green", bold=True))
        else:
            click.echo(f"  {name}")


@cli.command()
@click.argument('file')
@click.pass_obj
def edit(config, file):
    """Edit FILE in the current context, e.g. 'enter' or 'leave'"""
    try:
        path = build_manager(config, session=inherited_session()).edit(file)
    except CtxshError as e:
        fail(e)
    logger.debug("edited", path=str(path))


@cli.command()
@click.argument('name', required=False)
@click.pass_obj
def shell(config, name):
    """Start an interactive session, optionally entering context NAME"""
    if os.environ.get(CONTEXT_VAR):
        fail(CtxshError(f"already inside a ctxsh session in context '{os.environ[CONTEXT_VAR]}'"))

    readline = load_readline()
    if readline is not None:
        history = ReadlineHistory(readline, config.history_size)
    else:
        history = HistoryStore(config.history_size)
    manager = build_manager(config, history=history)
    session = Shell(manager, shell=config.shell, readline=readline)
    session.install_exit_trap()

    if name:
        try:
            manager.enter(name)
        except CtxshError as e:
            fail(e)
        except OSError as e:
            fail(CtxshError(str(e)))
        except subprocess.CalledProcessError as e:
            sys.exit(e.returncode)

    click.echo(f"ctxsh {__version__} - type 'ctx help' for commands, 'exit' to quit")
    sys.exit(session.run())


if __name__ == '__main__':
    cli()
