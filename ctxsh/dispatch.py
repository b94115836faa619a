"""The in-session ``ctx`` command: argument checking, messages and completion."""

from typing import List

import click

from ctxsh.errors import CtxshError, InvalidInvocation, UnknownCommand
from ctxsh.manager import ContextManager

ROOT_COMMAND = "ctx"

USAGE = f"""\
Usage: {ROOT_COMMAND} <command> [args]

Commands:
  new <name>       create a context
  delete <name>    delete a context
  enter <name>     enter a context (runs its enter hook, loads its history)
  leave            leave the current context (saves history, runs leave hook)
  edit <file>      edit a file in the current context, e.g. 'enter' or 'leave'
  reload           leave and re-enter the current context
  list             list contexts
  help             show this message
"""

# name -> argument names
COMMANDS = {
    "new": ["name"],
    "delete": ["name"],
    "enter": ["name"],
    "leave": [],
    "edit": ["file"],
    "reload": [],
    "list": [],
    "help": [],
}


def print_usage() -> None:
    """Print the ctx usage text"""
    click.echo(USAGE, nl=False)


def report_error(message: str) -> None:
    """Print a user error in red on stderr"""
    click.secho(f"{ROOT_COMMAND}: {message}", fg="red", err=True)


def _check_args(command: str, args: List[str]) -> None:
    expected = COMMANDS[command]
    if len(args) != len(expected):
        usage = " ".join([ROOT_COMMAND, command] + [f"<{arg}>" for arg in expected])
        raise InvalidInvocation(f"usage: {usage}")
    if expected and not args[0]:
        raise InvalidInvocation(f"{command}: argument cannot be empty")


def _list(manager: ContextManager) -> None:
    names = manager.list()
    if not names:
        click.echo("No contexts found")
        return
    for name in names:
        if name == manager.current:
            click.echo(click.style(f"* {name}", fg="green", bold=True))
        else:
            click.echo(f"  {name}")


def run(manager: ContextManager, command: str, args: List[str]) -> None:
    """Run one ctx subcommand; raises CtxshError on user errors."""
    if command not in COMMANDS:
        raise UnknownCommand(f"unknown command '{command}'")
    _check_args(command, args)

    if command == "new":
        manager.create(args[0])
        click.secho(f"Created context '{args[0]}'", fg="green")
    elif command == "delete":
        manager.delete(args[0])
        click.secho(f"Deleted context '{args[0]}'", fg="green")
    elif command == "enter":
        manager.enter(args[0])
    elif command == "leave":
        manager.leave()
    elif command == "edit":
        manager.edit(args[0])
    elif command == "reload":
        manager.reload()
    elif command == "list":
        _list(manager)
    else:
        print_usage()


def dispatch(manager: ContextManager, argv: List[str]) -> int:
    """Run ``ctx`` with argv (without the root command) and return its status.

    User errors are reported and turned into status 1. Hook script failures
    are left to propagate.
    """
    if not argv:
        print_usage()
        return 0

    command, args = argv[0], argv[1:]
    try:
        run(manager, command, args)
    except UnknownCommand as e:
        report_error(e.message)
        print_usage()
        return 1
    except CtxshError as e:
        report_error(e.message)
        return 1
    return 0


def complete(manager: ContextManager, words: List[str], text: str) -> List[str]:
    """Completion candidates for the word being typed.

    words are the complete words before the cursor, starting with the root
    command; text is the partial word under the cursor.
    """
    if not words or words[0] != ROOT_COMMAND:
        return []
    if len(words) == 1:
        candidates = list(COMMANDS)
    elif len(words) == 2 and words[1] in ("delete", "enter"):
        candidates = manager.list()
    elif len(words) == 2 and words[1] == "edit":
        candidates = manager.files()
    else:
        candidates = []
    return [c for c in candidates if c.startswith(text)]
