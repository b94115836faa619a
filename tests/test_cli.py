import pytest
from click.testing import CliRunner
from unittest.mock import patch

from ctxsh.cli import cli


@pytest.fixture
def runner(monkeypatch):
    """Create a CLI runner for testing"""
    monkeypatch.delenv("CTXSH_CONTEXT", raising=False)
    return CliRunner()


def test_cli_version(runner):
    result = runner.invoke(cli, ['--version'])
    assert result.exit_code == 0
    assert 'version 0.1.0' in result.output


def test_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'named shell contexts' in result.output


def test_new_and_list(runner, tmp_path):
    root = str(tmp_path)
    result = runner.invoke(cli, ['--root', root, 'new', 'work'])
    assert result.exit_code == 0
    assert "Created context 'work'" in result.output
    assert (tmp_path / 'work' / 'enter').exists()

    result = runner.invoke(cli, ['--root', root, 'new', 'work'])
    assert result.exit_code == 1
    assert 'already exists' in result.output

    result = runner.invoke(cli, ['--root', root, 'list'])
    assert result.exit_code == 0
    assert 'work' in result.output


def test_list_empty(runner, tmp_path):
    result = runner.invoke(cli, ['--root', str(tmp_path), 'list'])
    assert result.exit_code == 0
    assert 'No contexts found' in result.output


def test_root_from_environment(runner, tmp_path, monkeypatch):
    monkeypatch.setenv('CTXSH_ROOT', str(tmp_path))
    result = runner.invoke(cli, ['new', 'home'])
    assert result.exit_code == 0
    assert (tmp_path / 'home').is_dir()


def test_delete(runner, tmp_path):
    root = str(tmp_path)
    runner.invoke(cli, ['--root', root, 'new', 'work'])

    result = runner.invoke(cli, ['--root', root, 'delete', 'work'], input='n\n')
    assert 'Aborted' in result.output
    assert (tmp_path / 'work').exists()

    result = runner.invoke(cli, ['--root', root, 'delete', 'work'], input='y\n')
    assert result.exit_code == 0
    assert "Deleted context 'work'" in result.output
    assert not (tmp_path / 'work').exists()

    result = runner.invoke(cli, ['--root', root, 'delete', '-y', 'work'])
    assert result.exit_code == 1
    assert 'does not exist' in result.output


def test_delete_active_context_from_session_child(runner, tmp_path, monkeypatch):
    root = str(tmp_path)
    runner.invoke(cli, ['--root', root, 'new', 'work'])
    monkeypatch.setenv('CTXSH_CONTEXT', 'work')

    result = runner.invoke(cli, ['--root', root, 'delete', '-y', 'work'])
    assert result.exit_code == 1
    assert 'while it is active' in result.output
    assert (tmp_path / 'work').exists()

    result = runner.invoke(cli, ['--root', root, 'list'])
    assert '* work' in result.output


def test_edit(runner, tmp_path, monkeypatch):
    root = str(tmp_path)
    runner.invoke(cli, ['--root', root, 'new', 'work'])
    monkeypatch.setenv('CTXSH_EDITOR', 'myeditor')

    result = runner.invoke(cli, ['--root', root, 'edit', 'enter'])
    assert result.exit_code == 1
    assert 'not in a context' in result.output

    monkeypatch.setenv('CTXSH_CONTEXT', 'work')
    with patch('click.edit') as mock_edit:
        result = runner.invoke(cli, ['--root', root, 'edit', 'enter'])
    assert result.exit_code == 0
    mock_edit.assert_called_once()
    assert mock_edit.call_args.kwargs['filename'] == str((tmp_path / 'work' / 'enter').resolve())
    assert mock_edit.call_args.kwargs['editor'] == 'myeditor'


def test_edit_without_editor(runner, tmp_path, monkeypatch):
    for key in ('CTXSH_EDITOR', 'VISUAL', 'EDITOR'):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv('CTXSH_CONTEXT', 'work')
    runner.invoke(cli, ['--root', str(tmp_path), 'new', 'work'])

    result = runner.invoke(cli, ['--root', str(tmp_path), 'edit', 'enter'])
    assert result.exit_code == 1
    assert 'no editor configured' in result.output


def test_shell_session(runner, tmp_path):
    root = str(tmp_path)
    runner.invoke(cli, ['--root', root, 'new', 'work'])

    with patch('ctxsh.shell.Shell.install_exit_trap'):
        result = runner.invoke(cli, ['--root', root, 'shell', 'work'],
                               input='ctx list\necho hello\nexit 0\n')
    assert result.exit_code == 0
    assert '* work' in result.output
    assert (tmp_path / 'work' / 'history').read_text() == 'ctx list\necho hello\nexit 0\n'


def test_shell_unknown_context(runner, tmp_path):
    with patch('ctxsh.shell.Shell.install_exit_trap'):
        result = runner.invoke(cli, ['--root', str(tmp_path), 'shell', 'nope'])
    assert result.exit_code == 1
    assert 'does not exist' in result.output


def test_bad_history_size(runner, tmp_path, monkeypatch):
    monkeypatch.setenv('CTXSH_HISTSIZE', 'lots')
    result = runner.invoke(cli, ['--root', str(tmp_path), 'list'])
    assert result.exit_code == 1
    assert 'CTXSH_HISTSIZE' in result.output
    assert 'Traceback' not in result.output


def test_delete_dot_is_rejected(runner, tmp_path):
    root = str(tmp_path)
    runner.invoke(cli, ['--root', root, 'new', 'work'])

    result = runner.invoke(cli, ['--root', root, 'delete', '-y', '.'])
    assert result.exit_code == 1
    assert 'single path segment' in result.output
    assert (tmp_path / 'work' / 'enter').exists()
