from pathlib import Path

import pytest

from ctxsh.errors import AlreadyExists, InvalidInvocation, NotFound
from ctxsh.storage.context_storage import ContextStorage


@pytest.fixture
def storage(tmp_path):
    """Create storage rooted in a temporary directory"""
    return ContextStorage(tmp_path / "contexts")


def test_create_context(storage):
    """Test creating a context with hook placeholders"""
    context = storage.create("work")
    assert context.exists()
    assert context.enter_hook.read_text() == ""
    assert context.leave_hook.read_text() == ""
    assert not context.history_path.exists()


def test_create_existing_context_fails(storage):
    """Creating twice fails and leaves the directory untouched"""
    context = storage.create("work")
    context.enter_hook.write_text("export A=1\n")

    with pytest.raises(AlreadyExists):
        storage.create("work")
    assert context.enter_hook.read_text() == "export A=1\n"


def test_create_empty_name(storage):
    with pytest.raises(InvalidInvocation):
        storage.create("")


def test_delete_context(storage):
    """Deleting removes hooks and history"""
    context = storage.create("work")
    context.history_path.write_text("ls\n")
    storage.delete("work")
    assert not context.path.exists()
    assert storage.list_contexts() == []


def test_delete_missing_context(storage):
    with pytest.raises(NotFound):
        storage.delete("nope")


def test_list_contexts(storage):
    """Contexts are listed alphabetically; stray files are ignored"""
    for name in ("home", "work", "blog"):
        storage.create(name)
    (storage.root / "notes.txt").write_text("not a context")
    assert storage.list_contexts() == ["blog", "home", "work"]


def test_list_tracks_create_and_delete(storage):
    """List matches the set of created and not deleted contexts"""
    expected = set()
    for op, name in [("c", "a"), ("c", "b"), ("d", "a"), ("c", "c"), ("c", "a"), ("d", "b")]:
        if op == "c":
            storage.create(name)
            expected.add(name)
        else:
            storage.delete(name)
            expected.discard(name)
        assert set(storage.list_contexts()) == expected


def test_list_files(storage):
    context = storage.create("work")
    (context.path / "scripts").mkdir()
    (context.path / "scripts" / "deploy.sh").write_text("echo deploy")
    assert storage.list_files("work") == ["enter", "leave", "scripts/deploy.sh"]
    assert storage.list_files("missing") == []


@pytest.mark.parametrize("name", [".", "..", "a/b", "../escape"])
def test_name_must_be_a_single_segment(storage, name):
    with pytest.raises(InvalidInvocation):
        storage.create(name)
    with pytest.raises(InvalidInvocation):
        storage.delete(name)
    assert not storage.exists(name)


def test_delete_dot_keeps_root(storage):
    """Deleting '.' must not remove the whole context root"""
    storage.create("work")
    with pytest.raises(InvalidInvocation):
        storage.delete(".")
    assert storage.root.is_dir()
    assert storage.list_contexts() == ["work"]


def test_is_valid_name():
    assert ContextStorage.is_valid_name("work")
    assert ContextStorage.is_valid_name(".hidden")
    assert not ContextStorage.is_valid_name("")
    assert not ContextStorage.is_valid_name("..")
    assert not ContextStorage.is_valid_name("a/b")


def test_relative_root_is_made_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    storage = ContextStorage(Path("rel-root"))
    assert storage.root == (tmp_path / "rel-root").resolve()
    assert storage.create("work").enter_hook.is_absolute()
