# tests/test_proxy.py
import pathlib
import pytest
from filecrypt_core.models import FileClassification
from filecrypt_core.proxy import EncryptionProxy


def test_transparent_write_and_read_after_setup(make_user, view, registry, crypto, read_raw):
    user = make_user()
    user.setup_server_side("pw")
    proxy = EncryptionProxy("alice", registry, crypto, user.public_key(), user.unlock("pw"))
    view.set_proxy(proxy)

    view.write_all("/alice/files/notes.txt", b"top secret")

    raw = read_raw("/alice/files/notes.txt")
    assert crypto.is_current_format(raw)
    assert registry.get_file_key("alice", "/alice/files/notes.txt") is not None
    assert view.read_all("/alice/files/notes.txt") == b"top secret"
    assert user.find_files("/alice/files").paths(user.classify("/alice/files/notes.txt")) == [
        "/alice/files/notes.txt"
    ]


def test_proxy_ignores_paths_outside_files_dir(make_user, view, registry, crypto, read_raw):
    user = make_user()
    user.setup_server_side("pw")
    view.set_proxy(EncryptionProxy("alice", registry, crypto, user.public_key()))

    view.write_all("/alice/readme", b"plain")
    assert read_raw("/alice/readme") == b"plain"


def test_proxy_without_private_key_returns_raw(make_user, view, registry, crypto, read_raw):
    user = make_user()
    user.setup_server_side("pw")
    view.set_proxy(EncryptionProxy("alice", registry, crypto, user.public_key()))

    view.write_all("/alice/files/x", b"data")
    assert view.read_all("/alice/files/x") == read_raw("/alice/files/x")


def _fail_writes_to(monkeypatch, name):
    real_write = pathlib.Path.write_bytes

    def write_bytes(self, data):
        if self.name == name:
            raise OSError("disk full")
        return real_write(self, data)

    monkeypatch.setattr(pathlib.Path, "write_bytes", write_bytes)


def test_failed_write_leaves_no_key_record(make_user, view, registry, crypto, monkeypatch):
    user = make_user()
    user.setup_server_side("pw")
    view.set_proxy(EncryptionProxy("alice", registry, crypto, user.public_key()))
    with view.raw():
        view.write_all("/alice/files/n.txt", b"plain")
    _fail_writes_to(monkeypatch, "n.txt")

    with pytest.raises(OSError):
        view.write_all("/alice/files/n.txt", b"new content")

    assert registry.get_file_key("alice", "/alice/files/n.txt") is None
    assert user.classify("/alice/files/n.txt") == FileClassification.PLAIN


def test_failed_overwrite_restores_previous_key(make_user, view, registry, crypto, read_raw, monkeypatch):
    user = make_user()
    user.setup_server_side("pw")
    private_key = user.unlock("pw")
    view.set_proxy(EncryptionProxy("alice", registry, crypto, user.public_key(), private_key))
    view.write_all("/alice/files/n.txt", b"first")
    previous = registry.get_file_key("alice", "/alice/files/n.txt")
    _fail_writes_to(monkeypatch, "n.txt")

    with pytest.raises(OSError):
        view.write_all("/alice/files/n.txt", b"second")

    assert registry.get_file_key("alice", "/alice/files/n.txt") == previous
    monkeypatch.undo()
    assert view.read_all("/alice/files/n.txt") == b"first"
