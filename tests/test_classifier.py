# tests/test_classifier.py
import os
from filecrypt_core.models import FileClassification
from filecrypt_core.storage import InMemoryKeyRegistry, FileProxy


class DepthRecordingRegistry(InMemoryKeyRegistry):
    """Records whether interception was suppressed at every lookup."""

    def __init__(self, view):
        super().__init__()
        self.view = view
        self.intercepting_at_lookup = []

    def get_file_key(self, user_id, path):
        self.intercepting_at_lookup.append(self.view.guard.intercepting)
        return super().get_file_key(user_id, path)


class TrippingProxy(FileProxy):
    def __init__(self):
        self.calls = []

    def pre_write(self, path, data):
        self.calls.append(("write", path))
        return data

    def post_read(self, path, data):
        self.calls.append(("read", path))
        return data


def _scenario(put_file, registry, crypto):
    put_file("/alice/files/a.txt", b"hello")
    put_file("/alice/files/b.txt", b"opaque bytes")
    registry.set_file_key("/alice/files/b.txt", "alice", b"wrapped")
    put_file("/alice/files/c.txt", crypto.legacy_encrypt(b"old", "oldpw"))


def test_scenario_partitions_files(make_user, put_file, registry, crypto):
    _scenario(put_file, registry, crypto)
    found = make_user().find_files("/alice/files")

    assert [f.name for f in found.plain] == ["a.txt"]
    assert [f.name for f in found.encrypted] == ["b.txt"]
    assert [f.name for f in found.legacy] == ["c.txt"]
    assert found.plain[0].path == "/alice/files/a.txt"
    assert found.failures == []


def test_nested_directories_are_merged(make_user, put_file):
    put_file("/alice/files/top.txt", b"1")
    put_file("/alice/files/d1/mid.txt", b"2")
    put_file("/alice/files/d1/d2/deep.txt", b"3")
    put_file("/alice/files/d3/other.txt", b"4")

    found = make_user().find_files("/alice/files")

    assert found.paths(FileClassification.PLAIN) == [
        "/alice/files/d1/d2/deep.txt",
        "/alice/files/d1/mid.txt",
        "/alice/files/d3/other.txt",
        "/alice/files/top.txt",
    ]


def test_every_file_gets_exactly_one_classification(make_user, put_file, registry, crypto):
    _scenario(put_file, registry, crypto)
    put_file("/alice/files/sub/d.txt", crypto.legacy_encrypt(b"x", "pw"))
    put_file("/alice/files/sub/e.txt", b"")

    found = make_user().find_files("/alice/files")

    all_paths = [f.path for c in FileClassification for f in found.bucket(c)]
    assert len(all_paths) == len(set(all_paths)) == len(found) == 5


def test_registry_record_wins_over_content(make_user, put_file, registry, crypto):
    put_file("/alice/files/looks_legacy.txt", crypto.legacy_encrypt(b"x", "pw"))
    registry.set_file_key("/alice/files/looks_legacy.txt", "alice", b"k")
    user = make_user()
    assert user.classify("/alice/files/looks_legacy.txt") == FileClassification.ENCRYPTED


def test_walk_runs_fully_suppressed_through_recursion(make_user, put_file, view):
    reg = DepthRecordingRegistry(view)
    proxy = TrippingProxy()
    put_file("/alice/files/a.txt", b"1")
    put_file("/alice/files/d1/b.txt", b"2")
    put_file("/alice/files/d1/d2/c.txt", b"3")
    put_file("/alice/files/z.txt", b"4")
    view.set_proxy(proxy)

    found = make_user(reg=reg).find_files("/alice/files")

    assert len(found.plain) == 4
    # the file after the nested dirs is still read raw
    assert reg.intercepting_at_lookup == [False] * 4
    assert proxy.calls == []
    assert view.guard.intercepting


def test_not_a_directory_returns_none(make_user, put_file, view, caplog):
    put_file("/alice/files/a.txt", b"1")
    user = make_user()
    assert user.find_files("/alice/files/a.txt") is None
    assert user.find_files("/nowhere") is None
    assert "not a directory" in caplog.text
    assert view.guard.intercepting


def test_unreadable_subdirectory_is_reported(make_user, put_file, view, monkeypatch):
    put_file("/alice/files/a.txt", b"1")
    put_file("/alice/files/locked/b.txt", b"2")
    real_list = view.list_entries

    def list_entries(path):
        if path.endswith("/locked"):
            raise PermissionError("denied")
        return real_list(path)

    monkeypatch.setattr(view, "list_entries", list_entries)
    found = make_user().find_files("/alice/files")

    assert [f.name for f in found.plain] == ["a.txt"]
    assert [(f.path, f.kind) for f in found.failures] == [("/alice/files/locked", "DirectoryUnreadable")]


def test_staging_leftovers_are_ignored(make_user, put_file):
    put_file("/alice/files/a.txt", b"1")
    put_file("/alice/files/.a.txt.fcstage", b"partial")
    found = make_user().find_files("/alice/files")
    assert [f.name for f in found.plain] == ["a.txt"]


def test_is_encrypted_path(make_user, put_file, crypto):
    kp = crypto.create_keypair()
    put_file("/alice/files/enc", crypto.encrypt_to_keyfile(b"x", kp.public_key).content)
    put_file("/alice/files/plain", b"x")
    user = make_user()
    assert user.is_encrypted_path("/alice/files/enc")
    assert not user.is_encrypted_path("/alice/files/plain")


def test_staging_name_without_target_is_a_user_file(make_user, put_file):
    put_file("/alice/files/.x.fcstage", b"user data")
    found = make_user().find_files("/alice/files")
    assert [f.name for f in found.plain] == [".x.fcstage"]


def test_link_outside_root_is_recorded_and_walk_continues(make_user, put_file, view, tmp_path):
    outside = tmp_path / "outside.txt"
    outside.write_bytes(b"not ours")
    put_file("/alice/files/a.txt", b"1")
    os.symlink(outside, view.local_path("/alice/files") / "escape")
    put_file("/alice/files/z.txt", b"2")

    found = make_user().find_files("/alice/files")

    assert [f.name for f in found.plain] == ["a.txt", "z.txt"]
    assert [(f.path, f.kind) for f in found.failures] == [("/alice/files/escape", "ValueError")]


def test_symlinked_directory_loop_is_not_followed(make_user, put_file, view):
    put_file("/alice/files/d/a.txt", b"1")
    os.symlink(view.local_path("/alice/files"), view.local_path("/alice/files/d") / "loop")

    found = make_user().find_files("/alice/files")

    assert found.paths(FileClassification.PLAIN) == ["/alice/files/d/a.txt"]
    assert [(f.path, f.kind) for f in found.failures] == [("/alice/files/d/loop", "DirectoryUnreadable")]
