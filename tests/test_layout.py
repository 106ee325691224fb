# tests/test_layout.py
import dataclasses
import pytest
from filecrypt_core.layout import KeyLayout, LayoutComponent, READY_COMPONENTS


def test_layout_paths_for_user():
    lay = KeyLayout("alice")
    assert lay.user_dir == "/alice"
    assert lay.user_files_dir == "/alice/files"
    assert lay.public_key_dir == "/public-keys"
    assert lay.encryption_dir == "/alice/files_encryption"
    assert lay.keyfiles_path == "/alice/files_encryption/keyfiles"
    assert lay.share_keys_path == "/alice/files_encryption/share-keys"
    assert lay.public_key_path == "/public-keys/alice.public.key"
    assert lay.private_key_path == "/alice/files_encryption/alice.private.key"


@pytest.mark.parametrize("user_id", ["alice", "bob", "user@example.com", "x"])
def test_layout_is_pure(user_id):
    assert KeyLayout(user_id).as_dict() == KeyLayout(user_id).as_dict()
    assert KeyLayout(user_id) == KeyLayout(user_id)


def test_path_accessor_accepts_enum_and_name():
    lay = KeyLayout("bob")
    assert lay.path(LayoutComponent.PUBLIC_KEY_PATH) == lay.public_key_path
    assert lay.path("keyfilesPath") == lay.keyfiles_path
    with pytest.raises(ValueError):
        lay.path("nonsense")


def test_ready_paths_cover_the_five_required_components():
    lay = KeyLayout("carol")
    assert len(lay.ready_paths()) == len(READY_COMPONENTS) == 5
    assert lay.user_files_dir not in lay.ready_paths()


@pytest.mark.parametrize("bad", ["", "a/b", ".", "..", "a\\b"])
def test_invalid_user_ids_rejected(bad):
    with pytest.raises(ValueError):
        KeyLayout(bad)


def test_layout_is_immutable():
    lay = KeyLayout("alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        lay.user_id = "mallory"
