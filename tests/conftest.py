# tests/conftest.py
import posixpath
import pytest
from filecrypt_core.config import load_config
from filecrypt_core.crypto import CryptoProvider
from filecrypt_core.engine import UserEncryption
from filecrypt_core.storage import LocalStorageView, ViewKeyRegistry


@pytest.fixture
def crypto():
    # Cheap KDF parameters keep the suite fast
    return CryptoProvider(t_cost=1, m_cost_kib=1024, parallelism=1, legacy_iterations=1000)


@pytest.fixture
def view(tmp_path):
    return LocalStorageView(tmp_path / "data")


@pytest.fixture
def registry(view):
    return ViewKeyRegistry(view)


@pytest.fixture
def make_user(view, registry, crypto):
    def _make(user_id="alice", reg=None, **overrides):
        cfg = load_config({"registry": "view", **overrides})
        return UserEncryption(view, user_id, reg or registry, crypto, cfg)
    return _make


@pytest.fixture
def put_file(view):
    """Write raw bytes at a virtual path, creating parent directories."""
    def _put(path, data):
        missing = []
        parent = posixpath.dirname(path)
        while parent != "/" and not view.exists(parent):
            missing.append(parent)
            parent = posixpath.dirname(parent)
        for d in reversed(missing):
            view.mkdir(d)
        with view.raw():
            view.write_all(path, data)
    return _put


@pytest.fixture
def read_raw(view):
    def _read(path):
        with view.raw():
            return view.read_all(path)
    return _read
