# tests/test_config.py
import pytest
from filecrypt_core.config import load_config


def test_defaults(monkeypatch):
    for var in ("FILECRYPT_REGISTRY", "FILECRYPT_REGENERATE_PARTIAL_KEYPAIR", "FILECRYPT_ARGON2_T"):
        monkeypatch.delenv(var, raising=False)
    cfg = load_config()
    assert cfg.registry == "view"
    assert cfg.regenerate_partial_keypair is False
    assert cfg.argon2_t_cost == 3


def test_env_and_overrides(monkeypatch):
    monkeypatch.setenv("FILECRYPT_REGISTRY", "SQLite")
    monkeypatch.setenv("FILECRYPT_REGENERATE_PARTIAL_KEYPAIR", "yes")
    monkeypatch.setenv("FILECRYPT_ARGON2_T", "5")
    cfg = load_config()
    assert cfg.registry == "sqlite"
    assert cfg.regenerate_partial_keypair is True
    assert cfg.argon2_t_cost == 5

    cfg = load_config({"argon2_t_cost": 2, "regenerate_partial_keypair": False})
    assert cfg.argon2_t_cost == 2
    assert cfg.regenerate_partial_keypair is False


def test_unknown_keys_rejected():
    with pytest.raises(ValueError):
        load_config({"passphrase": "x"})
