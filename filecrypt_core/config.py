"""
filecrypt_core.config
---------------------
Runtime configuration. Values resolve from an overrides dict first, then
FILECRYPT_* environment variables, then defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import os
from .constants import DEFAULT_ARGON2_T_COST, DEFAULT_ARGON2_M_COST_KIB, DEFAULT_ARGON2_PARALLELISM

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    data_dir: str = "data"
    registry: str = "view"          # view | sqlite | memory
    db_path: str = "db/filecrypt_keys.db"
    log_level: str = "INFO"
    # Regenerate the whole keypair when only one half is on storage.
    # Off by default: a new public key orphans everything wrapped to the old one.
    regenerate_partial_keypair: bool = False
    argon2_t_cost: int = DEFAULT_ARGON2_T_COST
    argon2_m_cost_kib: int = DEFAULT_ARGON2_M_COST_KIB
    argon2_parallelism: int = DEFAULT_ARGON2_PARALLELISM


_ENV = {
    "data_dir": "FILECRYPT_DATA_DIR",
    "registry": "FILECRYPT_REGISTRY",
    "db_path": "FILECRYPT_DB_PATH",
    "log_level": "FILECRYPT_LOG_LEVEL",
    "regenerate_partial_keypair": "FILECRYPT_REGENERATE_PARTIAL_KEYPAIR",
    "argon2_t_cost": "FILECRYPT_ARGON2_T",
    "argon2_m_cost_kib": "FILECRYPT_ARGON2_M",
    "argon2_parallelism": "FILECRYPT_ARGON2_P",
}


def _coerce(value, default):
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE
    if isinstance(default, int):
        return int(value)
    return str(value)


def load_config(overrides: dict | None = None) -> EngineConfig:
    overrides = overrides or {}
    unknown = set(overrides) - {f.name for f in fields(EngineConfig)}
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    defaults = EngineConfig()
    values = {}
    for f in fields(EngineConfig):
        default = getattr(defaults, f.name)
        if f.name in overrides:
            raw = overrides[f.name]
        else:
            raw = os.getenv(_ENV[f.name])
        values[f.name] = default if raw is None else _coerce(raw, default)

    cfg = EngineConfig(**values)
    cfg.registry = cfg.registry.lower()
    cfg.log_level = cfg.log_level.upper()
    return cfg
