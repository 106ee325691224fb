# filecrypt_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from filecrypt_core.utils import now_ts


@dataclass
class PublicKeyRecord:
    """
    Storage-level representation of a user's registered public key.

    Provider-agnostic; used by the SQLite and in-memory registries.
    """
    user_id: str
    pubkey_b64: str
    pub_key_fpr: str = ""
    updated_at: str = field(default_factory=now_ts)


@dataclass
class FileKeyRecord:
    user_id: str
    path: str
    wrapped_key_b64: str
    updated_at: str = field(default_factory=now_ts)
