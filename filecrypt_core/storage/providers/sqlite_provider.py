from __future__ import annotations
from typing import Optional, Dict, Any, List
import json, sqlite3, os
from filecrypt_core.crypto import compute_pubkey_fingerprint
from filecrypt_core.storage.provider import KeyRegistry
from filecrypt_core.storage.models import PublicKeyRecord, FileKeyRecord
from filecrypt_core.utils import b64e, b64d, join_path, now_ts


class SQLiteKeyRegistry(KeyRegistry):
    def __init__(self, path="db/filecrypt_keys.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()

        c.execute("""CREATE TABLE IF NOT EXISTS public_keys(
            user_id TEXT PRIMARY KEY,
            pubkey_b64 TEXT NOT NULL,
            pub_key_fpr TEXT,
            updated_at TEXT NOT NULL
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS file_keys(
            user_id TEXT NOT NULL,
            path TEXT NOT NULL,
            wrapped_key_b64 TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (user_id, path)
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS audit(
            ts TEXT,
            event_type TEXT,
            payload TEXT
        )""")

        self.db.commit()

    # --- file keys ---

    def get_file_key(self, user_id: str, path: str) -> Optional[bytes]:
        cur = self.db.execute("SELECT wrapped_key_b64 FROM file_keys WHERE user_id=? AND path=?",
                              (user_id, join_path(path)))
        row = cur.fetchone()
        if not row: return None
        return b64d(row[0])

    def set_file_key(self, path: str, user_id: str, wrapped_key: bytes) -> None:
        rec = FileKeyRecord(user_id=user_id, path=join_path(path), wrapped_key_b64=b64e(wrapped_key))
        self.db.execute(
            "INSERT INTO file_keys(user_id,path,wrapped_key_b64,updated_at) VALUES(?,?,?,?) "
            "ON CONFLICT(user_id,path) DO UPDATE SET wrapped_key_b64=excluded.wrapped_key_b64, "
            "updated_at=excluded.updated_at",
            (rec.user_id, rec.path, rec.wrapped_key_b64, rec.updated_at)
        )
        self.db.commit()

    def delete_file_key(self, path: str, user_id: str) -> None:
        self.db.execute("DELETE FROM file_keys WHERE user_id=? AND path=?", (user_id, join_path(path)))
        self.db.commit()

    def list_file_keys(self, user_id: str) -> List[FileKeyRecord]:
        cur = self.db.execute(
            "SELECT user_id, path, wrapped_key_b64, updated_at FROM file_keys WHERE user_id=? ORDER BY path",
            (user_id,)
        )
        return [FileKeyRecord(*row) for row in cur.fetchall()]

    # --- public keys ---

    def get_public_key(self, user_id: str) -> Optional[bytes]:
        rec = self.get_public_key_record(user_id)
        return b64d(rec.pubkey_b64) if rec else None

    def get_public_key_record(self, user_id: str) -> Optional[PublicKeyRecord]:
        cur = self.db.execute(
            "SELECT user_id, pubkey_b64, pub_key_fpr, updated_at FROM public_keys WHERE user_id=?", (user_id,))
        row = cur.fetchone()
        return PublicKeyRecord(*row) if row else None

    def set_public_key(self, user_id: str, public_key: bytes) -> None:
        rec = PublicKeyRecord(user_id=user_id, pubkey_b64=b64e(public_key),
                              pub_key_fpr=compute_pubkey_fingerprint(public_key))
        self.db.execute(
            "INSERT INTO public_keys(user_id,pubkey_b64,pub_key_fpr,updated_at) VALUES(?,?,?,?) "
            "ON CONFLICT(user_id) DO UPDATE SET pubkey_b64=excluded.pubkey_b64, "
            "pub_key_fpr=excluded.pub_key_fpr, updated_at=excluded.updated_at",
            (rec.user_id, rec.pubkey_b64, rec.pub_key_fpr, rec.updated_at)
        )
        self.db.commit()

    def fetch_by_fingerprint(self, fpr: str):
        cur = self.db.execute(
            "SELECT user_id, pubkey_b64, pub_key_fpr, updated_at FROM public_keys WHERE pub_key_fpr = ?",
            (fpr,)
        )
        row = cur.fetchone()
        return PublicKeyRecord(*row) if row else None

    # --- audit ---

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.db.execute("INSERT INTO audit(ts,event_type,payload) VALUES(?,?,?)",
                        (now_ts(), event_type, json.dumps(payload, separators=(",", ":"), sort_keys=True)))
        self.db.commit()

    def close(self):
        self.db.close()
