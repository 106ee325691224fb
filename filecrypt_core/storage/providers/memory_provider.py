from typing import Optional, Dict, Any
from filecrypt_core.crypto import compute_pubkey_fingerprint
from filecrypt_core.storage.models import FileKeyRecord, PublicKeyRecord
from filecrypt_core.storage.provider import KeyRegistry
from filecrypt_core.utils import b64e, b64d, join_path

class InMemoryKeyRegistry(KeyRegistry):
    def __init__(self):
        self.public_keys = {}
        self.file_keys = {}
        self.audit = []

    # file keys
    def get_file_key(self, user_id: str, path: str) -> Optional[bytes]:
        rec = self.file_keys.get((user_id, join_path(path)))
        return b64d(rec.wrapped_key_b64) if rec else None

    def set_file_key(self, path: str, user_id: str, wrapped_key: bytes):
        path = join_path(path)
        self.file_keys[(user_id, path)] = FileKeyRecord(user_id=user_id, path=path, wrapped_key_b64=b64e(wrapped_key))

    def delete_file_key(self, path: str, user_id: str):
        self.file_keys.pop((user_id, join_path(path)), None)

    # public keys
    def get_public_key(self, user_id: str) -> Optional[bytes]:
        rec = self.public_keys.get(user_id)
        return b64d(rec.pubkey_b64) if rec else None

    def set_public_key(self, user_id: str, public_key: bytes):
        self.public_keys[user_id] = PublicKeyRecord(
            user_id=user_id, pubkey_b64=b64e(public_key), pub_key_fpr=compute_pubkey_fingerprint(public_key))

    def fetch_by_fingerprint(self, fpr: str):
        return next((rec for rec in self.public_keys.values() if rec.pub_key_fpr == fpr), None)

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]):
        self.audit.append((event_type, payload))
