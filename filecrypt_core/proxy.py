# filecrypt_core/proxy.py
from __future__ import annotations
from typing import Optional
from .crypto import CryptoProvider
from .layout import KeyLayout
from .logger import get_logger
from .storage.provider import KeyRegistry
from .storage.view import FileProxy
from .utils import is_inside

log = get_logger("FileCrypt.Proxy")


class EncryptionProxy(FileProxy):
    """
    Transparent keyfile encryption for one user's files directory.

    - pre_write: plain bytes written under /<uid>/files are encrypted to a
      fresh keyfile; the wrapped key is registered before the write lands
      and put back to its previous state if the write fails.
    - post_read: envelope bytes with a registered key are decrypted when a
      private key has been supplied (see UserEncryption.unlock).

    Everything outside the files directory passes through untouched.
    """

    def __init__(self, user_id: str, registry: KeyRegistry, crypto: CryptoProvider,
                 public_key: bytes, private_key: Optional[bytes] = None):
        self.layout = KeyLayout(user_id)
        self.registry = registry
        self.crypto = crypto
        self.public_key = public_key
        self.private_key = private_key
        # key records displaced by writes still in flight
        self._displaced = {}

    def _handles(self, path: str) -> bool:
        return is_inside(path, self.layout.user_files_dir) and path != self.layout.user_files_dir

    def pre_write(self, path: str, data: bytes) -> bytes:
        if not self._handles(path) or self.crypto.is_current_format(data):
            return data
        result = self.crypto.encrypt_to_keyfile(data, self.public_key)
        self._displaced[path] = self.registry.get_file_key(self.layout.user_id, path)
        self.registry.set_file_key(path, self.layout.user_id, result.wrapped_key)
        log.debug(f"[PROXY] encrypted write {path}")
        return result.content

    def post_write(self, path: str) -> None:
        self._displaced.pop(path, None)

    def write_failed(self, path: str) -> None:
        if path not in self._displaced:
            return
        previous = self._displaced.pop(path)
        if previous is None:
            self.registry.delete_file_key(path, self.layout.user_id)
        else:
            self.registry.set_file_key(path, self.layout.user_id, previous)
        log.warning(f"[PROXY] write to {path} failed, key record rolled back")

    def post_read(self, path: str, data: bytes) -> bytes:
        if not self._handles(path) or self.private_key is None or not self.crypto.is_current_format(data):
            return data
        wrapped = self.registry.get_file_key(self.layout.user_id, path)
        if wrapped is None:
            log.warning(f"[PROXY] {path} has envelope content but no key record")
            return data
        log.debug(f"[PROXY] decrypted read {path}")
        return self.crypto.decrypt_keyfile(data, wrapped, self.private_key)
