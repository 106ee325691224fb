from __future__ import annotations
from typing import Optional, Dict, Any
import posixpath
from filecrypt_core.constants import KEYFILE_SUFFIX
from filecrypt_core.layout import KeyLayout
from filecrypt_core.logger import get_logger
from filecrypt_core.storage.provider import KeyRegistry
from filecrypt_core.storage.view import StorageView
from filecrypt_core.utils import join_path, relative_to

log = get_logger("FileCrypt.Registry.View")


class ViewKeyRegistry(KeyRegistry):
    """
    Keeps key material inside the storage tree itself.

    - wrapped file keys mirror the user's files under the keyfiles dir:
      /alice/files/docs/a.txt -> /alice/files_encryption/keyfiles/docs/a.txt.key
    - public keys live at the layout's public key path

    All access runs in raw mode so key files are never intercepted.
    """

    def __init__(self, view: StorageView):
        self.view = view

    def keyfile_path(self, user_id: str, path: str) -> str:
        layout = KeyLayout(user_id)
        rel = relative_to(path, layout.user_files_dir)
        if not rel:
            raise ValueError(f"{path} is the files root, not a file")
        return join_path(layout.keyfiles_path, rel + KEYFILE_SUFFIX)

    def _ensure_parents(self, path: str) -> None:
        missing = []
        parent = posixpath.dirname(path)
        while parent != "/" and not self.view.exists(parent):
            missing.append(parent)
            parent = posixpath.dirname(parent)
        for d in reversed(missing):
            self.view.mkdir(d)

    # --- file keys ---

    def get_file_key(self, user_id: str, path: str) -> Optional[bytes]:
        try:
            kf = self.keyfile_path(user_id, path)
        except ValueError:
            # only files under the user's files dir can have key records
            return None
        with self.view.raw():
            if not self.view.is_file(kf):
                return None
            return self.view.read_all(kf)

    def set_file_key(self, path: str, user_id: str, wrapped_key: bytes) -> None:
        kf = self.keyfile_path(user_id, path)
        with self.view.raw():
            self._ensure_parents(kf)
            self.view.write_all(kf, wrapped_key)

    def delete_file_key(self, path: str, user_id: str) -> None:
        kf = self.keyfile_path(user_id, path)
        with self.view.raw():
            if self.view.exists(kf):
                self.view.delete(kf)

    # --- public keys ---

    def get_public_key(self, user_id: str) -> Optional[bytes]:
        pk = KeyLayout(user_id).public_key_path
        with self.view.raw():
            if not self.view.is_file(pk):
                return None
            return self.view.read_all(pk)

    def set_public_key(self, user_id: str, public_key: bytes) -> None:
        pk = KeyLayout(user_id).public_key_path
        with self.view.raw():
            if self.view.is_file(pk) and self.view.read_all(pk) == public_key:
                return
            self._ensure_parents(pk)
            self.view.write_all(pk, public_key)

    # --- audit ---

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        log.info(f"[REGISTRY] {event_type} {payload}")
