"""
filecrypt_core.engine
---------------------
Per-user entry point tying the layout, bootstrap, classifier and bulk
transform together.

    view = LocalStorageView("data")
    registry = ViewKeyRegistry(view)
    user = UserEncryption(view, "alice", registry, CryptoProvider())
    user.setup_server_side("s3cret")       # dirs + keypair + encrypt existing files
    private_key = user.unlock("s3cret")
"""

from __future__ import annotations
from typing import List, Optional
from .classifier import FileClassifier
from .config import EngineConfig, load_config
from .crypto import CryptoProvider
from .errors import (
    KeyPairGenerationFailed, KeyPairIncomplete, KeyPersistenceFailed, LayoutIncomplete, SetupFailed,
)
from .layout import DIRECTORY_COMPONENTS, KeyLayout, LayoutComponent
from .logger import get_logger, set_level
from .models import DiscoveryResult, FileClassification, LegacyCredentials, SetupResult, TransformResult
from .storage.provider import KeyRegistry
from .storage.view import StorageView
from .transform import BulkTransformer

log = get_logger("FileCrypt.Setup")


class UserEncryption:
    def __init__(self, view: StorageView, user_id: str, registry: KeyRegistry,
                 crypto: Optional[CryptoProvider] = None, config: Optional[EngineConfig] = None):
        self.config = config or load_config()
        self.view = view
        self.layout = KeyLayout(user_id)
        self.registry = registry
        self.crypto = crypto or CryptoProvider.from_config(self.config)
        self.classifier = FileClassifier(view, registry, self.crypto, user_id)
        self.transformer = BulkTransformer(view, registry, self.crypto, user_id, self.classifier)

    @classmethod
    def from_config(cls, user_id: str, config: Optional[EngineConfig] = None) -> "UserEncryption":
        """Build a local view and key registry from config (FILECRYPT_* env by default)."""
        from .storage import LocalStorageView, load_key_registry

        config = config or load_config()
        set_level(config.log_level)
        view = LocalStorageView(config.data_dir)
        return cls(view, user_id, load_key_registry(config, view), config=config)

    @property
    def user_id(self) -> str:
        return self.layout.user_id

    def get_path(self, component: LayoutComponent) -> str:
        return self.layout.path(component)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------
    def missing_paths(self) -> List[str]:
        return [p for p in self.layout.ready_paths() if not self.view.exists(p)]

    def is_ready(self) -> bool:
        return not self.missing_paths()

    def require_ready(self) -> None:
        missing = self.missing_paths()
        if missing:
            raise LayoutIncomplete(self.user_id, missing)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------
    def setup_server_side(self, passphrase: Optional[str] = None,
                          legacy: Optional[LegacyCredentials] = None) -> SetupResult:
        """
        Create the user's directories and keypair, then encrypt any plain
        files already in the user's files dir.

        Directory and key failures raise SetupFailed; per-file transform
        failures are reported in the returned result.
        """
        result = SetupResult()
        if not passphrase:
            log.warning(f"[SETUP] {self.user_id}: private key will be wrapped under an empty passphrase")

        for component in DIRECTORY_COMPONENTS:
            path = self.layout.path(component)
            if self._ensure_dir(path):
                result.created.append(path)

        result.keypair_generated = self._ensure_keypair(passphrase or "")
        if result.keypair_generated:
            result.created += [self.layout.public_key_path, self.layout.private_key_path]

        public_key = self._registered_public_key()
        result.transform = self.encrypt_all(public_key, self.layout.user_files_dir, legacy)
        log.info(f"[SETUP] {self.user_id}: ready={self.is_ready()} created={len(result.created)} "
                 f"transform={result.status.value}")
        return result

    def _ensure_dir(self, path: str) -> bool:
        if self.view.exists(path):
            if not self.view.is_dir(path):
                raise SetupFailed(f"{path} exists but is not a directory")
            return False
        try:
            self.view.mkdir(path)
        except OSError as e:
            raise SetupFailed(f"cannot create {path}: {e}") from e
        log.debug(f"[SETUP] created {path}")
        return True

    def _ensure_keypair(self, passphrase: str) -> bool:
        pub_path, priv_path = self.layout.public_key_path, self.layout.private_key_path
        has_pub, has_priv = self.view.exists(pub_path), self.view.exists(priv_path)
        if has_pub and has_priv:
            return False

        if has_pub or has_priv:
            present = pub_path if has_pub else priv_path
            if not self.config.regenerate_partial_keypair:
                raise KeyPairIncomplete(
                    f"{self.user_id}: only {present} exists; refusing to regenerate the keypair "
                    f"(set regenerate_partial_keypair to override)")
            log.warning(f"[SETUP] {self.user_id}: half keypair at {present}, regenerating both halves")

        try:
            keypair = self.crypto.create_keypair()
            wrapped_private = self.crypto.wrap_private_key(keypair.private_key, passphrase)
        except KeyPairGenerationFailed:
            raise
        except Exception as e:
            raise KeyPairGenerationFailed(f"{self.user_id}: {e}") from e

        with self.view.raw():
            if has_pub or has_priv:
                # the stale half must go first or readiness flips before the new pair exists
                try:
                    self.view.delete(pub_path if has_pub else priv_path)
                except OSError as e:
                    raise KeyPersistenceFailed(f"cannot remove stale key {present}: {e}") from e
            try:
                self.view.write_all(pub_path, keypair.public_key)
            except OSError as e:
                raise KeyPersistenceFailed(f"cannot write {pub_path}: {e}") from e
            # private key last: readiness only flips once both halves exist
            try:
                self.view.write_all(priv_path, wrapped_private)
            except OSError as e:
                self._remove_quietly(pub_path)
                raise KeyPersistenceFailed(f"cannot write {priv_path}: {e}") from e

        try:
            self.registry.set_public_key(self.user_id, keypair.public_key)
        except Exception as e:
            raise KeyPersistenceFailed(f"cannot register public key for {self.user_id}: {e}") from e

        self.registry.log_event("keypair_generated", {"user_id": self.user_id})
        log.info(f"[SETUP] {self.user_id}: generated keypair")
        return True

    def _registered_public_key(self) -> bytes:
        try:
            public_key = self.registry.get_public_key(self.user_id)
            if public_key is None:
                with self.view.raw():
                    public_key = self.view.read_all(self.layout.public_key_path)
                self.registry.set_public_key(self.user_id, public_key)
        except Exception as e:
            raise KeyPersistenceFailed(f"cannot resolve public key for {self.user_id}: {e}") from e
        return public_key

    def _remove_quietly(self, path: str) -> None:
        try:
            if self.view.exists(path):
                self.view.delete(path)
        except OSError as e:
            log.error(f"[SETUP] could not roll back {path}: {e}")

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------
    def unlock(self, passphrase: Optional[str]) -> bytes:
        """Return the user's private key, unwrapped with `passphrase`."""
        self.require_ready()
        with self.view.raw():
            wrapped = self.view.read_all(self.layout.private_key_path)
        return self.crypto.unwrap_private_key(wrapped, passphrase)

    def public_key(self) -> Optional[bytes]:
        return self.registry.get_public_key(self.user_id)

    # ------------------------------------------------------------------
    # Classification / transform
    # ------------------------------------------------------------------
    def find_files(self, directory: str) -> Optional[DiscoveryResult]:
        return self.classifier.find_files(directory)

    def classify(self, path: str) -> FileClassification:
        return self.classifier.classify(path)

    def is_encrypted_path(self, path: str) -> bool:
        return self.classifier.is_encrypted_path(path)

    def encrypt_all(self, public_key: bytes, dir_path: str,
                    legacy: Optional[LegacyCredentials] = None) -> TransformResult:
        return self.transformer.encrypt_all(public_key, dir_path, legacy)
