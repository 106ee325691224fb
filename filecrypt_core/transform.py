# filecrypt_core/transform.py
"""
Bulk rewrite of plain and legacy files into the current keyfile format.

Each file is committed as one unit:

    1. raw read, encrypt (or legacy re-encrypt)
    2. write new bytes to a hidden staging sibling
    3. persist the wrapped key in the registry
    4. atomically rename the staging file over the original

A failure before (4) removes the staging file and any key written in (3),
leaving the original content and registry state as they were.
"""

from __future__ import annotations
from typing import Optional
from .classifier import FileClassifier, staging_path
from .crypto import CryptoProvider
from .errors import CryptoError, DirectoryUnreadable, LegacyMigrationUnavailable, PartialTransformFailure
from .logger import get_logger
from .models import FileFailure, KeyfileResult, LegacyCredentials, TransformResult
from .storage.provider import KeyRegistry
from .storage.view import StorageView

log = get_logger("FileCrypt.Transform")


class BulkTransformer:
    def __init__(self, view: StorageView, registry: KeyRegistry, crypto: CryptoProvider,
                 user_id: str, classifier: Optional[FileClassifier] = None):
        self.view = view
        self.registry = registry
        self.crypto = crypto
        self.user_id = user_id
        self.classifier = classifier or FileClassifier(view, registry, crypto, user_id)

    def encrypt_all(self, public_key: bytes, dir_path: str,
                    legacy: Optional[LegacyCredentials] = None) -> TransformResult:
        result = TransformResult()
        found = self.classifier.find_files(dir_path)
        if found is None:
            result.failures.append(FileFailure.from_exc(dir_path, DirectoryUnreadable(dir_path)))
            log.error(f"[TRANSFORM] {dir_path} cannot be walked")
            return result

        # Walk failures are reported alongside transform failures
        result.failures.extend(found.failures)
        # already in the current format
        result.skipped.extend(item.path for item in found.encrypted)

        for item in found.plain:
            self._encrypt_plain(item.path, public_key, result)

        for item in found.legacy:
            self._migrate_legacy(item.path, public_key, legacy, result)

        log.info(f"[TRANSFORM] {dir_path}: status={result.status.value} transformed={len(result.transformed)} "
                 f"skipped={len(result.skipped)} failed={len(result.failures)}")
        return result

    def _encrypt_plain(self, path: str, public_key: bytes, result: TransformResult) -> None:
        try:
            with self.view.raw():
                data = self.view.read_all(path)
            if self.crypto.is_current_format(data):
                # Envelope bytes without a key record: encrypting again would bury them
                raise CryptoError("file already holds envelope content but has no key record")
            encrypted = self.crypto.encrypt_to_keyfile(data, public_key)
            self._commit(path, encrypted)
        except Exception as e:
            log.warning(f"[TRANSFORM] encrypt failed for {path}: {e}")
            result.failures.append(FileFailure.from_exc(path, e))
            return

        self.registry.log_event("file_encrypted", {"user_id": self.user_id, "path": path})
        result.transformed.append(path)

    def _migrate_legacy(self, path: str, public_key: bytes, legacy: Optional[LegacyCredentials],
                        result: TransformResult) -> None:
        if legacy is None:
            e = LegacyMigrationUnavailable(f"{path}: legacy passphrase required to migrate")
            log.warning(f"[TRANSFORM] {e}")
            result.failures.append(FileFailure.from_exc(path, e))
            return

        try:
            with self.view.raw():
                data = self.view.read_all(path)
            recrypted = self.crypto.reencrypt_legacy_keyfile(
                data, legacy.old_passphrase, public_key, legacy.new_passphrase)
            self._commit(path, recrypted)
        except Exception as e:
            log.warning(f"[TRANSFORM] legacy migration failed for {path}: {e}")
            result.failures.append(FileFailure.from_exc(path, e))
            return

        self.registry.log_event("legacy_migrated", {"user_id": self.user_id, "path": path})
        result.transformed.append(path)

    def _commit(self, path: str, encrypted: KeyfileResult) -> None:
        stage = staging_path(path)
        with self.view.raw():
            self.view.write_all(stage, encrypted.content)
            try:
                self.registry.set_file_key(path, self.user_id, encrypted.wrapped_key)
            except Exception:
                self._discard(stage)
                raise

            try:
                self.view.rename(stage, path)
            except Exception as e:
                self._discard(stage)
                try:
                    self.registry.delete_file_key(path, self.user_id)
                except Exception as rollback_err:
                    raise PartialTransformFailure(
                        f"{path}: content left in place but key record could not be rolled back: {rollback_err}"
                    ) from e
                raise

    def _discard(self, stage: str) -> None:
        try:
            if self.view.exists(stage):
                self.view.delete(stage)
        except OSError as e:
            log.error(f"[TRANSFORM] could not remove staging file {stage}: {e}")
