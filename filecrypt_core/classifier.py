"""
filecrypt_core.classifier
-------------------------
Recursive tree walk that partitions every file under a directory into
plain / encrypted / legacy.

Classification is a total order:
    1. a key registry record exists      -> ENCRYPTED (content never read)
    2. raw content carries legacy marker -> LEGACY
    3. otherwise                         -> PLAIN

The whole walk runs in the view's raw mode; nested directories reuse the
same accumulator so nothing found below the root is lost.
"""

from __future__ import annotations
from typing import List, Optional
import posixpath
from .constants import STAGING_PREFIX, STAGING_SUFFIX
from .crypto import CryptoProvider
from .errors import DirectoryUnreadable
from .logger import get_logger
from .models import DiscoveredFile, DiscoveryResult, FileClassification, FileFailure
from .storage.provider import KeyRegistry
from .storage.view import StorageView
from .utils import join_path

log = get_logger("FileCrypt.Classifier")


def is_staging_name(name: str) -> bool:
    return name.startswith(STAGING_PREFIX) and name.endswith(STAGING_SUFFIX)


def staging_path(path: str) -> str:
    head, name = posixpath.split(path)
    return join_path(head, STAGING_PREFIX + name + STAGING_SUFFIX)


class FileClassifier:
    def __init__(self, view: StorageView, registry: KeyRegistry, crypto: CryptoProvider, user_id: str):
        self.view = view
        self.registry = registry
        self.crypto = crypto
        self.user_id = user_id

    def classify(self, path: str) -> FileClassification:
        with self.view.raw():
            if self.registry.get_file_key(self.user_id, path) is not None:
                return FileClassification.ENCRYPTED
            if self.crypto.is_legacy_format(self.view.read_all(path)):
                return FileClassification.LEGACY
            return FileClassification.PLAIN

    def find_files(self, directory: str) -> Optional[DiscoveryResult]:
        directory = join_path(directory)
        with self.view.raw():
            if not self.view.is_dir(directory):
                log.warning(f"[WALK] {directory} is not a directory")
                return None
            try:
                entries = self._entries(directory)
            except DirectoryUnreadable as e:
                log.warning(f"[WALK] {e}")
                return None

            found = DiscoveryResult()
            self._walk(directory, entries, found)

        log.info(f"[WALK] {directory}: plain={len(found.plain)} encrypted={len(found.encrypted)} "
                 f"legacy={len(found.legacy)} failures={len(found.failures)}")
        return found

    def _entries(self, directory: str) -> List[str]:
        try:
            names = self.view.list_entries(directory)
        except OSError as e:
            raise DirectoryUnreadable(directory, str(e)) from e
        return [n for n in names if n not in (".", "..")]

    def _walk(self, directory: str, entries: List[str], found: DiscoveryResult) -> None:
        with self.view.raw():
            for name in entries:
                path = join_path(directory, name)

                try:
                    if self.view.is_link(path) and self.view.is_dir(path):
                        # followed links can loop back to an ancestor
                        raise DirectoryUnreadable(path, "symlinked directory not followed")
                    is_dir = self.view.is_dir(path)
                    is_file = not is_dir and self.view.is_file(path)
                    children = self._entries(path) if is_dir else []
                except (OSError, ValueError, DirectoryUnreadable) as e:
                    log.warning(f"[WALK] skipping {path}: {e}")
                    found.failures.append(FileFailure.from_exc(path, e))
                    continue

                if is_dir:
                    self._walk(path, children, found)

                elif is_file:
                    if self._is_staging_leftover(directory, name):
                        log.warning(f"[WALK] leftover staging file {path}")
                        continue
                    try:
                        classification = self.classify(path)
                    except Exception as e:
                        log.warning(f"[WALK] cannot classify {path}: {e}")
                        found.failures.append(FileFailure.from_exc(path, e))
                        continue
                    found.add(classification, DiscoveredFile(name=name, path=path))

    def _is_staging_leftover(self, directory: str, name: str) -> bool:
        # only a staging name whose target sits next to it; anything else is a user file
        if not is_staging_name(name):
            return False
        target = name[len(STAGING_PREFIX):-len(STAGING_SUFFIX)]
        return bool(target) and self.view.is_file(join_path(directory, target))

    def is_encrypted_path(self, path: str) -> bool:
        with self.view.raw():
            data = self.view.read_all(path)
        return self.crypto.is_current_format(data)
