# filecrypt_core/errors.py
from __future__ import annotations


class FileCryptError(Exception):
    pass


class SetupFailed(FileCryptError):
    """A bootstrap step could not complete. Re-running setup is safe."""


class KeyPairGenerationFailed(SetupFailed):
    pass


class KeyPersistenceFailed(SetupFailed):
    pass


class KeyPairIncomplete(SetupFailed):
    """Only one half of the user's keypair exists on storage."""


class LayoutIncomplete(FileCryptError):
    def __init__(self, user_id: str, missing: list[str]):
        self.user_id = user_id
        self.missing = list(missing)
        super().__init__(f"key layout for {user_id!r} is incomplete, missing: {', '.join(self.missing)}")


class DirectoryUnreadable(FileCryptError):
    def __init__(self, path: str, reason: str = "not a directory"):
        self.path = path
        super().__init__(f"{path}: {reason}")


class LegacyMigrationUnavailable(FileCryptError):
    pass


class PartialTransformFailure(FileCryptError):
    """Content and key registry disagree for a file after a failed commit."""


class CryptoError(FileCryptError):
    pass
