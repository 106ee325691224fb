"""
filecrypt_core.layout
---------------------
Canonical storage paths for a user's key material.

Every path is a pure function of the user id and is recomputed on access,
so nothing can drift from the identity it was derived from:

    /<uid>                                       user dir
    /<uid>/files                                 user files
    /public-keys                                 shared public keys
    /<uid>/files_encryption                      encryption dir
    /<uid>/files_encryption/keyfiles             wrapped per-file keys
    /<uid>/files_encryption/share-keys           share envelope keys
    /public-keys/<uid>.public.key                public key (clear)
    /<uid>/files_encryption/<uid>.private.key    private key (passphrase-wrapped)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple
from .constants import (
    USER_FILES_DIRNAME, ENCRYPTION_DIRNAME, KEYFILES_DIRNAME, SHARE_KEYS_DIRNAME,
    PUBLIC_KEYS_DIRNAME, PUBLIC_KEY_SUFFIX, PRIVATE_KEY_SUFFIX,
)
from .utils import join_path


class LayoutComponent(str, Enum):
    USER_DIR = "userDir"
    USER_FILES_DIR = "userFilesDir"
    PUBLIC_KEY_DIR = "publicKeyDir"
    ENCRYPTION_DIR = "encryptionDir"
    KEYFILES_PATH = "keyfilesPath"
    SHARE_KEYS_PATH = "shareKeysPath"
    PUBLIC_KEY_PATH = "publicKeyPath"
    PRIVATE_KEY_PATH = "privateKeyPath"


# Components that must all exist before a user counts as ready
READY_COMPONENTS: Tuple[LayoutComponent, ...] = (
    LayoutComponent.ENCRYPTION_DIR,
    LayoutComponent.KEYFILES_PATH,
    LayoutComponent.SHARE_KEYS_PATH,
    LayoutComponent.PUBLIC_KEY_PATH,
    LayoutComponent.PRIVATE_KEY_PATH,
)

# Directories in creation order (parents first)
DIRECTORY_COMPONENTS: Tuple[LayoutComponent, ...] = (
    LayoutComponent.USER_DIR,
    LayoutComponent.USER_FILES_DIR,
    LayoutComponent.PUBLIC_KEY_DIR,
    LayoutComponent.ENCRYPTION_DIR,
    LayoutComponent.KEYFILES_PATH,
    LayoutComponent.SHARE_KEYS_PATH,
)


def validate_user_id(user_id: str) -> str:
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("user id must be a non-empty string")
    if "/" in user_id or "\\" in user_id or user_id in (".", ".."):
        raise ValueError(f"invalid user id: {user_id!r}")
    return user_id


@dataclass(frozen=True)
class KeyLayout:
    user_id: str

    def __post_init__(self):
        validate_user_id(self.user_id)

    @property
    def user_dir(self) -> str:
        return join_path(self.user_id)

    @property
    def user_files_dir(self) -> str:
        return join_path(self.user_id, USER_FILES_DIRNAME)

    @property
    def public_key_dir(self) -> str:
        return join_path(PUBLIC_KEYS_DIRNAME)

    @property
    def encryption_dir(self) -> str:
        return join_path(self.user_id, ENCRYPTION_DIRNAME)

    @property
    def keyfiles_path(self) -> str:
        return join_path(self.encryption_dir, KEYFILES_DIRNAME)

    @property
    def share_keys_path(self) -> str:
        return join_path(self.encryption_dir, SHARE_KEYS_DIRNAME)

    @property
    def public_key_path(self) -> str:
        return join_path(self.public_key_dir, self.user_id + PUBLIC_KEY_SUFFIX)

    @property
    def private_key_path(self) -> str:
        return join_path(self.encryption_dir, self.user_id + PRIVATE_KEY_SUFFIX)

    def path(self, component: LayoutComponent) -> str:
        component = LayoutComponent(component)
        return _RESOLVERS[component](self)

    def as_dict(self) -> Dict[str, str]:
        return {c.value: self.path(c) for c in LayoutComponent}

    def ready_paths(self) -> Tuple[str, ...]:
        return tuple(self.path(c) for c in READY_COMPONENTS)


_RESOLVERS = {
    LayoutComponent.USER_DIR: lambda lay: lay.user_dir,
    LayoutComponent.USER_FILES_DIR: lambda lay: lay.user_files_dir,
    LayoutComponent.PUBLIC_KEY_DIR: lambda lay: lay.public_key_dir,
    LayoutComponent.ENCRYPTION_DIR: lambda lay: lay.encryption_dir,
    LayoutComponent.KEYFILES_PATH: lambda lay: lay.keyfiles_path,
    LayoutComponent.SHARE_KEYS_PATH: lambda lay: lay.share_keys_path,
    LayoutComponent.PUBLIC_KEY_PATH: lambda lay: lay.public_key_path,
    LayoutComponent.PRIVATE_KEY_PATH: lambda lay: lay.private_key_path,
}
