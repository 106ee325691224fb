# filecrypt_core/storage/__init__.py

from .models import PublicKeyRecord, FileKeyRecord
from .provider import KeyRegistry
from .view import StorageView, LocalStorageView, FileProxy
from .providers.memory_provider import InMemoryKeyRegistry
from .providers.sqlite_provider import SQLiteKeyRegistry
from .providers.view_provider import ViewKeyRegistry


def load_key_registry(config=None, view: StorageView | None = None) -> KeyRegistry:
    """
    Factory resolver for selecting the key registry backend.

        - view (default): key files inside the storage tree
        - sqlite
        - memory
    """
    from filecrypt_core.config import load_config

    if config is None or isinstance(config, dict):
        config = load_config(config)
    provider = config.registry

    if provider == "memory":
        return InMemoryKeyRegistry()

    if provider == "sqlite":
        return SQLiteKeyRegistry(config.db_path)

    if provider == "view":
        if view is None:
            raise ValueError("view registry requires a storage view")
        return ViewKeyRegistry(view)

    raise ValueError(f"Unknown key registry provider: {provider}")


__all__ = [
    "PublicKeyRecord",
    "FileKeyRecord",
    "KeyRegistry",
    "StorageView",
    "LocalStorageView",
    "FileProxy",
    "InMemoryKeyRegistry",
    "SQLiteKeyRegistry",
    "ViewKeyRegistry",
    "load_key_registry",
]
