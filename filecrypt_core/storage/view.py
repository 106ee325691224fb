# filecrypt_core/storage/view.py
"""
Storage views over a hierarchical, `/`-rooted virtual tree.

A view may carry a proxy that transparently transforms content on
read/write. The proxy only runs while the view's interception guard is at
depth zero; `view.raw()` opens a region in which bytes pass through as-is.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import List, Optional
from filecrypt_core.guard import InterceptionGuard
from filecrypt_core.utils import join_path


class FileProxy:
    # Interface
    def pre_write(self, path: str, data: bytes) -> bytes: ...
    def post_write(self, path: str) -> None: ...
    def write_failed(self, path: str) -> None: ...
    def post_read(self, path: str, data: bytes) -> bytes: ...


class StorageView:
    # Interface
    guard: InterceptionGuard
    def exists(self, path: str) -> bool: ...
    def is_dir(self, path: str) -> bool: ...
    def is_file(self, path: str) -> bool: ...
    def is_link(self, path: str) -> bool: ...
    def list_entries(self, path: str) -> List[str]: ...
    def mkdir(self, path: str) -> None: ...
    def read_all(self, path: str) -> bytes: ...
    def write_all(self, path: str, data: bytes) -> None: ...
    def rename(self, src: str, dst: str) -> None: ...
    def delete(self, path: str) -> None: ...

    def raw(self):
        """Scope in which reads and writes bypass the proxy."""
        return self.guard.suppressed()


class LocalStorageView(StorageView):
    """Maps the virtual tree onto a directory on the local filesystem."""

    def __init__(self, root: str | os.PathLike, proxy: Optional[FileProxy] = None,
                 guard: Optional[InterceptionGuard] = None):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.proxy = proxy
        self.guard = guard or InterceptionGuard()

    def set_proxy(self, proxy: Optional[FileProxy]) -> None:
        self.proxy = proxy

    def local_path(self, path: str) -> Path:
        rel = join_path(path).lstrip("/")
        local = (self.root / rel).resolve() if rel else self.root
        if local != self.root and self.root not in local.parents:
            raise ValueError(f"path escapes storage root: {path}")
        return local

    def _intercepting(self) -> bool:
        return self.proxy is not None and self.guard.intercepting

    def exists(self, path: str) -> bool:
        return self.local_path(path).exists()

    def is_dir(self, path: str) -> bool:
        return self.local_path(path).is_dir()

    def is_file(self, path: str) -> bool:
        return self.local_path(path).is_file()

    def is_link(self, path: str) -> bool:
        # checked before resolving, so a link that points outside the root is still seen
        return (self.root / join_path(path).lstrip("/")).is_symlink()

    def list_entries(self, path: str) -> List[str]:
        # os.listdir never yields "." or ".."
        return sorted(os.listdir(self.local_path(path)))

    def mkdir(self, path: str) -> None:
        self.local_path(path).mkdir()

    def read_all(self, path: str) -> bytes:
        data = self.local_path(path).read_bytes()
        if self._intercepting():
            data = self.proxy.post_read(join_path(path), data)
        return data

    def write_all(self, path: str, data: bytes) -> None:
        if not self._intercepting():
            self.local_path(path).write_bytes(data)
            return
        vpath = join_path(path)
        data = self.proxy.pre_write(vpath, data)
        try:
            self.local_path(path).write_bytes(data)
        except Exception:
            self.proxy.write_failed(vpath)
            raise
        self.proxy.post_write(vpath)

    def rename(self, src: str, dst: str) -> None:
        os.replace(self.local_path(src), self.local_path(dst))

    def delete(self, path: str) -> None:
        local = self.local_path(path)
        if local.is_dir():
            local.rmdir()
        else:
            local.unlink()
