"""
filecrypt_core.utils
--------------------
Small helpers for base64 transport of key material, timestamps and
virtual storage paths. Virtual paths are always absolute and `/`-separated,
independent of the host operating system.
"""

from __future__ import annotations
import base64, time, posixpath


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"))

def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def join_path(*parts: str) -> str:
    """Join virtual path segments into a normalized absolute path."""
    joined = posixpath.join("/", *(p.strip("/") for p in parts if p))
    return posixpath.normpath(joined)

def relative_to(path: str, base: str) -> str:
    """Return `path` relative to `base`; raises ValueError if outside it."""
    path, base = join_path(path), join_path(base)
    if path == base:
        return ""
    prefix = base.rstrip("/") + "/"
    if not path.startswith(prefix):
        raise ValueError(f"{path} is not inside {base}")
    return path[len(prefix):]

def is_inside(path: str, base: str) -> bool:
    try:
        relative_to(path, base)
        return True
    except ValueError:
        return False
