"""
filecrypt_core.models
---------------------
Value objects passed between the layout, classifier and transform stages.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FileClassification(str, Enum):
    PLAIN = "plain"
    ENCRYPTED = "encrypted"
    LEGACY = "legacy"


class TransformStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class KeyPair:
    public_key: bytes
    private_key: bytes


@dataclass
class KeyfileResult:
    """Output of a keyfile encryption: the wrapped per-file key and the new file bytes."""
    wrapped_key: bytes
    content: bytes


@dataclass
class LegacyCredentials:
    old_passphrase: str
    new_passphrase: str = ""


@dataclass(frozen=True)
class DiscoveredFile:
    name: str
    path: str


@dataclass
class FileFailure:
    path: str
    kind: str
    message: str = ""

    @classmethod
    def from_exc(cls, path: str, exc: BaseException) -> "FileFailure":
        return cls(path=path, kind=type(exc).__name__, message=str(exc))


@dataclass
class DiscoveryResult:
    plain: List[DiscoveredFile] = field(default_factory=list)
    encrypted: List[DiscoveredFile] = field(default_factory=list)
    legacy: List[DiscoveredFile] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)

    def add(self, classification: FileClassification, item: DiscoveredFile) -> None:
        getattr(self, classification.value).append(item)

    def bucket(self, classification: FileClassification) -> List[DiscoveredFile]:
        return getattr(self, classification.value)

    def classification_of(self, path: str) -> Optional[FileClassification]:
        for c in FileClassification:
            if any(f.path == path for f in self.bucket(c)):
                return c
        return None

    def paths(self, classification: FileClassification) -> List[str]:
        return sorted(f.path for f in self.bucket(classification))

    def __len__(self) -> int:
        return len(self.plain) + len(self.encrypted) + len(self.legacy)


@dataclass
class TransformResult:
    transformed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)

    @property
    def status(self) -> TransformStatus:
        if not self.failures:
            return TransformStatus.SUCCESS
        if self.transformed:
            return TransformStatus.PARTIAL
        return TransformStatus.FAILED

    @property
    def failed_paths(self) -> List[str]:
        return [f.path for f in self.failures]

    @property
    def ok(self) -> bool:
        return self.status == TransformStatus.SUCCESS


@dataclass
class SetupResult:
    created: List[str] = field(default_factory=list)
    keypair_generated: bool = False
    transform: TransformResult = field(default_factory=TransformResult)

    @property
    def status(self) -> TransformStatus:
        return self.transform.status
