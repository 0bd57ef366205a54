"""Content hashes, descriptors, manifests and the artifact interfaces."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol

from hauler import consts

_HASH_RE = re.compile(r"^([a-z0-9]+):([a-f0-9]+)$")


@dataclass(frozen=True)
class Hash:
    algorithm: str
    hex: str

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


def sha256(data: bytes) -> tuple[Hash, int]:
    """Return the sha256 hash of data and its length."""
    return Hash("sha256", hashlib.sha256(data).hexdigest()), len(data)


def parse_hash(text: str) -> Hash:
    m = _HASH_RE.match(text)
    if not m:
        raise ValueError(f"cannot parse hash: {text!r}")
    return Hash(m.group(1), m.group(2))


@dataclass
class Descriptor:
    media_type: str
    size: int
    digest: Hash
    urls: list[str] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "mediaType": self.media_type,
            "size": self.size,
            "digest": str(self.digest),
        }
        if self.urls:
            d["urls"] = list(self.urls)
        if self.annotations:
            d["annotations"] = dict(self.annotations)
        return d

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Descriptor":
        return Descriptor(
            media_type=data.get("mediaType", ""),
            size=int(data.get("size", 0)),
            digest=parse_hash(data["digest"]),
            urls=list(data.get("urls") or []),
            annotations=dict(data.get("annotations") or {}),
        )


@dataclass
class Manifest:
    config: Descriptor
    layers: list[Descriptor] = field(default_factory=list)
    media_type: str = ""
    schema_version: int = 2
    annotations: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"schemaVersion": self.schema_version}
        if self.media_type:
            d["mediaType"] = self.media_type
        d["config"] = self.config.to_dict()
        d["layers"] = [layer.to_dict() for layer in self.layers]
        if self.annotations:
            d["annotations"] = dict(self.annotations)
        return d

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode()

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Manifest":
        return Manifest(
            config=Descriptor.from_dict(data["config"]),
            layers=[Descriptor.from_dict(x) for x in data.get("layers") or []],
            media_type=data.get("mediaType", ""),
            schema_version=int(data.get("schemaVersion", 2)),
            annotations=dict(data.get("annotations") or {}),
        )


class OCI(ABC):
    """The minimum needed to represent an artifact in an OCI layout."""

    @abstractmethod
    def media_type(self) -> str: ...

    @abstractmethod
    def manifest(self) -> Manifest: ...

    @abstractmethod
    def raw_config(self) -> bytes: ...

    @abstractmethod
    def layers(self) -> list[Any]: ...


class OCICollection(ABC):
    @abstractmethod
    def contents(self) -> dict[str, OCI]:
        """Return the artifacts in the collection keyed by reference."""


class _WithRaw(Protocol):
    def raw(self) -> bytes: ...


def _jsonable(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    return obj


class MarshallableConfig:
    """A config built from any JSON-serialisable object."""

    def __init__(self, obj: Any, media_type: str = "") -> None:
        self.obj = obj
        self._media_type = media_type

    def media_type(self) -> str:
        return self._media_type or consts.UNKNOWN_MANIFEST

    def raw(self) -> bytes:
        return json.dumps(_jsonable(self.obj), separators=(",", ":")).encode()

    def digest(self) -> Hash:
        return digest(self)

    def size(self) -> int:
        return size(self)

    def descriptor(self) -> Descriptor:
        return Descriptor(self.media_type(), self.size(), self.digest())


def to_config(obj: Any, media_type: str = "") -> MarshallableConfig:
    return MarshallableConfig(obj, media_type)


def digest(config: _WithRaw) -> Hash:
    return sha256(config.raw())[0]


def size(config: _WithRaw) -> int:
    return len(config.raw())