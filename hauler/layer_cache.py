"""A filesystem cache for layers and an artifact wrapper that uses it."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Callable

from hauler.config import OCI, Descriptor, Hash, Manifest
from hauler.layer import Layer, from_opener


class LayerNotFoundError(LookupError):
    """Raised when a cache holds no layer for a hash."""

    def __init__(self, message: str = "layer not found") -> None:
        super().__init__(message)


class Cache(ABC):
    @abstractmethod
    def put(self, layer: Any) -> Any:
        """Return a layer that stores its content in the cache as it is read."""

    @abstractmethod
    def get(self, hash_: Hash) -> Any:
        """Return the cached layer for hash_, or raise LayerNotFoundError."""


def layer_path(root: str | os.PathLike[str], hash_: Hash) -> str:
    return os.path.join(os.fspath(root), hash_.algorithm, hash_.hex)


class _TeeReader:
    """Reads from a source, copying everything read to a sink."""

    def __init__(self, source: BinaryIO, sink: BinaryIO, closers: list[Callable[[], Any]]) -> None:
        self._source = source
        self._sink = sink
        self._closers = closers

    def read(self, size: int = -1) -> bytes:
        data = self._source.read(size)
        if data:
            self._sink.write(data)
        return data

    def close(self) -> None:
        first: BaseException | None = None
        for close in self._closers:
            try:
                close()
            except Exception as exc:  # noqa: BLE001
                if first is None:
                    first = exc
        if first is not None:
            raise first

    def __enter__(self) -> "_TeeReader":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class _CachedLayer:
    """A layer that writes its content into the cache while it is read."""

    def __init__(self, layer: Any, root: str, digest: Hash, diff_id: Hash) -> None:
        self._layer = layer
        self._root = root
        self._digest = digest
        self._diff_id = diff_id

    def _create(self, h: Hash) -> BinaryIO:
        path = layer_path(self._root, h)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return open(path, "wb")

    def _tee(self, h: Hash, open_source: Callable[[], BinaryIO]) -> _TeeReader:
        sink = self._create(h)
        try:
            source = open_source()
        except BaseException:
            sink.close()
            raise
        return _TeeReader(source, sink, [source.close, sink.close])

    def compressed(self) -> _TeeReader:
        return self._tee(self._digest, self._layer.compressed)

    def uncompressed(self) -> _TeeReader:
        return self._tee(self._diff_id, self._layer.uncompressed)

    def digest(self) -> Hash:
        return self._layer.digest()

    def diff_id(self) -> Hash:
        return self._layer.diff_id()

    def size(self) -> int:
        return self._layer.size()

    def media_type(self) -> str:
        return self._layer.media_type()

    def descriptor(self) -> Descriptor:
        return self._layer.descriptor()


class FilesystemCache(Cache):
    """Keeps layer content under root/<algorithm>/<hex>."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = os.fspath(root)

    def put(self, layer: Any) -> _CachedLayer:
        return _CachedLayer(layer, self.root, layer.digest(), layer.diff_id())

    def get(self, hash_: Hash) -> Layer:
        path = layer_path(self.root, hash_)
        try:
            return from_opener(lambda: open(path, "rb"))
        except FileNotFoundError as exc:
            raise LayerNotFoundError() from exc


class _LazyLayer:
    """Fetches content through the cache, filling it on a miss."""

    def __init__(self, inner: Any, cache: Cache) -> None:
        self._inner = inner
        self._cache = cache

    def _get_or_put(self, h: Hash) -> Any:
        try:
            return self._cache.get(h)
        except LayerNotFoundError:
            return self._cache.put(self._inner)

    def compressed(self) -> BinaryIO:
        return self._get_or_put(self._inner.digest()).compressed()

    def uncompressed(self) -> BinaryIO:
        return self._get_or_put(self._inner.diff_id()).uncompressed()

    def size(self) -> int:
        return self._inner.size()

    def diff_id(self) -> Hash:
        return self._inner.digest()

    def digest(self) -> Hash:
        return self._inner.digest()

    def media_type(self) -> str:
        return self._inner.media_type()

    def descriptor(self) -> Descriptor:
        return self._inner.descriptor()


class _CachedOCI(OCI):
    def __init__(self, inner: OCI, cache: Cache) -> None:
        self._inner = inner
        self._cache = cache

    def media_type(self) -> str:
        return self._inner.media_type()

    def manifest(self) -> Manifest:
        return self._inner.manifest()

    def raw_config(self) -> bytes:
        return self._inner.raw_config()

    def layers(self) -> list[Any]:
        return [_LazyLayer(layer, self._cache) for layer in self._inner.layers()]


def oci_cache(oci: OCI, cache: Cache) -> OCI:
    """Wrap an artifact so that its layers are read through cache."""
    return _CachedOCI(oci, cache)