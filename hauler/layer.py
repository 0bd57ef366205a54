"""Layers whose content comes from a function that opens it."""

from __future__ import annotations

import hashlib
import io
from typing import BinaryIO, Callable

from hauler import consts
from hauler.config import Descriptor, Hash

Opener = Callable[[], BinaryIO]

_CHUNK = 1 << 16


def _compute(opener: Opener) -> tuple[Hash, int]:
    """Hash everything the opener yields and count its bytes."""
    h = hashlib.sha256()
    total = 0
    with opener() as rc:
        for chunk in iter(lambda: rc.read(_CHUNK), b""):
            h.update(chunk)
            total += len(chunk)
    return Hash("sha256", h.hexdigest()), total


class Layer:
    """A layer with precomputed digest, diff id and size."""

    def __init__(
        self,
        *,
        digest: Hash,
        diff_id: Hash,
        size: int,
        compressed_opener: Opener,
        uncompressed_opener: Opener,
        media_type: str = consts.UNKNOWN_LAYER,
        annotations: dict[str, str] | None = None,
        urls: list[str] | None = None,
    ) -> None:
        self._digest = digest
        self._diff_id = diff_id
        self._size = size
        self._compressed_opener = compressed_opener
        self._uncompressed_opener = uncompressed_opener
        self._media_type = media_type
        self._annotations = dict(annotations or {})
        self._urls = list(urls or [])

    def descriptor(self) -> Descriptor:
        return Descriptor(
            media_type=self.media_type(),
            size=self._size,
            digest=self.digest(),
            urls=list(self._urls),
            annotations=dict(self._annotations),
        )

    def digest(self) -> Hash:
        return self._digest

    def diff_id(self) -> Hash:
        return self._diff_id

    def compressed(self) -> BinaryIO:
        return self._compressed_opener()

    def uncompressed(self) -> BinaryIO:
        return self._uncompressed_opener()

    def size(self) -> int:
        return self._size

    def media_type(self) -> str:
        return self._media_type


def from_opener(
    opener: Opener,
    media_type: str = consts.UNKNOWN_LAYER,
    annotations: dict[str, str] | None = None,
) -> Layer:
    """Build a layer from an opener, reading the content to compute its hashes."""
    digest, size = _compute(opener)
    diff_id, _ = _compute(opener)
    return Layer(
        digest=digest,
        diff_id=diff_id,
        size=size,
        compressed_opener=opener,
        uncompressed_opener=opener,
        media_type=media_type,
        annotations=annotations,
    )


def new_static_layer(data: bytes, media_type: str = "") -> Layer:
    """Build a layer over bytes held in memory."""
    return from_opener(lambda: io.BytesIO(data), media_type, {})