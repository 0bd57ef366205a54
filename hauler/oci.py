"""An OCI image layout on disk that can resolve, fetch and receive content."""

from __future__ import annotations

import hashlib
import json
import os
from typing import Any, BinaryIO, Callable

from hauler import consts, reference
from hauler.config import Descriptor, Hash, Manifest

_PUSH_INDEXED_MEDIA_TYPES = (
    consts.OCI_MANIFEST_SCHEMA1,
    consts.OCI_IMAGE_INDEX_SCHEMA,
    consts.DOCKER_MANIFEST_SCHEMA2,
    consts.DOCKER_MANIFEST_LIST_SCHEMA2,
)


def _index_key(desc: Descriptor) -> str | None:
    """Return the name-map key for an indexed descriptor, or None to skip it."""
    key = reference.parse(desc.annotations.get(consts.ANNOTATION_REF_NAME, ""))
    if key.name().strip() == "--":
        return None
    kind = desc.annotations.get(consts.KIND_ANNOTATION_NAME, "")
    if isinstance(key, reference.Digest):
        return f"{key.context().name()}-{kind}"
    return f"{key.name()}-{kind}"


class ContentWriter:
    """Writes pushed content and checks it against its expected digest."""

    def __init__(self, sink: BinaryIO | None, expected: Hash) -> None:
        self._sink = sink
        self._expected = expected
        self._hasher = hashlib.new(expected.algorithm)
        self.size = 0

    def write(self, data: bytes) -> int:
        self._hasher.update(data)
        self.size += len(data)
        if self._sink is not None:
            self._sink.write(data)
        return len(data)

    def commit(self) -> None:
        """Finish writing; raise ValueError if the content does not match its digest."""
        actual = Hash(self._expected.algorithm, self._hasher.hexdigest())
        self.close()
        if actual != self._expected:
            raise ValueError(f"digest mismatch: expected {self._expected}, got {actual}")

    def close(self) -> None:
        if self._sink is not None:
            self._sink.close()
            self._sink = None

    def __enter__(self) -> "ContentWriter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class OCIStore:
    """Content store backed by an OCI layout directory."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = os.fspath(root)
        self.index: dict[str, Any] = {"schemaVersion": 2}
        self.name_map: dict[str, Descriptor] = {}

    def _path(self, *elems: str) -> str:
        return os.path.join(self.root, *elems)

    def _ensure_blob(self, algorithm: str, hex_: str) -> str:
        directory = self._path("blobs", algorithm)
        os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, hex_)

    def add_index(self, desc: Descriptor) -> None:
        """Add a descriptor, identified by its ref-name annotation, and save the index."""
        if consts.ANNOTATION_REF_NAME not in desc.annotations:
            raise ValueError(
                "descriptor must contain a reference from the annotation: "
                f"{consts.ANNOTATION_REF_NAME}"
            )
        key = _index_key(desc)
        if key is not None:
            self.name_map[key] = desc
        self.save_index()

    def load_index(self) -> None:
        """Read the index from disk, starting an empty one if there is none."""
        path = self._path(consts.OCI_IMAGE_INDEX_FILE)
        try:
            with open(path, "rb") as fh:
                self.index = json.load(fh)
        except FileNotFoundError:
            self.index = {"schemaVersion": 2}
            return
        for raw in self.index.get("manifests") or []:
            desc = Descriptor.from_dict(raw)
            key = _index_key(desc)
            if key is not None:
                self.name_map[key] = desc

    def save_index(self) -> None:
        """Write the index to disk, images ahead of signatures and attestations."""
        descs = sorted(
            self.name_map.values(),
            key=lambda d: not d.annotations.get(consts.KIND_ANNOTATION_NAME, "").startswith(
                consts.KIND_ANNOTATION_IMAGE
            ),
        )
        self.index["manifests"] = [d.to_dict() for d in descs]
        os.makedirs(self.root, exist_ok=True)
        with open(self._path(consts.OCI_IMAGE_INDEX_FILE), "w", encoding="utf-8") as fh:
            json.dump(self.index, fh, separators=(",", ":"))

    def resolve(self, ref: str) -> tuple[str, Descriptor]:
        """Return the name and descriptor stored under ref."""
        self.load_index()
        try:
            return ref, self.name_map[ref]
        except KeyError:
            raise KeyError(f"reference not found: {ref}") from None

    def fetcher(self, ref: str) -> "OCIStore | None":
        self.load_index()
        return self if ref in self.name_map else None

    def fetch(self, desc: Descriptor) -> BinaryIO:
        return open(self._ensure_blob(desc.digest.algorithm, desc.digest.hex), "rb")

    def fetch_manifest(self, manifest: Manifest) -> BinaryIO:
        """Open the config blob of a manifest."""
        d = manifest.config.digest
        return open(self._ensure_blob(d.algorithm, d.hex), "rb")

    def pusher(self, ref: str) -> "OCIPusher":
        self.load_index()
        base, _, digest = ref.partition("@")
        return OCIPusher(self, base, digest)

    def walk(self, fn: Callable[[str, Descriptor], Any]) -> None:
        """Call fn for every indexed reference, raising the joined errors at the end."""
        self.load_index()
        errors: list[str] = []
        for key, desc in list(self.name_map.items()):
            try:
                fn(key, desc)
            except Exception as exc:  # noqa: BLE001
                errors.append(str(exc))
        if errors:
            raise RuntimeError("; ".join(errors))


class OCIPusher:
    """Receives content for one reference into an OCIStore."""

    def __init__(self, oci: OCIStore, ref: str, digest: str = "") -> None:
        self.oci = oci
        self.ref = ref
        self.digest = digest

    def push(self, desc: Descriptor) -> ContentWriter:
        """Return a writer for the content described by desc."""
        if desc.media_type in _PUSH_INDEXED_MEDIA_TYPES:
            if self.digest and self.digest == str(desc.digest):
                self.oci.load_index()
                self.oci.name_map[self.ref] = desc
                self.oci.save_index()

        blob_path = self.oci._ensure_blob(desc.digest.algorithm, desc.digest.hex)
        if os.path.exists(blob_path):
            return ContentWriter(None, desc.digest)
        return ContentWriter(open(blob_path, "wb"), desc.digest)