"""A local OCI layout store that artifacts are added to and copied from."""

from __future__ import annotations

import json
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from hauler import consts
from hauler.config import OCI, Descriptor, OCICollection, sha256
from hauler.layer import new_static_layer
from hauler.layer_cache import Cache, oci_cache
from hauler.oci import OCIStore

_INDEX_MEDIA_TYPES = (consts.OCI_IMAGE_INDEX_SCHEMA, consts.DOCKER_MANIFEST_LIST_SCHEMA2)
_MANIFEST_MEDIA_TYPES = (consts.OCI_MANIFEST_SCHEMA1, consts.DOCKER_MANIFEST_SCHEMA2)
_CHUNK = 1 << 16


class Layout(OCIStore):
    """An OCI layout directory holding blobs and an index of named artifacts."""

    def __init__(self, root: str | os.PathLike[str], cache: Cache | None = None) -> None:
        super().__init__(root)
        self.cache = cache
        self.load_index()

    def add_oci(self, oci: OCI, ref: str) -> Descriptor:
        """Write an artifact's manifest, config and layers, and index it under ref."""
        if self.cache is not None:
            oci = oci_cache(oci, self.cache)

        manifest = oci.manifest()
        mdata = manifest.to_json()
        self._write_blob_data(mdata)

        self._write_blob_data(oci.raw_config())

        layers = oci.layers()
        if layers:
            with ThreadPoolExecutor() as pool:
                futures = [pool.submit(self._write_layer, lyr) for lyr in layers]
                for future in futures:
                    future.result()

        desc = Descriptor(
            media_type=manifest.media_type,
            size=len(mdata),
            digest=sha256(mdata)[0],
            annotations={
                consts.KIND_ANNOTATION_NAME: consts.KIND_ANNOTATION_IMAGE,
                consts.ANNOTATION_REF_NAME: ref,
            },
        )
        self.add_index(desc)
        return desc

    def add_oci_collection(self, collection: OCICollection) -> list[Descriptor]:
        """Add every artifact of a collection, keyed by its reference."""
        return [self.add_oci(oci, ref) for ref, oci in collection.contents().items()]

    def flush(self) -> None:
        """Delete the layout's blobs, index and layout marker, and nothing else."""
        blobs = os.path.join(self.root, "blobs")
        if os.path.isdir(blobs):
            shutil.rmtree(blobs)
        for name in (consts.OCI_IMAGE_INDEX_FILE, "oci-layout"):
            path = os.path.join(self.root, name)
            if os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.lexists(path):
                os.remove(path)

    def copy(self, ref: str, to: Any, to_ref: str = "") -> Descriptor:
        """Copy the artifact stored under ref, with everything it points to, into to."""
        _, root = self.resolve(ref)
        target_ref = to_ref or ref
        pusher = to.pusher(f"{target_ref}@{root.digest}")
        self._copy_tree(root, pusher)
        return root

    def copy_all(
        self, to: Any, to_mapper: Callable[[str], str] | None = None
    ) -> list[Descriptor]:
        """Copy every indexed artifact into to, naming each through to_mapper."""
        descs: list[Descriptor] = []

        def visit(ref: str, _desc: Descriptor) -> None:
            to_ref = to_mapper(ref) if to_mapper is not None else ""
            descs.append(self.copy(ref, to, to_ref))

        self.walk(visit)
        return descs

    def identify(self, desc: Descriptor) -> str:
        """Return the config media type of the manifest desc points to, or ''."""
        try:
            with self.fetch(desc) as fh:
                data = json.load(fh)
            return str(data["config"]["mediaType"])
        except (OSError, ValueError, KeyError, TypeError):
            return ""

    def _read_blob(self, desc: Descriptor) -> bytes:
        with self.fetch(desc) as fh:
            return fh.read()

    def _push_blob(self, desc: Descriptor, data: bytes, pusher: Any) -> None:
        writer = pusher.push(desc)
        try:
            writer.write(data)
            writer.commit()
        finally:
            writer.close()

    def _copy_tree(self, desc: Descriptor, pusher: Any) -> None:
        data = self._read_blob(desc)
        if desc.media_type in _INDEX_MEDIA_TYPES or desc.media_type in _MANIFEST_MEDIA_TYPES:
            parsed = json.loads(data)
            for child in parsed.get("manifests") or []:
                self._copy_tree(Descriptor.from_dict(child), pusher)
            children = []
            if parsed.get("config"):
                children.append(Descriptor.from_dict(parsed["config"]))
            children.extend(Descriptor.from_dict(x) for x in parsed.get("layers") or [])
            for child in children:
                self._push_blob(child, self._read_blob(child), pusher)
        self._push_blob(desc, data, pusher)

    def _write_blob_data(self, data: bytes) -> None:
        self._write_layer(new_static_layer(data))

    def _write_layer(self, layer: Any) -> None:
        d = layer.digest()
        directory = os.path.join(self.root, "blobs", d.algorithm)
        os.makedirs(directory, exist_ok=True)
        blob_path = os.path.join(directory, d.hex)
        if os.path.exists(blob_path):
            return
        reader = layer.compressed()
        try:
            with open(blob_path, "wb") as out:
                for chunk in iter(lambda: reader.read(_CHUNK), b""):
                    out.write(chunk)
        finally:
            reader.close()