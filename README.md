# hauler

Gather container images, files and other content into a local OCI image
layout so it can be carried across an air gap and pushed to a registry on
the other side.

## What it provides

- `hauler.reference`: parse image references (`parse`, `parse_reference`,
  `new_tagged`, `relocate`); names without a namespace are placed under
  `hauler/` and given the `latest` tag.
- `hauler.store.Layout`: an OCI layout on disk (`index.json` plus `blobs/`)
  that artifacts are added to, walked, copied out of and flushed from.
- `hauler.memory.Memory` and `hauler.file.File`: artifacts built from bytes
  in memory, or from a local file, a local directory (packed as a gzipped
  tarball) or an HTTP(S) URL, read through `hauler.getter.Client`.
- `hauler.image.Image`: a container image fetched from a remote registry;
  `hauler.image.is_multi_arch_image` tells whether a reference points to an
  image index.
- `hauler.imagetxt.ImageTxt`: a collection of images named in an image list
  file.
- `hauler.layer_cache.FilesystemCache`: an optional on-disk cache for layer
  content, passed to `Layout(root, cache=...)`.
- `hauler.cosign`: save, load and verify signed images and log in to
  registries by running the `cosign` program kept under `~/.hauler`.
- `hauler.content.load`: check that a YAML document belongs to the
  `content.hauler.cattle.io/v1alpha1` or `collection.hauler.cattle.io/v1alpha1`
  group; anything else raises `ValueError`.
- `hauler.apis`: dataclasses for the content and collection documents
  (`Files`, `Images`, `ImageTxts`, `Charts`, `ThickCharts`, `K3s`, `Driver`).

## Parsing references

```python
from hauler import reference

reference.parse("myfile").name()
# 'hauler/myfile:latest'

reference.parse("rancher/rancher:latest").name()
# 'rancher/rancher:latest'
```

Malformed references raise `hauler.reference.ReferenceError`.

## Building a store

```python
from hauler.store import Layout
from hauler.memory import Memory
from hauler.file import File

store = Layout("store")

store.add_oci(Memory(b"hello", "text/plain"), "hello/world:v1")
store.add_oci(File("manifests/app.yaml"), "hauler/app.yaml:latest")
```

Each addition writes the manifest, config and layer blobs under
`store/blobs/sha256/` and records the reference in `store/index.json`.
Adding the same artifact again is harmless: blobs that already exist are
left in place. `Layout.identify(desc)` returns the config media type of a
stored manifest, and `Layout.copy_all(other_store)` copies every indexed
artifact, with its config and layers, into another store.

## Image lists

An image list holds one reference per line, optionally followed by a space
and a comma-separated list of sources. Empty lines and lines starting with
`#` are skipped.

```
busybox core
nginx:1.19 core,nginx
quay.io/jetstack/cert-manager-controller:v1.6.1 cert-manager
```

`hauler.imagetxt.split_images_txt` parses such a list; `ImageTxt` turns it
into a collection of images, filtered by `include_sources` or
`exclude_sources` (include wins when both are given), which
`Layout.add_oci_collection` adds to a store.

## Removing content

`Layout.flush()` deletes only the OCI layout parts of the store directory
(`blobs/`, `index.json` and `oci-layout`), leaving anything else in it alone.

## What it does not do

- There is no command-line program; everything is used from Python.
- Helm charts are not fetched or packaged, and k3s releases are not turned
  into collections; the `Charts`, `ThickCharts` and `K3s` types in
  `hauler.apis` only describe such documents.
- Pushing to a registry is done only through `hauler.cosign.load_images`,
  which needs the `cosign` program to be present.