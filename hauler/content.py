"""Recognising content and collection documents."""

from __future__ import annotations

import yaml

from hauler.apis import COLLECTION_GROUP_VERSION, CONTENT_GROUP_VERSION, TypeMeta


def load(data: bytes | str) -> TypeMeta:
    """Read a document's type and check it is a known content or collection type."""
    doc = yaml.safe_load(data)
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise ValueError("document is not a mapping")
    tm = TypeMeta.from_dict(doc)
    gv, kind = tm.group_version_kind()
    if gv not in (CONTENT_GROUP_VERSION, COLLECTION_GROUP_VERSION):
        raise ValueError(
            f"unrecognized content/collection type: {gv.group}/{gv.version}, Kind={kind}"
        )
    return tm