import json

import pytest

from hauler import consts
from hauler.config import (
    Descriptor,
    Manifest,
    digest,
    parse_hash,
    sha256,
    size,
    to_config,
)


def test_sha256_empty():
    h, n = sha256(b"")
    assert str(h) == "sha256:e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert n == 0


def test_parse_hash_round_trip():
    h, _ = sha256(b"data")
    assert parse_hash(str(h)) == h


def test_parse_hash_invalid():
    with pytest.raises(ValueError):
        parse_hash("nohash")


def test_config_defaults_to_unknown_manifest():
    assert to_config({"a": 1}).media_type() == consts.UNKNOWN_MANIFEST


def test_config_media_type_and_raw():
    cfg = to_config({"a": 1}, consts.FILE_LOCAL_CONFIG_MEDIA_TYPE)
    assert cfg.media_type() == consts.FILE_LOCAL_CONFIG_MEDIA_TYPE
    assert json.loads(cfg.raw()) == {"a": 1}
    assert size(cfg) == len(cfg.raw())
    assert digest(cfg) == sha256(cfg.raw())[0]


def test_config_descriptor():
    cfg = to_config({"reference": "x"})
    d = cfg.descriptor()
    assert d.digest == cfg.digest()
    assert d.size == cfg.size()


def test_manifest_round_trip():
    h, n = sha256(b"layer")
    cfg = to_config({})
    m = Manifest(
        config=cfg.descriptor(),
        layers=[Descriptor("x", n, h, annotations={consts.ANNOTATION_TITLE: "f"})],
        media_type=consts.OCI_MANIFEST_SCHEMA1,
    )
    assert Manifest.from_dict(json.loads(m.to_json())) == m