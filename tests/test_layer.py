import hashlib
import io

import pytest

from hauler import consts
from hauler.layer import from_opener, new_static_layer

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _opener(data):
    return lambda: io.BytesIO(data)


def test_digest_and_size_match_content():
    data = b"some layer content" * 1000
    layer = from_opener(_opener(data))
    assert layer.digest().algorithm == "sha256"
    assert layer.digest().hex == hashlib.sha256(data).hexdigest()
    assert layer.size() == len(data)


def test_diff_id_equals_digest_for_plain_opener():
    layer = from_opener(_opener(b"data"))
    assert layer.diff_id() == layer.digest()


def test_empty_content_hash():
    layer = from_opener(_opener(b""))
    assert layer.digest().hex == EMPTY_SHA256
    assert layer.size() == 0


def test_default_media_type_is_unknown_layer():
    layer = from_opener(_opener(b"x"))
    assert layer.media_type() == consts.UNKNOWN_LAYER


def test_compressed_and_uncompressed_return_content():
    data = b"round trip"
    layer = from_opener(_opener(data))
    with layer.compressed() as rc:
        assert rc.read() == data
    with layer.uncompressed() as rc:
        assert rc.read() == data


def test_descriptor_carries_media_type_and_annotations():
    annotations = {consts.ANNOTATION_TITLE: "file.txt"}
    layer = from_opener(_opener(b"abc"), consts.FILE_LAYER_MEDIA_TYPE, annotations)
    desc = layer.descriptor()
    assert desc.media_type == consts.FILE_LAYER_MEDIA_TYPE
    assert desc.size == 3
    assert desc.digest == layer.digest()
    assert desc.annotations == annotations
    assert desc.urls == []


def test_opener_error_propagates(tmp_path):
    missing = tmp_path / "missing"
    with pytest.raises(FileNotFoundError):
        from_opener(lambda: open(missing, "rb"))


def test_static_layer_keeps_given_media_type():
    data = b"static"
    layer = new_static_layer(data, consts.OCI_LAYER)
    assert layer.media_type() == consts.OCI_LAYER
    assert layer.digest().hex == hashlib.sha256(data).hexdigest()
    with layer.compressed() as rc:
        assert rc.read() == data


def test_static_layer_without_media_type():
    layer = new_static_layer(b"{}")
    assert layer.media_type() == ""
    assert layer.descriptor().annotations == {}