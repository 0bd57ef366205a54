import json

import pytest
import responses

from hauler import consts
from hauler.file import File
from hauler.getter import ANNOTATION_UNPACK, Client, ClientOptions, GetterTypeUnknownError

FILENAME = "myfile.yaml"
DATA = b"data"
REMOTE = "http://example.com/" + FILENAME


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / FILENAME
    path.write_bytes(DATA)
    return str(path)


@pytest.fixture
def remote():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.HEAD, REMOTE, status=200)
        rsps.add(responses.GET, REMOTE, body=DATA, status=200)
        yield rsps


def test_local_file_config_type(local_file):
    m = File(local_file).manifest()
    assert m.config.media_type == consts.FILE_LOCAL_CONFIG_MEDIA_TYPE


def test_remote_file_config_type(remote):
    m = File(REMOTE).manifest()
    assert m.config.media_type == consts.FILE_HTTP_CONFIG_MEDIA_TYPE


def test_local_file_layers_preserve_contents(local_file):
    layers = File(local_file).layers()
    with layers[0].compressed() as fh:
        assert fh.read() == DATA


def test_remote_file_layers_preserve_contents(remote):
    layers = File(REMOTE).layers()
    with layers[0].compressed() as fh:
        assert fh.read() == DATA
    assert layers[0].descriptor().annotations[consts.ANNOTATION_TITLE] == FILENAME


def test_manifest_layer_descriptor(local_file):
    f = File(local_file, annotations={"k": "v"})
    m = f.manifest()
    assert m.media_type == consts.OCI_MANIFEST_SCHEMA1
    assert m.annotations == {"k": "v"}
    layer = m.layers[0]
    assert layer.media_type == consts.FILE_LAYER_MEDIA_TYPE
    assert layer.size == len(DATA)
    assert layer.annotations[consts.ANNOTATION_TITLE] == FILENAME
    assert f.manifest() is m


def test_raw_config_holds_reference(local_file):
    cfg = json.loads(File(local_file).raw_config())
    assert cfg == {"reference": local_file}


def test_directory_is_unpackable(tmp_path):
    d = tmp_path / "dir"
    d.mkdir()
    (d / "a.txt").write_bytes(b"a")
    m = File(str(d)).manifest()
    assert m.config.media_type == consts.FILE_DIRECTORY_CONFIG_MEDIA_TYPE
    assert m.layers[0].annotations[ANNOTATION_UNPACK] == "true"


def test_name_override(local_file):
    client = Client(ClientOptions(name_override="myfile"))
    assert File(local_file, client=client).name(local_file) == "myfile"
    assert File(local_file).name(local_file) == FILENAME


def test_unknown_source_raises(tmp_path):
    f = File(str(tmp_path / "does-not-exist"))
    with pytest.raises(GetterTypeUnknownError):
        f.manifest()