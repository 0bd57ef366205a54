import gzip
import hashlib
import json

import pytest
import responses

from hauler import consts
from hauler.image import Image, RegistryError, is_multi_arch_image

BASE = "https://registry.example.com/v2/app"
NAME = "registry.example.com/app:v1"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def _digest(data):
    return "sha256:" + hashlib.sha256(data).hexdigest()


def _single(layer_data=b"layer-bytes", layer_type=consts.OCI_LAYER, config_extra=None):
    config = {"architecture": "amd64", "os": "linux"}
    if config_extra:
        config.update(config_extra)
    config_bytes = json.dumps(config).encode()
    manifest = {
        "schemaVersion": 2,
        "mediaType": consts.OCI_MANIFEST_SCHEMA1,
        "config": {
            "mediaType": consts.DOCKER_CONFIG_JSON,
            "size": len(config_bytes),
            "digest": _digest(config_bytes),
        },
        "layers": [
            {"mediaType": layer_type, "size": len(layer_data), "digest": _digest(layer_data)}
        ],
    }
    return json.dumps(manifest).encode(), config_bytes


def _register_image(rsps, identifier, manifest_bytes, config_bytes, layer_data):
    rsps.add(
        responses.GET,
        f"{BASE}/manifests/{identifier}",
        body=manifest_bytes,
        content_type=consts.OCI_MANIFEST_SCHEMA1,
    )
    rsps.add(responses.GET, f"{BASE}/blobs/{_digest(config_bytes)}", body=config_bytes)
    rsps.add(responses.GET, f"{BASE}/blobs/{_digest(layer_data)}", body=layer_data)


def test_image_reads_manifest_config_and_layers(mocked):
    layer_data = b"layer-bytes"
    manifest_bytes, config_bytes = _single(layer_data)
    _register_image(mocked, "v1", manifest_bytes, config_bytes, layer_data)
    img = Image(NAME)
    assert img.media_type() == consts.OCI_MANIFEST_SCHEMA1
    assert img.raw_config() == config_bytes
    assert str(img.manifest().config.digest) == _digest(config_bytes)
    layers = img.layers()
    assert len(layers) == 1
    assert layers[0].compressed().read() == layer_data
    assert str(layers[0].digest()) == _digest(layer_data)


def test_uncompressed_gunzips_and_uses_diff_ids(mocked):
    raw = b"hello layer"
    layer_data = gzip.compress(raw)
    manifest_bytes, config_bytes = _single(
        layer_data, config_extra={"rootfs": {"type": "layers", "diff_ids": [_digest(raw)]}}
    )
    _register_image(mocked, "v1", manifest_bytes, config_bytes, layer_data)
    lyr = Image(NAME).layers()[0]
    assert lyr.uncompressed().read() == raw
    assert str(lyr.diff_id()) == _digest(raw)


def test_index_selects_requested_platform(mocked):
    arm_layer = b"arm-layer"
    arm_manifest, arm_config = _single(arm_layer)
    amd_manifest, _ = _single(b"amd-layer")
    index = {
        "schemaVersion": 2,
        "mediaType": consts.OCI_IMAGE_INDEX_SCHEMA,
        "manifests": [
            {
                "mediaType": consts.OCI_MANIFEST_SCHEMA1,
                "size": len(amd_manifest),
                "digest": _digest(amd_manifest),
                "platform": {"os": "linux", "architecture": "amd64"},
            },
            {
                "mediaType": consts.OCI_MANIFEST_SCHEMA1,
                "size": len(arm_manifest),
                "digest": _digest(arm_manifest),
                "platform": {"os": "linux", "architecture": "arm64"},
            },
        ],
    }
    mocked.add(
        responses.GET,
        f"{BASE}/manifests/v1",
        body=json.dumps(index),
        content_type=consts.OCI_IMAGE_INDEX_SCHEMA,
    )
    _register_image(mocked, _digest(arm_manifest), arm_manifest, arm_config, arm_layer)
    img = Image(NAME, platform="linux/arm64")
    assert img.layers()[0].compressed().read() == arm_layer
    with pytest.raises(RegistryError):
        Image(NAME, platform="windows/amd64")


def test_bearer_challenge_is_answered(mocked):
    layer_data = b"layer-bytes"
    manifest_bytes, config_bytes = _single(layer_data)
    mocked.add(
        responses.GET,
        f"{BASE}/manifests/v1",
        status=401,
        headers={
            "WWW-Authenticate": 'Bearer realm="https://auth.example.com/token",service="registry.example.com"'
        },
    )
    mocked.add(responses.GET, "https://auth.example.com/token", json={"token": "token"})
    _register_image(mocked, "v1", manifest_bytes, config_bytes, layer_data)
    img = Image(NAME)
    assert img.raw_config() == config_bytes
    assert mocked.calls[2].request.headers["Authorization"] == "Bearer token"


def test_missing_image_raises(mocked):
    mocked.add(responses.GET, f"{BASE}/manifests/v1", status=404)
    with pytest.raises(RegistryError):
        Image(NAME)


def test_is_multi_arch_image(mocked):
    manifest_bytes, _ = _single()
    mocked.add(
        responses.GET,
        f"{BASE}/manifests/v1",
        body=manifest_bytes,
        content_type=consts.OCI_MANIFEST_SCHEMA1,
    )
    mocked.add(
        responses.GET,
        f"{BASE}/manifests/v2",
        body=json.dumps({"schemaVersion": 2, "manifests": []}),
        content_type=consts.DOCKER_MANIFEST_LIST_SCHEMA2,
    )
    assert is_multi_arch_image(NAME) is False
    assert is_multi_arch_image("registry.example.com/app:v2") is True


def test_is_multi_arch_image_errors(mocked):
    mocked.add(responses.GET, f"{BASE}/manifests/v1", status=500)
    with pytest.raises(RegistryError, match="getting image"):
        is_multi_arch_image(NAME)
    with pytest.raises(RegistryError, match="parsing reference"):
        is_multi_arch_image("Bad Reference!")