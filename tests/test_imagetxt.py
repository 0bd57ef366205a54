import io

import pytest
import responses

from hauler.imagetxt import ImageTxt, split_images_txt
from hauler.log import Logger

SERVER = "http://testserver"

IMAGES_TXT = """busybox
nginx:1.19
rancher/hyperkube:v1.21.7-rancher1
docker.io/rancher/klipper-lb:v0.3.4
quay.io/jetstack/cert-manager-controller:v1.6.1
"""

IMAGES_SRC_TXT = """# images with sources
busybox core
nginx:1.19 core,nginx
rancher/hyperkube:v1.21.7-rancher1 rancher,rke

docker.io/rancher/klipper-lb:v0.3.4 rancher
quay.io/jetstack/cert-manager-controller:v1.6.1 cert-manager
"""

ALL_IMAGES = {
    "busybox",
    "nginx:1.19",
    "rancher/hyperkube:v1.21.7-rancher1",
    "docker.io/rancher/klipper-lb:v0.3.4",
    "quay.io/jetstack/cert-manager-controller:v1.6.1",
}


class FakeImage:
    def __init__(self, name):
        self.name = name


def quiet():
    return Logger(None)


@pytest.fixture
def server():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, f"{SERVER}/images-http.txt", body=IMAGES_TXT)
        rsps.add(responses.GET, f"{SERVER}/images-src-http.txt", body=IMAGES_SRC_TXT)
        yield rsps


def check_images(contents, expected):
    assert set(contents) == set(expected)
    for ref, obj in contents.items():
        assert isinstance(obj, FakeImage)
        assert obj.name == ref


@pytest.mark.parametrize(
    "path, include, exclude, expected",
    [
        ("images-http.txt", [], [], ALL_IMAGES),
        ("images-src-http.txt", [], [], ALL_IMAGES),
        (
            "images-src-http.txt",
            ["core", "rke"],
            [],
            {"busybox", "nginx:1.19", "rancher/hyperkube:v1.21.7-rancher1"},
        ),
        (
            "images-src-http.txt",
            ["nginx", "rancher", "cert-manager"],
            [],
            {
                "nginx:1.19",
                "rancher/hyperkube:v1.21.7-rancher1",
                "docker.io/rancher/klipper-lb:v0.3.4",
                "quay.io/jetstack/cert-manager-controller:v1.6.1",
            },
        ),
        (
            "images-src-http.txt",
            [],
            ["cert-manager"],
            {
                "busybox",
                "nginx:1.19",
                "rancher/hyperkube:v1.21.7-rancher1",
                "docker.io/rancher/klipper-lb:v0.3.4",
            },
        ),
        (
            "images-src-http.txt",
            [],
            ["core"],
            {
                "nginx:1.19",
                "rancher/hyperkube:v1.21.7-rancher1",
                "docker.io/rancher/klipper-lb:v0.3.4",
                "quay.io/jetstack/cert-manager-controller:v1.6.1",
            },
        ),
    ],
)
def test_http_collection(server, path, include, exclude, expected):
    it = ImageTxt(
        f"{SERVER}/{path}",
        include,
        exclude,
        image_factory=FakeImage,
        logger=quiet(),
    )
    check_images(it.contents(), expected)


def test_local_file_ref(tmp_path):
    path = tmp_path / "images-file.txt"
    path.write_text(IMAGES_TXT)
    it = ImageTxt(str(path), image_factory=FakeImage, logger=quiet())
    check_images(it.contents(), ALL_IMAGES)


def test_include_wins_over_exclude(tmp_path):
    path = tmp_path / "images.txt"
    path.write_text(IMAGES_SRC_TXT)
    it = ImageTxt(str(path), ["core"], ["core"], image_factory=FakeImage, logger=quiet())
    check_images(it.contents(), {"busybox", "nginx:1.19"})


def test_contents_computed_once(tmp_path):
    path = tmp_path / "images.txt"
    path.write_text("busybox\n")
    calls = []

    def factory(name):
        calls.append(name)
        return FakeImage(name)

    it = ImageTxt(str(path), image_factory=factory, logger=quiet())
    first = it.contents()
    second = it.contents()
    assert first is second
    assert calls == ["busybox"]


def test_split_images_txt_entries():
    entries = split_images_txt(io.StringIO("# c\n\nbusybox\r\nnginx:1.19 core,nginx\n"))
    assert [str(e.reference) for e in entries] == ["busybox", "nginx:1.19"]
    assert entries[0].sources == set()
    assert entries[1].sources == {"core", "nginx"}


def test_split_images_txt_bytes():
    entries = split_images_txt([b"busybox a\n"])
    assert str(entries[0].reference) == "busybox"
    assert entries[0].sources == {"a"}


def test_split_images_txt_too_many_fields():
    with pytest.raises(ValueError, match="invalid image.txt format"):
        split_images_txt(["busybox core extra\n"])


def test_split_images_txt_invalid_reference():
    with pytest.raises(ValueError, match="invalid reference"):
        split_images_txt(["Not A Ref!\n"])


def test_missing_source_raises():
    it = ImageTxt("does-not-exist-anywhere.txt", image_factory=FakeImage, logger=quiet())
    with pytest.raises(RuntimeError, match="compute OCI layout"):
        it.contents()


def test_pull_failure_raises(tmp_path):
    path = tmp_path / "images.txt"
    path.write_text("busybox\n")

    def failing(name):
        raise ValueError("unreachable")

    it = ImageTxt(str(path), image_factory=failing, logger=quiet())
    with pytest.raises(RuntimeError, match="pull image busybox"):
        it.contents()