"""Fetching file content from local files, directories and HTTP(S) sources."""

from __future__ import annotations

import gzip
import os
import tarfile
import tempfile
from dataclasses import dataclass
from typing import Any, BinaryIO, Iterator
from urllib.parse import SplitResult, unquote, urlsplit, urlunsplit

import requests

from hauler import consts
from hauler.config import MarshallableConfig, to_config
from hauler.layer import Layer, from_opener

ANNOTATION_UNPACK = "io.deis.oras.content.unpack"


class GetterTypeUnknownError(LookupError):
    """Raised when no getter recognises a source."""


@dataclass
class ClientOptions:
    name_override: str = ""


def _url_string(url: SplitResult) -> str:
    return urlunsplit(url)


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


class FileGetter:
    """Reads a single local file."""

    def _path(self, url: SplitResult) -> str:
        parts = [p for p in (url.netloc, url.path) if p]
        if not parts:
            return ""
        return os.path.normpath(os.path.join(*parts))

    def name(self, url: SplitResult) -> str:
        return os.path.basename(self._path(url)) or "."

    def open(self, url: SplitResult) -> BinaryIO:
        return open(self._path(url), "rb")

    def _stat_is_dir(self, url: SplitResult) -> bool | None:
        path = self._path(url)
        if not path:
            return None
        try:
            return os.path.isdir(path) if os.path.exists(path) else None
        except (OSError, ValueError):
            return None

    def detect(self, url: SplitResult) -> bool:
        return self._stat_is_dir(url) is False

    def config(self, url: SplitResult) -> MarshallableConfig:
        return to_config({"reference": _url_string(url)}, consts.FILE_LOCAL_CONFIG_MEDIA_TYPE)


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for entry in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, entry))


def tar_dir(
    root: str | os.PathLike[str],
    prefix: str,
    out: BinaryIO,
    strip_times: bool = False,
) -> None:
    """Write root as a tar stream to out, with entry names placed under prefix."""
    root = os.fspath(root)
    with tarfile.open(fileobj=out, mode="w|", format=tarfile.PAX_FORMAT) as tw:
        for path in _walk(root):
            rel = os.path.relpath(path, root)
            name = os.path.normpath(os.path.join(prefix, rel)).replace(os.sep, "/")
            info = tw.gettarinfo(path, arcname=name)
            if info is None:
                raise OSError(f"{path}: unsupported file type")
            info.uid = 0
            info.gid = 0
            info.uname = ""
            info.gname = ""
            if strip_times:
                info.mtime = 0
            if info.isreg():
                with open(path, "rb") as fh:
                    tw.addfile(info, fh)
            else:
                tw.addfile(info)


class DirectoryGetter(FileGetter):
    """Reads a local directory as a gzipped tarball."""

    def open(self, url: SplitResult) -> BinaryIO:
        tmp = tempfile.TemporaryFile(prefix="hauler")
        try:
            with gzip.GzipFile(filename="", fileobj=tmp, mode="wb", mtime=0) as zw:
                tar_dir(self._path(url), self.name(url), zw, False)
            tmp.flush()
            tmp.seek(0)
        except BaseException:
            tmp.close()
            raise
        return tmp

    def detect(self, url: SplitResult) -> bool:
        return self._stat_is_dir(url) is True

    def config(self, url: SplitResult) -> MarshallableConfig:
        return to_config(
            {"reference": _url_string(url)}, consts.FILE_DIRECTORY_CONFIG_MEDIA_TYPE
        )


class HttpGetter:
    """Reads content over HTTP or HTTPS."""

    def name(self, url: SplitResult) -> str:
        target = _url_string(url)
        try:
            requests.head(target, allow_redirects=True)
        except requests.RequestException:
            return ""
        return _base(unquote(target))

    def open(self, url: SplitResult) -> BinaryIO:
        resp = requests.get(_url_string(url), stream=True)
        resp.raw.decode_content = True
        return resp.raw

    def detect(self, url: SplitResult) -> bool:
        return url.scheme in ("http", "https")

    def config(self, url: SplitResult) -> MarshallableConfig:
        return to_config({"reference": _url_string(url)}, consts.FILE_HTTP_CONFIG_MEDIA_TYPE)


class Client:
    """Chooses a getter for a source and reads content through it."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        getters: dict[str, Any] | None = None,
    ) -> None:
        self.options = options if options is not None else ClientOptions()
        self.getters: dict[str, Any] = (
            getters
            if getters is not None
            else {
                "file": FileGetter(),
                "directory": DirectoryGetter(),
                "http": HttpGetter(),
            }
        )

    def _getter_from(self, url: SplitResult) -> Any:
        for getter in self.getters.values():
            if getter.detect(url):
                return getter
        raise GetterTypeUnknownError(
            f"source {_url_string(url)}: no getter type found matching reference"
        )

    def layer_from(self, source: str) -> Layer:
        """Build a file layer from source."""
        url = urlsplit(source)
        getter = self._getter_from(url)
        annotations = {consts.ANNOTATION_TITLE: self.name(source)}
        if isinstance(getter, DirectoryGetter):
            annotations[ANNOTATION_UNPACK] = "true"
        return from_opener(
            lambda: getter.open(url), consts.FILE_LAYER_MEDIA_TYPE, annotations
        )

    def content_from(self, source: str) -> BinaryIO:
        """Open the content of source for reading."""
        try:
            url = urlsplit(source)
        except ValueError as exc:
            raise ValueError(f"parse source {source}: {exc}") from exc
        return self._getter_from(url).open(url)

    def name(self, source: str) -> str:
        if self.options.name_override:
            return self.options.name_override
        try:
            url = urlsplit(source)
        except ValueError:
            return source
        for getter in self.getters.values():
            if getter.detect(url):
                return getter.name(url)
        return source

    def config(self, source: str) -> MarshallableConfig | None:
        try:
            url = urlsplit(source)
        except ValueError:
            return None
        for getter in self.getters.values():
            if getter.detect(url):
                return getter.config(url)
        return None