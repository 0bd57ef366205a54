"""Container images read from a remote registry."""

from __future__ import annotations

import gzip
import io
import json
import re
from typing import Any, BinaryIO

import requests

from hauler import consts
from hauler.config import OCI, Descriptor, Hash, Manifest, parse_hash
from hauler.reference import DOCKER_HUB, Digest, ReferenceError, Tag, parse_reference

_INDEX_TYPES = (consts.OCI_IMAGE_INDEX_SCHEMA, consts.DOCKER_MANIFEST_LIST_SCHEMA2)
_MANIFEST_ACCEPT = ", ".join(
    (
        consts.OCI_MANIFEST_SCHEMA1,
        consts.OCI_IMAGE_INDEX_SCHEMA,
        consts.DOCKER_MANIFEST_SCHEMA2,
        consts.DOCKER_MANIFEST_LIST_SCHEMA2,
    )
)
_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')
DEFAULT_PLATFORM = "linux/amd64"


class RegistryError(Exception):
    """Raised when a registry cannot be reached or returns an error."""


class _Registry:
    """Minimal registry API client for one repository."""

    def __init__(
        self,
        ref: Tag | Digest,
        session: requests.Session | None = None,
        auth: tuple[str, str] | None = None,
    ) -> None:
        repo = ref.context()
        host = repo.registry or DOCKER_HUB
        if host == DOCKER_HUB:
            host = "registry-1.docker.io"
        scheme = "http" if host.startswith(("localhost", "127.0.0.1")) else "https"
        self.base = f"{scheme}://{host}/v2/{repo.repository}"
        self.session = session if session is not None else requests.Session()
        self.auth = auth
        self._token: str | None = None

    def _fetch_token(self, challenge: str) -> str:
        params = dict(_CHALLENGE_PARAM.findall(challenge))
        realm = params.pop("realm", "")
        if not realm:
            raise RegistryError(f"invalid auth challenge: {challenge}")
        resp = self.session.get(realm, params=params, auth=self.auth)
        if resp.status_code >= 400:
            raise RegistryError(f"token request to {realm}: unexpected status {resp.status_code}")
        body = resp.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise RegistryError(f"token request to {realm}: no token in response")
        return str(token)

    def request(self, method: str, url: str, headers: dict[str, str] | None = None) -> Any:
        headers = dict(headers or {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        resp = self.session.request(
            method, url, headers=headers, auth=None if self._token else self.auth
        )
        if resp.status_code == 401 and self._token is None:
            challenge = resp.headers.get("WWW-Authenticate", "")
            if challenge.lower().startswith("bearer"):
                self._token = self._fetch_token(challenge)
                headers["Authorization"] = f"Bearer {self._token}"
                resp = self.session.request(method, url, headers=headers)
        if resp.status_code >= 400:
            raise RegistryError(f"{method} {url}: unexpected status {resp.status_code}")
        return resp

    def manifest(self, identifier: str) -> tuple[bytes, str]:
        resp = self.request("GET", f"{self.base}/manifests/{identifier}", {"Accept": _MANIFEST_ACCEPT})
        data = resp.content
        media_type = resp.headers.get("Content-Type", "").split(";")[0].strip()
        if media_type not in _INDEX_TYPES and media_type not in (
            consts.OCI_MANIFEST_SCHEMA1,
            consts.DOCKER_MANIFEST_SCHEMA2,
        ):
            try:
                media_type = json.loads(data).get("mediaType", media_type)
            except ValueError:
                pass
        return data, media_type

    def blob(self, digest: Hash) -> bytes:
        return self.request("GET", f"{self.base}/blobs/{digest}").content


def _select_platform(index: dict[str, Any], platform: str) -> Descriptor:
    parts = platform.split("/")
    want_os, want_arch = parts[0], parts[1] if len(parts) > 1 else ""
    want_variant = parts[2] if len(parts) > 2 else ""
    for child in index.get("manifests") or []:
        plat = child.get("platform") or {}
        if plat.get("os") != want_os or plat.get("architecture") != want_arch:
            continue
        if want_variant and plat.get("variant", "") != want_variant:
            continue
        return Descriptor.from_dict(child)
    raise RegistryError(f"no child with platform {platform} in index")


class _RemoteLayer:
    """A layer whose content is fetched from the registry on demand."""

    def __init__(self, registry: _Registry, desc: Descriptor, diff_id: Hash | None) -> None:
        self._registry = registry
        self._desc = desc
        self._diff_id = diff_id or desc.digest

    def digest(self) -> Hash:
        return self._desc.digest

    def diff_id(self) -> Hash:
        return self._diff_id

    def size(self) -> int:
        return self._desc.size

    def media_type(self) -> str:
        return self._desc.media_type

    def descriptor(self) -> Descriptor:
        return self._desc

    def compressed(self) -> BinaryIO:
        return io.BytesIO(self._registry.blob(self._desc.digest))

    def uncompressed(self) -> BinaryIO:
        data = self._registry.blob(self._desc.digest)
        if self._desc.media_type.endswith("gzip"):
            data = gzip.decompress(data)
        return io.BytesIO(data)


class Image(OCI):
    """An image manifest, config and layers read from a registry."""

    def __init__(
        self,
        name: str,
        *,
        platform: str = DEFAULT_PLATFORM,
        session: requests.Session | None = None,
        auth: tuple[str, str] | None = None,
    ) -> None:
        self.name = name
        ref = parse_reference(name)
        self._registry = _Registry(ref, session, auth)
        data, media_type = self._registry.manifest(ref.identifier())
        if media_type in _INDEX_TYPES:
            child = _select_platform(json.loads(data), platform)
            data, media_type = self._registry.manifest(str(child.digest))
        self._raw_manifest = data
        self._manifest = Manifest.from_dict(json.loads(data))
        if not self._manifest.media_type:
            self._manifest.media_type = media_type
        self._raw_config: bytes | None = None

    def media_type(self) -> str:
        return self._manifest.media_type

    def raw_config(self) -> bytes:
        if self._raw_config is None:
            self._raw_config = self._registry.blob(self._manifest.config.digest)
        return self._raw_config

    def manifest(self) -> Manifest:
        return self._manifest

    def layers(self) -> list[_RemoteLayer]:
        diff_ids: list[Hash] = []
        try:
            cfg = json.loads(self.raw_config())
            diff_ids = [parse_hash(d) for d in (cfg.get("rootfs") or {}).get("diff_ids") or []]
        except (ValueError, AttributeError):
            diff_ids = []
        if len(diff_ids) != len(self._manifest.layers):
            diff_ids = []
        return [
            _RemoteLayer(self._registry, desc, diff_ids[i] if diff_ids else None)
            for i, desc in enumerate(self._manifest.layers)
        ]


def is_multi_arch_image(name: str) -> bool:
    """Report whether name refers to an image index rather than a single image."""
    try:
        ref = parse_reference(name)
    except ReferenceError as exc:
        raise RegistryError(f'parsing reference "{name}": {exc}') from exc
    try:
        _, media_type = _Registry(ref).manifest(ref.identifier())
    except (RegistryError, requests.RequestException) as exc:
        raise RegistryError(f'getting image "{name}": {exc}') from exc
    return media_type in _INDEX_TYPES