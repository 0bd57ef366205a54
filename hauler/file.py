"""An artifact for a file, directory or URL fetched through a getter client."""

from __future__ import annotations

from typing import Any

from hauler import consts
from hauler.config import OCI, Manifest, MarshallableConfig, to_config
from hauler.getter import Client, ClientOptions, GetterTypeUnknownError
from hauler.layer import Layer


class File(OCI):
    """A single-layer artifact whose content is read from path."""

    def __init__(
        self,
        path: str,
        *,
        client: Client | None = None,
        config: Any = None,
        config_media_type: str = "",
        annotations: dict[str, str] | None = None,
    ) -> None:
        self.path = path
        self._client = client if client is not None else Client(ClientOptions())
        self._config: MarshallableConfig | None = (
            to_config(config, config_media_type) if config is not None else None
        )
        self._annotations = annotations
        self._blob: Layer | None = None
        self._manifest: Manifest | None = None
        self._computed = False

    def name(self, path: str) -> str:
        """Return the name the client gives to path."""
        return self._client.name(path)

    def media_type(self) -> str:
        return consts.OCI_MANIFEST_SCHEMA1

    def raw_config(self) -> bytes:
        self._compute()
        assert self._config is not None
        return self._config.raw()

    def layers(self) -> list[Layer]:
        self._compute()
        assert self._blob is not None
        return [self._blob]

    def manifest(self) -> Manifest:
        self._compute()
        assert self._manifest is not None
        return self._manifest

    def _compute(self) -> None:
        if self._computed:
            return
        blob = self._client.layer_from(self.path)
        cfg = self._client.config(self.path) or self._config
        if cfg is None:
            raise GetterTypeUnknownError(f"no config for source {self.path}")
        self._manifest = Manifest(
            config=cfg.descriptor(),
            layers=[blob.descriptor()],
            media_type=self.media_type(),
            schema_version=2,
            annotations=dict(self._annotations or {}),
        )
        self._config = cfg
        self._blob = blob
        self._computed = True