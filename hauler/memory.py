"""An artifact over a set of bytes held in memory."""

from __future__ import annotations

from typing import Any

from hauler import consts
from hauler.config import OCI, Manifest, MarshallableConfig, to_config
from hauler.layer import Layer, new_static_layer


class Memory(OCI):
    """A single-layer artifact whose content is held in memory."""

    def __init__(
        self,
        data: bytes,
        media_type: str = "",
        *,
        config: Any = None,
        config_media_type: str = "",
        annotations: dict[str, str] | None = None,
    ) -> None:
        self._blob = new_static_layer(data, media_type)
        self._config: MarshallableConfig | None
        if config is None:
            self._config = to_config({"mediaType": consts.MEMORY_CONFIG_MEDIA_TYPE})
        else:
            self._config = to_config(config, config_media_type)
        self._annotations = dict(annotations or {})

    def media_type(self) -> str:
        return consts.OCI_MANIFEST_SCHEMA1

    def manifest(self) -> Manifest:
        if self._config is None:
            raise ValueError("memory artifact has no config")
        return Manifest(
            config=self._config.descriptor(),
            layers=[self._blob.descriptor()],
            media_type=self.media_type(),
            schema_version=2,
            annotations=dict(self._annotations),
        )

    def raw_config(self) -> bytes:
        if self._config is None:
            return b"{}"
        return self._config.raw()

    def layers(self) -> list[Layer]:
        return [self._blob]