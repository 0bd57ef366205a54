"""A collection of images listed in an image text file, optionally filtered by source."""

from __future__ import annotations

import io
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from hauler.config import OCI, OCICollection
from hauler.getter import Client, ClientOptions
from hauler.image import Image
from hauler.log import Logger, new_logger
from hauler.reference import Digest, ReferenceError, Tag, parse_reference


@dataclass
class ImageTxtEntry:
    """One image reference and the sources it was listed under."""

    reference: Tag | Digest
    sources: set[str] = field(default_factory=set)


def split_images_txt(stream: Iterable[str | bytes]) -> list[ImageTxtEntry]:
    """Parse lines of "<reference> [source,source,...]", skipping blanks and comments."""
    entries: list[ImageTxtEntry] = []
    for raw in stream:
        line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        line = line.removesuffix("\n").removesuffix("\r")
        if not line or line.startswith("#"):
            continue
        parts = line.split(" ")
        if len(parts) > 2:
            raise ValueError(
                "invalid image.txt format: must contain only an image reference and "
                f"sources separated by space; invalid line: {line!r}"
            )
        try:
            ref = parse_reference(parts[0])
        except ReferenceError as exc:
            raise ValueError(f"invalid reference {parts[0]}: {exc}") from exc
        sources = set(parts[1].split(",")) if len(parts) == 2 else set()
        entries.append(ImageTxtEntry(ref, sources))
    return entries


class ImageTxt(OCICollection):
    """Images named in the file at ref, pulled lazily on first use."""

    def __init__(
        self,
        ref: str,
        include_sources: Iterable[str] = (),
        exclude_sources: Iterable[str] = (),
        *,
        client: Client | None = None,
        image_factory: Callable[[str], Any] = Image,
        logger: Logger | None = None,
    ) -> None:
        self.ref = ref
        self.include_sources: set[str] = set(include_sources)
        self.exclude_sources: set[str] = set(exclude_sources)
        self._client = client if client is not None else Client(ClientOptions())
        self._image_factory = image_factory
        self._logger = logger
        self._lock = threading.Lock()
        self._computed = False
        self._contents: dict[str, OCI] = {}

    def contents(self) -> dict[str, OCI]:
        """Return the images of the collection keyed by reference."""
        with self._lock:
            if not self._computed:
                try:
                    self._compute()
                except Exception as exc:  # noqa: BLE001
                    raise RuntimeError(f"compute OCI layout: {exc}") from exc
                self._computed = True
            return self._contents

    def _read_entries(self) -> list[ImageTxtEntry]:
        try:
            rc = self._client.content_from(self.ref)
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(f"fetch image.txt ref {self.ref}: {exc}") from exc
        try:
            data = rc.read()
        finally:
            rc.close()
        try:
            return split_images_txt(io.BytesIO(data))
        except ValueError as exc:
            raise ValueError(f"parse image.txt ref {self.ref}: {exc}") from exc

    def _compute(self) -> None:
        log = self._logger if self._logger is not None else new_logger()
        self._contents = {}
        entries = self._read_entries()

        found: set[str] = set()
        for entry in entries:
            found |= entry.sources

        unfiltered = not self.include_sources and not self.exclude_sources
        pull_all = not found or unfiltered
        targets: set[str] = set()

        if pull_all:
            if not found:
                log.infof("image txt file appears to have no sources; pulling all found images")
                if not unfiltered:
                    log.warnf("ImageTxt provided include or exclude sources; ignoring")
            else:
                log.infof("image-sources txt file not filtered; pulling all found images")
        else:
            if self.include_sources and self.exclude_sources:
                log.warnf("ImageTxt provided include and exclude sources; using only include sources")
            if self.include_sources:
                targets = set(self.include_sources)
            else:
                targets = found - self.exclude_sources
            log.infof("pulling images covering sources %s", ", ".join(sorted(targets)))

        for entry in entries:
            matched = False
            if pull_all:
                log.infof("pulling image %s", entry.reference)
            else:
                for source in sorted(entry.sources):
                    if source in targets:
                        matched = True
                        log.infof("pulling image %s (matched source %s)", entry.reference, source)
                        break
            if pull_all or matched:
                name = str(entry.reference)
                try:
                    self._contents[name] = self._image_factory(name)
                except Exception as exc:  # noqa: BLE001
                    raise RuntimeError(f"pull image {name}: {exc}") from exc