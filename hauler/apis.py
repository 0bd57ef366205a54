"""Content and collection API types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VERSION = "v1alpha1"
CONTENT_GROUP = "content.hauler.cattle.io"
COLLECTION_GROUP = "collection.hauler.cattle.io"

CHARTS_CONTENT_KIND = "Charts"
CHARTS_COLLECTION_KIND = "ThickCharts"
DRIVER_CONTENT_KIND = "Driver"
FILES_CONTENT_KIND = "Files"
IMAGES_CONTENT_KIND = "Images"
IMAGE_TXTS_CONTENT_KIND = "ImageTxts"
K3S_COLLECTION_KIND = "K3s"


@dataclass(frozen=True)
class GroupVersion:
    group: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


CONTENT_GROUP_VERSION = GroupVersion(CONTENT_GROUP, VERSION)
COLLECTION_GROUP_VERSION = GroupVersion(COLLECTION_GROUP, VERSION)


@dataclass
class TypeMeta:
    api_version: str = ""
    kind: str = ""

    def group_version(self) -> GroupVersion:
        group, sep, version = self.api_version.rpartition("/")
        return GroupVersion(group, version) if sep else GroupVersion("", self.api_version)

    def group_version_kind(self) -> tuple[GroupVersion, str]:
        return self.group_version(), self.kind

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TypeMeta":
        return TypeMeta(str(data.get("apiVersion") or ""), str(data.get("kind") or ""))


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class Chart:
    name: str = ""
    repo_url: str = ""
    version: str = ""


@dataclass
class ChartSpec:
    charts: list[Chart] = field(default_factory=list)


@dataclass
class Charts:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: ChartSpec = field(default_factory=ChartSpec)


@dataclass
class ChartImage:
    reference: str


@dataclass
class ThickChart:
    chart: Chart = field(default_factory=Chart)
    extra_images: list[ChartImage] = field(default_factory=list)


@dataclass
class ThickChartSpec:
    charts: list[ThickChart] = field(default_factory=list)


@dataclass
class ThickCharts:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: ThickChartSpec = field(default_factory=ThickChartSpec)


@dataclass
class DriverSpec:
    type: str = ""
    version: str = ""


@dataclass
class Driver:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: DriverSpec = field(default_factory=DriverSpec)


@dataclass
class File:
    """A file to collect; name, when given, overrides the name found from path."""

    path: str
    name: str = ""


@dataclass
class FileSpec:
    files: list[File] = field(default_factory=list)


@dataclass
class Files:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: FileSpec = field(default_factory=FileSpec)


@dataclass
class Image:
    """An image by tag or digest, with an optional signing key path and platform."""

    name: str
    key: str = ""
    platform: str = ""


@dataclass
class ImageSpec:
    images: list[Image] = field(default_factory=list)


@dataclass
class Images:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: ImageSpec = field(default_factory=ImageSpec)


@dataclass
class ImageTxtSources:
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)


@dataclass
class ImageTxt:
    ref: str = ""
    sources: ImageTxtSources = field(default_factory=ImageTxtSources)


@dataclass
class ImageTxtsSpec:
    image_txts: list[ImageTxt] = field(default_factory=list)


@dataclass
class ImageTxts:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: ImageTxtsSpec = field(default_factory=ImageTxtsSpec)


@dataclass
class K3sSpec:
    version: str = ""
    arch: str = ""


@dataclass
class K3s:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: K3sSpec = field(default_factory=K3sSpec)