"""Media types, annotation names and other fixed strings."""

OCI_MANIFEST_SCHEMA1 = "application/vnd.oci.image.manifest.v1+json"
DOCKER_MANIFEST_SCHEMA2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST_SCHEMA2 = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_IMAGE_INDEX_SCHEMA = "application/vnd.oci.image.index.v1+json"

DOCKER_CONFIG_JSON = "application/vnd.docker.container.image.v1+json"
DOCKER_LAYER = "application/vnd.docker.image.rootfs.diff.tar.gzip"
DOCKER_FOREIGN_LAYER = "application/vnd.docker.image.rootfs.foreign.diff.tar.gzip"
DOCKER_UNCOMPRESSED_LAYER = "application/vnd.docker.image.rootfs.diff.tar"
OCI_LAYER = "application/vnd.oci.image.layer.v1.tar+gzip"
OCI_ARTIFACT = "application/vnd.oci.empty.v1+json"

# Reserved media type for the Helm chart manifest config.
CHART_CONFIG_MEDIA_TYPE = "application/vnd.cncf.helm.config.v1+json"
# Reserved media type for Helm chart package content.
CHART_LAYER_MEDIA_TYPE = "application/vnd.cncf.helm.chart.content.v1.tar+gzip"
# Reserved media type for Helm chart provenance files.
PROV_LAYER_MEDIA_TYPE = "application/vnd.cncf.helm.chart.provenance.v1.prov"

FILE_LAYER_MEDIA_TYPE = "application/vnd.content.hauler.file.layer.v1"
FILE_LOCAL_CONFIG_MEDIA_TYPE = "application/vnd.content.hauler.file.local.config.v1+json"
FILE_DIRECTORY_CONFIG_MEDIA_TYPE = "application/vnd.content.hauler.file.directory.config.v1+json"
FILE_HTTP_CONFIG_MEDIA_TYPE = "application/vnd.content.hauler.file.http.config.v1+json"

MEMORY_CONFIG_MEDIA_TYPE = "application/vnd.content.hauler.memory.config.v1+json"

WASM_ARTIFACT_LAYER_MEDIA_TYPE = "application/vnd.wasm.content.layer.v1+wasm"
WASM_CONFIG_MEDIA_TYPE = "application/vnd.wasm.config.v1+json"

UNKNOWN_MANIFEST = "application/vnd.hauler.cattle.io.unknown.v1+json"
UNKNOWN_LAYER = "application/vnd.content.hauler.unknown.layer"

OCI_VENDOR_PREFIX = "vnd.oci"
DOCKER_VENDOR_PREFIX = "vnd.docker"
HAULER_VENDOR_PREFIX = "vnd.hauler"
OCI_IMAGE_INDEX_FILE = "index.json"

KIND_ANNOTATION_NAME = "kind"
KIND_ANNOTATION_IMAGE = "dev.cosignproject.cosign/image"
KIND_ANNOTATION_INDEX = "dev.cosignproject.cosign/imageIndex"

CARBIDE_REGISTRY = "rgcrprod.azurecr.us"
IMAGE_ANNOTATION_KEY = "hauler.dev/key"
IMAGE_ANNOTATION_PLATFORM = "hauler.dev/platform"
IMAGE_ANNOTATION_REGISTRY = "hauler.dev/registry"

DEFAULT_STORE_NAME = "store"

# Standard OCI annotation keys.
ANNOTATION_REF_NAME = "org.opencontainers.image.ref.name"
ANNOTATION_TITLE = "org.opencontainers.image.title"