"""Parsing and rewriting of OCI image references."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_NAMESPACE = "hauler"
DEFAULT_TAG = "latest"
DOCKER_HUB = "index.docker.io"

_REPO_CHARS = re.compile(r"^[a-z0-9_\-./]+$")
_TAG_RE = re.compile(r"^[\w][\w.\-]{0,127}$")
_DIGEST_RE = re.compile(r"^sha256:[a-f0-9]{64}$")
_REGISTRY_RE = re.compile(r"^[A-Za-z0-9.\-:\[\]]+$")


class ReferenceError(ValueError):
    """Raised when a reference cannot be parsed."""


@dataclass(frozen=True)
class Repository:
    registry: str
    repository: str

    def name(self) -> str:
        return f"{self.registry}/{self.repository}" if self.registry else self.repository

    def __str__(self) -> str:
        return self.name()

    def tag(self, tag: str) -> "Tag":
        if not _TAG_RE.match(tag):
            raise ReferenceError(f"tag can only contain the characters [\\w.-]: {tag!r}")
        return Tag(self, tag, f"{self.name()}:{tag}")

    def digest(self, digest: str) -> "Digest":
        if not _DIGEST_RE.match(digest):
            raise ReferenceError(f"invalid digest: {digest!r}")
        return Digest(self, digest, f"{self.name()}@{digest}")


@dataclass(frozen=True)
class Tag:
    repository: Repository
    tag_str: str
    original: str

    def context(self) -> Repository:
        return self.repository

    def identifier(self) -> str:
        return self.tag_str

    def name(self) -> str:
        return f"{self.repository.name()}:{self.tag_str}"

    def __str__(self) -> str:
        return self.original


@dataclass(frozen=True)
class Digest:
    repository: Repository
    digest_str: str
    original: str

    def context(self) -> Repository:
        return self.repository

    def identifier(self) -> str:
        return self.digest_str

    def name(self) -> str:
        return f"{self.repository.name()}@{self.digest_str}"

    def __str__(self) -> str:
        return self.original


def _new_repository(name: str, default_registry: str) -> Repository:
    if not name:
        raise ReferenceError("a repository name must be specified")
    registry = default_registry
    repo = name
    first, sep, rest = name.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        registry, repo = first, rest
        if not _REGISTRY_RE.match(registry):
            raise ReferenceError(f"invalid registry: {registry!r}")
    if registry == "docker.io":
        registry = DOCKER_HUB
    if not repo or not _REPO_CHARS.match(repo):
        raise ReferenceError(
            f"repository can only contain the characters abcdefghijklmnopqrstuvwxyz0123456789_-./: {repo!r}"
        )
    if registry == DOCKER_HUB and "/" not in repo:
        repo = f"library/{repo}"
    return Repository(registry, repo)


def parse_reference(
    ref: str, default_registry: str = DOCKER_HUB, default_tag: str = DEFAULT_TAG
) -> Tag | Digest:
    """Parse a reference into a Tag or Digest."""
    if "@" in ref:
        base, _, digest = ref.partition("@")
        if not _DIGEST_RE.match(digest):
            raise ReferenceError(f"could not parse reference: {ref}")
        return Digest(_new_repository(base, default_registry), digest, ref)
    base, tag = ref, default_tag
    head, sep, tail = ref.rpartition(":")
    if sep and "/" not in tail:
        base, tag = head, tail
    if not _TAG_RE.match(tag):
        raise ReferenceError(f"could not parse reference: {ref}")
    return Tag(_new_repository(base, default_registry), tag, ref)


def parse(ref: str) -> Tag | Digest:
    """Parse a reference, placing it in the default namespace if it has none."""
    r = parse_reference(ref, "", DEFAULT_TAG)
    if "/" not in str(r):
        return parse_reference(f"{DEFAULT_NAMESPACE}/{r}", "", DEFAULT_TAG)
    return r


def new_tagged(name: str, tag: str) -> Tag:
    """Build a tagged reference from a path component and tag."""
    repo = parse(name.lower().replace("+", "-"))
    return repo.context().tag(tag.replace("+", "-"))


def relocate(reference: str, registry: str) -> Tag | Digest:
    """Move a reference to another registry, keeping its repository and identifier."""
    ref = parse_reference(reference)
    relocated = parse_reference(ref.context().repository, default_registry=registry)
    if isinstance(ref, Digest):
        return relocated.context().digest(ref.identifier())
    return relocated.context().tag(ref.identifier())