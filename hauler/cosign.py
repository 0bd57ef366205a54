"""Signing, saving and loading images by running the cosign tool."""

from __future__ import annotations

import os
import platform as _platform
import shutil
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from hauler.image import is_multi_arch_image
from hauler.log import from_context
from hauler.store import Layout

MAX_RETRIES = 3
RETRY_DELAY = 5.0


class CosignError(RuntimeError):
    """Raised when a cosign operation fails."""


@dataclass
class RegistryOptions:
    username: str = ""
    password: str = ""
    insecure: bool = False
    plain_http: bool = False


def _goos() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "darwin"
    return sys.platform.rstrip("0123456789") or sys.platform


def _goarch() -> str:
    machine = _platform.machine().lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "i386": "386",
        "i686": "386",
        "x86": "386",
    }.get(machine, "arm" if machine.startswith("arm") else machine)


def cosign_path() -> str:
    """Return where the cosign binary lives, creating its directory if needed."""
    hauler_dir = Path.home() / ".hauler"
    try:
        hauler_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise CosignError(f"error creating .hauler directory: {exc}") from exc
    name = "cosign.exe" if _goos() == "windows" else "cosign"
    return str(hauler_dir / name)


def retry_operation(
    operation: Callable[[], object],
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
) -> None:
    """Run operation until it succeeds, at most max_retries times."""
    log = from_context()
    for attempt in range(1, max_retries + 1):
        try:
            operation()
            return
        except Exception as exc:  # noqa: BLE001
            log.warnf("error (attempt %d/%d): %v", attempt, max_retries, exc)
        if attempt < max_retries:
            time.sleep(retry_delay)
    raise CosignError(f"operation failed after {max_retries} attempts")


def _run_and_log(cmd: list[str], out_log: Callable, err_log: Callable) -> None:
    result = subprocess.run(cmd, capture_output=True, text=True)
    for line in result.stdout.splitlines():
        out_log("%s", line)
    for line in result.stderr.splitlines():
        err_log("%s", line)
    if result.returncode != 0:
        raise CosignError(f"{cmd[1]} exited with status {result.returncode}")


def verify_signature(store: Layout, key_path: str, ref: str) -> None:
    """Verify the signature of ref with the public key at key_path."""

    def operation() -> None:
        cmd = [cosign_path(), "verify", "--insecure-ignore-tlog", "--key", key_path, ref]
        result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
        if result.returncode != 0:
            raise CosignError(
                f"error verifying signature: exit status {result.returncode}, output: {result.stdout}"
            )

    retry_operation(operation)


def save_image(store: Layout, ref: str, platform: str = "") -> None:
    """Save an image with its signatures and attestations into the store."""
    log = from_context()

    def operation() -> None:
        path = cosign_path()
        multi_arch = is_multi_arch_image(ref)
        log.debugf("multi-arch image: %v", multi_arch)
        cmd = [path, "save", ref, "--dir", store.root]
        if platform and multi_arch:
            log.debugf("platform for image [%s]", platform)
            cmd += ["--platform", platform]
        _run_and_log(cmd, log.debugf, log.warnf)

    retry_operation(operation)


def load_images(store: Layout, registry: str, ropts: RegistryOptions | None = None) -> None:
    """Push the store's contents to a registry."""
    ropts = ropts if ropts is not None else RegistryOptions()
    log = from_context()
    cmd = [cosign_path(), "load", "--registry", registry, "--dir", store.root]
    if ropts.insecure:
        cmd.append("--allow-insecure-registry=true")
    if ropts.plain_http:
        cmd.append("--allow-http-registry=true")
    _run_and_log(cmd, log.infof, log.errorf)


def registry_login(store: Layout, registry: str, ropts: RegistryOptions) -> None:
    """Log in to a registry with the given credentials."""
    log = from_context()
    cmd = [cosign_path(), "login", registry, "-u", ropts.username, "-p", ropts.password]
    result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    if result.returncode != 0:
        raise CosignError(
            f"error logging into registry: exit status {result.returncode}, output: {result.stdout}"
        )
    log.infof("%s", result.stdout.strip("\n"))


def ensure_binary_exists(binaries_dir: str | os.PathLike[str]) -> None:
    """Install the cosign binary for this platform from binaries_dir."""
    target = cosign_path()
    goos, goarch = _goos(), _goarch()
    name = f"cosign-{goos}-{goarch}" + (".exe" if goos == "windows" else "")
    source = Path(binaries_dir) / name
    try:
        shutil.copyfile(source, target)
        os.chmod(target, 0o755)
    except OSError as exc:
        raise CosignError(f"error: {exc}") from exc