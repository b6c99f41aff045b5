"""Staging and installation of machine driver binaries."""

from __future__ import annotations

import hashlib
import logging
import shutil
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

import httpx

from machine_schema_sync.configuration.runtime_settings import DriverInstallSettings

logger = logging.getLogger(__name__)

BUILTIN_BINARY_PREFIX = "docker-machine-driver-"
_CHUNK_SIZE = 64 * 1024


class DriverInstallError(Exception):
    """Raised when a driver binary cannot be staged or installed."""


class DriverInstaller(Protocol):
    """Protocol implemented by driver installers."""

    def stage(self) -> None: ...

    def install(self) -> None: ...

    def name(self) -> str: ...


class BinaryDriverInstaller:
    """Download, verify and install one driver binary.

    Built-in drivers ship with the host and are only located; external drivers
    are downloaded from ``url`` into the staging directory, checked against
    ``checksum`` when one is given, and copied into the install directory.
    """

    def __init__(
        self,
        *,
        builtin: bool,
        driver_name: str,
        url: str,
        checksum: str,
        settings: DriverInstallSettings,
        client: httpx.Client | None = None,
    ) -> None:
        self._builtin = builtin
        self._client = client
        self._url = url
        self._checksum = checksum.strip().lower()
        self._settings = settings
        self._binary_name = (
            BUILTIN_BINARY_PREFIX + driver_name if builtin else _binary_name_from_url(url)
        )
        self._staged_path: Path | None = None

    def name(self) -> str:
        return self._binary_name

    @property
    def installed_path(self) -> Path:
        return self._settings.install_dir / self._binary_name

    def stage(self) -> None:
        if self._builtin:
            return
        staging_dir = self._settings.staging_dir
        staging_dir.mkdir(parents=True, exist_ok=True)
        destination = staging_dir / self._binary_name
        logger.info("downloading driver %s from %s", self._binary_name, self._url)
        try:
            with self._open_download() as response, destination.open("wb") as handle:
                response.raise_for_status()
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    handle.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            destination.unlink(missing_ok=True)
            raise DriverInstallError(
                f"Failed to download driver {self._binary_name} from {self._url}: {exc}"
            ) from exc
        self._verify_checksum(destination)
        self._staged_path = destination

    def _open_download(self) -> AbstractContextManager[httpx.Response]:
        timeout = self._settings.download_timeout_seconds
        if self._client is not None:
            return self._client.stream("GET", self._url, timeout=timeout, follow_redirects=True)
        return httpx.stream("GET", self._url, timeout=timeout, follow_redirects=True)

    def install(self) -> None:
        if self._builtin:
            if self.installed_path.exists() or shutil.which(self._binary_name):
                return
            raise DriverInstallError(f"Built-in driver binary not found: {self._binary_name}")
        if self._staged_path is None:
            raise DriverInstallError(f"Driver {self._binary_name} must be staged before install")
        target = self.installed_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self._staged_path, target)
            target.chmod(0o755)
        except OSError as exc:
            raise DriverInstallError(
                f"Failed to install driver {self._binary_name} to {target}: {exc}"
            ) from exc
        logger.info("installed driver %s to %s", self._binary_name, target)

    def _verify_checksum(self, path: Path) -> None:
        if not self._checksum:
            return
        if len(self._checksum) == 32:
            digest = hashlib.md5(usedforsecurity=False)
        elif len(self._checksum) == 64:
            digest = hashlib.sha256()
        else:
            raise DriverInstallError(
                f"Unsupported checksum for driver {self._binary_name}: {self._checksum}"
            )
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
        actual = digest.hexdigest()
        if actual != self._checksum:
            path.unlink(missing_ok=True)
            raise DriverInstallError(
                f"Checksum mismatch for driver {self._binary_name}: "
                f"expected {self._checksum}, got {actual}"
            )


def _binary_name_from_url(url: str) -> str:
    path = urlparse(url).path
    binary_name = path.rstrip("/").rsplit("/", 1)[-1]
    if not binary_name:
        raise DriverInstallError(f"Cannot derive a driver binary name from url: {url!r}")
    return binary_name


def normalize_driver_name(binary_name: str, prefixes: tuple[str, ...]) -> str:
    """Strip the first matching binary prefix from ``binary_name``."""
    for prefix in prefixes:
        if binary_name.startswith(prefix):
            return binary_name[len(prefix) :]
    return binary_name
