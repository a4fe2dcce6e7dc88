"""Locating gödel distributions and tracking the latest released version."""

from __future__ import annotations

import json
import os
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

from .fileops import FileOperationError, checksum
from .layout import (
    APP_NAME,
    CACHE_DIR,
    DOWNLOADS_DIR,
    WRAPPER_CONFIG_DIR,
    LayoutError,
    Mode,
    godel_home_spec_dir,
    new_spec_dir,
    wrapper_spec,
)
from .properties import CHECKSUM_KEY, URL_KEY, PropertiesError, read_properties_file

LATEST_RELEASE_URL = "https://github.com/palantir/godel/releases/latest"
LATEST_VERSION_FILE_NAME = "latest-version.json"


class UpdateError(Exception):
    """Raised when a distribution or version cannot be determined or recorded."""


@dataclass(frozen=True)
class PackageSource:
    """Where a gödel distribution comes from and the checksum it is expected to have."""

    path: str
    checksum: str = ""
    canonical_source: str = ""


@dataclass(frozen=True)
class VersionCache:
    """The latest known version and the Unix time at which it was recorded."""

    latest_version: str = ""
    timestamp: int = 0

    def to_json(self) -> str:
        return json.dumps(
            {"latestVersion": self.latest_version, "timestamp": self.timestamp},
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str) -> "VersionCache":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("version file does not hold a JSON object")
        return cls(
            latest_version=str(data.get("latestVersion", "")),
            timestamp=int(data.get("timestamp", 0)),
        )


def _properties_file_path(project_dir: str) -> str:
    try:
        wrapper = new_spec_dir(project_dir, wrapper_spec(), None, Mode.VALIDATE)
    except LayoutError as exc:
        raise UpdateError(f"unable to create wrapper spec: {exc}") from exc
    return os.path.join(wrapper.path(WRAPPER_CONFIG_DIR), f"{APP_NAME}.properties")


def set_godel_property_key(project_dir: str, key: str, value: str) -> None:
    """Set ``key`` to ``value`` on every matching line of the project's properties file."""
    props_path = _properties_file_path(project_dir)
    try:
        with open(props_path, encoding="utf-8", newline="") as f:
            content = f.read()
    except OSError as exc:
        raise UpdateError(f"failed to read properties file: {exc}") from exc

    prefix = key + "="
    lines = [f"{prefix}{value}" if line.startswith(prefix) else line for line in content.split("\n")]
    try:
        with open(props_path, "w", encoding="utf-8", newline="") as f:
            f.write("\n".join(lines))
    except OSError as exc:
        raise UpdateError(f"failed to write properties file: {exc}") from exc


def godel_props_dist_pkg_info(project_dir: str) -> PackageSource:
    """The distribution URL and checksum named by the project's properties file."""
    props_path = _properties_file_path(project_dir)
    try:
        props = read_properties_file(props_path)
    except PropertiesError as exc:
        raise UpdateError(f"failed to read properties file {props_path}: {exc}") from exc
    url = props.get(URL_KEY)
    if url is None:
        raise UpdateError(f"properties file {props_path} does not contain key {URL_KEY}")
    return PackageSource(url, props.get(CHECKSUM_KEY, ""))


def _home_subdir(alias: str) -> str:
    try:
        home = godel_home_spec_dir(Mode.CREATE)
    except LayoutError as exc:
        raise UpdateError(f"failed to create SpecDir for gödel home: {exc}") from exc
    return home.path(alias)


def downloaded_tgz_for_version(version: str) -> tuple[str, str]:
    """Path and SHA-256 checksum of the downloaded archive for ``version``."""
    tgz_path = os.path.join(_home_subdir(DOWNLOADS_DIR), f"{APP_NAME}-{version}.tgz")
    try:
        os.stat(tgz_path)
    except OSError as exc:
        raise UpdateError(f"failed to stat downloaded TGZ file: {exc}") from exc
    try:
        digest = checksum(tgz_path)
    except FileOperationError as exc:
        raise UpdateError(f"failed to compute checksum: {exc}") from exc
    return tgz_path, digest


def _cache_file_path() -> str:
    return os.path.join(_home_subdir(CACHE_DIR), LATEST_VERSION_FILE_NAME)


def read_latest_cached_version() -> VersionCache:
    """The cached latest version record."""
    path = _cache_file_path()
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        raise UpdateError(f"failed to read version file: {exc}") from exc
    try:
        return VersionCache.from_json(content)
    except (ValueError, TypeError) as exc:
        raise UpdateError(f"failed to unmarshal version file: {exc}") from exc


def write_latest_cached_version(version: str) -> None:
    """Record ``version`` as the latest version, stamped with the current time."""
    path = _cache_file_path()
    record = VersionCache(latest_version=version, timestamp=int(time.time()))
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(record.to_json())
    except OSError as exc:
        raise UpdateError(f"failed to write version file: {exc}") from exc


def _as_timedelta(duration: Union[timedelta, float, int]) -> timedelta:
    return duration if isinstance(duration, timedelta) else timedelta(seconds=duration)


def stored_latest_version_valid(cache: VersionCache, cache_expiration: Union[timedelta, float, int]) -> bool:
    """Whether ``cache`` was recorded no longer than ``cache_expiration`` ago."""
    cutoff = time.time() - _as_timedelta(cache_expiration).total_seconds()
    return cache.timestamp >= int(cutoff) if cutoff == int(cutoff) else cache.timestamp >= cutoff


def latest_godel_version(cache_expiration: Union[timedelta, float, int]) -> str:
    """The latest released version, from the cache if fresh enough, else from the release page.

    A zero ``cache_expiration`` always queries the release page.
    """
    expiration = _as_timedelta(cache_expiration)
    if expiration:
        try:
            cached = read_latest_cached_version()
        except UpdateError:
            cached = None
        if cached is not None and stored_latest_version_valid(cached, expiration):
            return cached.latest_version

    try:
        with urllib.request.urlopen(LATEST_RELEASE_URL, timeout=60) as resp:
            status = resp.status
            final_url = resp.geturl()
    except urllib.error.HTTPError as exc:
        raise UpdateError(f"failed to determine latest release: received status code {exc.code}") from exc
    except (urllib.error.URLError, OSError) as exc:
        raise UpdateError(f"failed to determine latest release: {exc}") from exc
    if status != 200:
        raise UpdateError(f"failed to determine latest release: received status code {status}")

    latest = final_url.rstrip("/").rsplit("/", 1)[-1] or "/"
    if len(latest) >= 2 and latest[0] == "v" and latest[1].isdigit():
        latest = latest[1:]
    try:
        write_latest_cached_version(latest)
    except UpdateError as exc:
        raise UpdateError(f"failed to write latest version to cache: {exc}") from exc
    return latest