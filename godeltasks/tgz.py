"""Inspection and verification of gödel distribution archives."""

from __future__ import annotations

import os
import tarfile
from typing import Sequence

from .layout import APP_NAME, app_spec, app_spec_template


class PackageError(Exception):
    """Raised when an archive is not a valid gödel package."""


def get_paths_in_tgz(tgz_file: str) -> set[str]:
    """Paths of the directories and regular files in the gzipped tar ``tgz_file``."""
    paths: set[str] = set()
    try:
        with tarfile.open(tgz_file, "r:gz") as archive:
            for member in archive:
                if member.isdir():
                    paths.add(os.path.normpath(member.name))
                elif member.isreg():
                    paths.add(member.name)
    except tarfile.TarError as exc:
        raise PackageError(f"failed to read entry in file {tgz_file}: {exc}") from exc
    except OSError as exc:
        raise PackageError(f"failed to open file {tgz_file}: {exc}") from exc
    return paths


def version_from_entries(sorted_entries: Sequence[str]) -> str:
    """The version named by the first entry, which must be "godel-<version>"."""
    if not sorted_entries:
        raise PackageError("no entries found")
    dir_entry = sorted_entries[0]
    prefix = APP_NAME + "-"
    if not dir_entry.startswith(prefix):
        raise PackageError(
            f"entry {dir_entry} in {list(sorted_entries)} did not have expected prefix {prefix}"
        )
    return dir_entry[len(prefix):]


def verify_package_tgz(tgz_file: str) -> str:
    """Check that ``tgz_file`` holds a gödel distribution and return its version."""
    try:
        entries = get_paths_in_tgz(tgz_file)
    except PackageError as exc:
        raise PackageError(f"failed to get directories in tgz file {tgz_file}: {exc}") from exc
    actual = sorted(entries)
    try:
        version = version_from_entries(actual)
    except PackageError as exc:
        raise PackageError(f"could not determine version from tgz file entries: {exc}") from exc

    expected = app_spec().paths(app_spec_template(version), False)
    for path in expected:
        if path not in entries:
            raise PackageError(
                f"tgz {tgz_file} does not contain a valid package: failed to find {path}.\n"
                f"Required: {expected}\nActual:   {actual}"
            )
    return version