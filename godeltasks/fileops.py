"""File and directory operations used when installing and updating distributions."""

from __future__ import annotations

import hashlib
import os
import shutil
import stat
from typing import Iterable, Optional


class FileOperationError(Exception):
    """Raised when a file operation cannot be completed."""


def _base(path: str) -> str:
    return os.path.basename(os.path.normpath(path))


def _verify_dst_path_safe(dst: str) -> None:
    if os.path.lexists(dst):
        raise FileOperationError(f"destination path {dst} already exists")
    parent = os.path.dirname(os.path.normpath(dst)) or "."
    if not os.path.exists(parent):
        raise FileOperationError(f"parent directory of destination path {dst} does not exist")


def move(src: str, dst: str) -> None:
    """Move ``src`` to ``dst``, which must not exist but whose parent must."""
    try:
        _verify_dst_path_safe(dst)
    except FileOperationError as exc:
        raise FileOperationError(f"cannot move directory to path {dst}: {exc}") from exc
    try:
        os.rename(src, dst)
    except OSError as exc:
        raise FileOperationError(f"failed to rename {src} to {dst}: {exc}") from exc


def copy_dir(src: str, dst: str) -> None:
    """Recursively copy directory ``src`` to a new path ``dst``."""
    try:
        _verify_dst_path_safe(dst)
    except FileOperationError as exc:
        raise FileOperationError(f"cannot copy directory to path {dst}: {exc}") from exc
    try:
        src_mode = os.stat(src).st_mode
    except OSError as exc:
        raise FileOperationError(f"failed to stat source directory {src}: {exc}") from exc
    try:
        os.mkdir(dst, stat.S_IMODE(src_mode))
    except OSError as exc:
        raise FileOperationError(f"failed to create destination directory {dst}: {exc}") from exc

    for name, is_dir in sorted(_entries(src).items()):
        src_path = os.path.join(src, name)
        dst_path = os.path.join(dst, name)
        try:
            if is_dir:
                copy_dir(src_path, dst_path)
            else:
                copy_file(src_path, dst_path)
        except FileOperationError as exc:
            raise FileOperationError(f"failed to copy {src_path} to {dst_path}: {exc}") from exc


def copy_file(src: str, dst: str) -> None:
    """Copy regular file ``src`` to a new path ``dst``, keeping its permissions."""
    try:
        src_mode = os.stat(src).st_mode
    except OSError as exc:
        raise FileOperationError(f"failed to stat source file {src}: {exc}") from exc
    if not stat.S_ISREG(src_mode):
        raise FileOperationError(
            f"source file {src} is not a regular file, had mode: {stat.filemode(src_mode)}"
        )
    try:
        _verify_dst_path_safe(dst)
    except FileOperationError as exc:
        raise FileOperationError(f"cannot copy to destination path {dst}: {exc}") from exc
    try:
        with open(src, "rb") as src_file, open(dst, "xb") as dst_file:
            shutil.copyfileobj(src_file, dst_file)
    except OSError as exc:
        raise FileOperationError(f"failed to copy {src} to {dst}: {exc}") from exc
    perms = src_mode & 0o777
    try:
        os.chmod(dst, perms)
    except OSError as exc:
        raise FileOperationError(f"failed to chmod {dst} to have permissions {perms:o}: {exc}") from exc


def _entries(directory: str) -> dict[str, bool]:
    try:
        with os.scandir(directory) as it:
            return {entry.name: entry.is_dir(follow_symlinks=False) for entry in it}
    except OSError as exc:
        raise FileOperationError(f"failed to read directory {directory}: {exc}") from exc


def _remove_all(path: str) -> None:
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.remove(path)
    except OSError as exc:
        raise FileOperationError(f"failed to remove {path}: {exc}") from exc


def sync_dir(src_dir: str, dst_dir: str, skip: Optional[Iterable[str]] = None) -> bool:
    """Make ``dst_dir`` match ``src_dir``, ignoring names in ``skip``.

    Returns whether anything in ``dst_dir`` was changed.
    """
    skip_set = set(skip or ())
    src_entries = _entries(src_dir)
    dst_entries = _entries(dst_dir)
    modified = False

    for name, dst_is_dir in dst_entries.items():
        if name in skip_set:
            continue
        src_path = os.path.join(src_dir, name)
        dst_path = os.path.join(dst_dir, name)
        src_is_dir = src_entries.get(name)

        if src_is_dir is None or src_is_dir != dst_is_dir:
            remove = True
        elif not dst_is_dir:
            remove = checksum(src_path) != checksum(dst_path)
        else:
            remove = False
            try:
                if sync_dir(src_path, dst_path, skip_set):
                    modified = True
            except FileOperationError as exc:
                raise FileOperationError(f"failed to sync {dst_path} with {src_path}: {exc}") from exc

        if remove:
            _remove_all(dst_path)
            modified = True

    for name, src_is_dir in src_entries.items():
        if name in skip_set:
            continue
        src_path = os.path.join(src_dir, name)
        dst_path = os.path.join(dst_dir, name)
        if os.path.lexists(dst_path):
            continue
        try:
            if src_is_dir:
                copy_dir(src_path, dst_path)
            else:
                copy_file(src_path, dst_path)
        except FileOperationError as exc:
            raise FileOperationError(f"failed to copy {src_path} to {dst_path}: {exc}") from exc
        modified = True

    return modified


def checksum(path: str) -> str:
    """Hex-encoded SHA-256 digest of the file at ``path``."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                digest.update(chunk)
    except OSError as exc:
        raise FileOperationError(f"failed to open {path}: {exc}") from exc
    return digest.hexdigest()


def sync_dir_additive(src: str, dst: str) -> None:
    """Copy everything in ``src`` that is missing from ``dst``, recursing into shared directories."""
    for name, src_is_dir in sorted(_entries(src).items()):
        src_path = os.path.join(src, name)
        dst_path = os.path.join(dst, name)
        if not os.path.exists(dst_path):
            try:
                if src_is_dir:
                    copy_dir(src_path, dst_path)
                else:
                    copy_file(src_path, dst_path)
            except FileOperationError as exc:
                raise FileOperationError(f"failed to copy {src_path} to {dst_path}: {exc}") from exc
        elif src_is_dir and os.path.isdir(dst_path):
            try:
                sync_dir_additive(src_path, dst_path)
            except FileOperationError as exc:
                raise FileOperationError(f"failed to sync {src_path} to {dst_path}: {exc}") from exc


def _verify_path(path: str, expected_name: str, is_dir: bool, optional: bool) -> None:
    if _base(path) != expected_name:
        raise FileOperationError(f"{path} is not a path to {expected_name}")
    try:
        mode = os.stat(path).st_mode
    except FileNotFoundError:
        if optional:
            return
        raise FileOperationError(f"{path} does not exist") from None
    except OSError as exc:
        raise FileOperationError(f"failed to stat {path}: {exc}") from exc
    actual = stat.S_ISDIR(mode)
    if actual != is_dir:
        raise FileOperationError(
            f"IsDir for {path} returned wrong value: expected {str(is_dir).lower()}, was {str(actual).lower()}"
        )


def verify_dir_exists(directory: str) -> None:
    """Raise FileOperationError unless ``directory`` is an existing directory."""
    _verify_path(directory, _base(directory), True, False)