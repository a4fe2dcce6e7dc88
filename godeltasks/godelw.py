"""Invocation of a project's gödel wrapper script."""

from __future__ import annotations

import os
import subprocess
from typing import Optional, Sequence, TextIO

from .version import GodelVersion, parse_version


class GodelwError(Exception):
    """Raised when the wrapper script fails or gives unexpected output."""


def _godelw(project_dir: str) -> str:
    return os.path.join(project_dir, "godelw")


def _write(stream: Optional[TextIO], data: bytes) -> None:
    if stream is not None and data:
        stream.write(data.decode("utf-8", errors="replace"))


def _run_upgrade_config(
    project_dir: str, args: Sequence[str], stdout: Optional[TextIO], stderr: Optional[TextIO]
) -> None:
    cmd = [_godelw(project_dir), "upgrade-config", *args]
    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=None if stdout is None else subprocess.PIPE,
            stderr=None if stderr is None else subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        raise GodelwError(f"failed to execute command {cmd}: {exc}") from exc
    _write(stdout, result.stdout)
    _write(stderr, result.stderr)
    if result.returncode != 0:
        raise GodelwError(f"{cmd} failed with exit status {result.returncode}")


def run_upgrade_config(
    project_dir: str, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None
) -> None:
    """Run ``<project_dir>/godelw upgrade-config``."""
    _run_upgrade_config(project_dir, (), stdout, stderr)


def run_upgrade_legacy_config(
    project_dir: str, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None
) -> None:
    """Run ``<project_dir>/godelw upgrade-config --legacy``."""
    _run_upgrade_config(project_dir, ("--legacy",), stdout, stderr)


def get_last_line(text: str) -> str:
    """The last line of ``text``, treating both CR and LF as line breaks."""
    return text.strip().replace("\r", "\n").split("\n")[-1]


def get_godel_version(project_dir: str) -> GodelVersion:
    """The version reported by ``<project_dir>/godelw version``."""
    cmd = [_godelw(project_dir), "version"]
    try:
        result = subprocess.run(
            cmd, stdin=subprocess.DEVNULL, capture_output=True, check=False
        )
    except OSError as exc:
        raise GodelwError(f"failed to execute command {cmd}: {exc}") from exc
    output = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        raise GodelwError(
            f"failed to execute command {cmd}: exit status {result.returncode}: {output}"
        )

    # Only the final line matters: running the wrapper may print download progress first.
    last_line = get_last_line(output)
    parts = last_line.split(" ")
    if len(parts) != 3:
        raise GodelwError(
            f'expected output {last_line!r} to have 3 parts when split by " ", but was {parts}'
        )
    try:
        return parse_version(parts[2])
    except ValueError as exc:
        raise GodelwError(f"failed to create version from output: {exc}") from exc