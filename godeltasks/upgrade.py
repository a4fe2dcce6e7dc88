"""Running configuration upgrades around an install or update action."""

from __future__ import annotations

from typing import Callable, Optional, TextIO

from .godelw import GodelwError, get_godel_version, run_upgrade_config, run_upgrade_legacy_config


def run_action_and_upgrade_config(
    project_dir: str,
    skip_upgrade_config: bool,
    action: Callable[[], object],
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """Run ``action`` and then the "upgrade-config" task as the version change requires.

    Nothing is upgraded if the version after the action is below 2. If the version
    before was below 2, the legacy upgrade runs. Otherwise the upgrade runs unless
    both versions are orderable and the new one is older than the old one.
    """
    if skip_upgrade_config:
        action()
        return

    try:
        before = get_godel_version(project_dir)
    except GodelwError as exc:
        raise GodelwError(f"failed to determine version before update: {exc}") from exc

    action()

    try:
        after = get_godel_version(project_dir)
    except GodelwError as exc:
        raise GodelwError(f"failed to determine version after update: {exc}") from exc

    if after.major < 2:
        return
    if before.major < 2:
        run_upgrade_legacy_config(project_dir, stdout, stderr)
        return

    result = after.compare_to(before)
    if result is None or result >= 0:
        run_upgrade_config(project_dir, stdout, stderr)