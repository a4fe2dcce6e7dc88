"""Installation of git hooks that check formatting before a commit."""

from __future__ import annotations

import os

from .fileops import FileOperationError, verify_dir_exists

_PRE_COMMIT = "\n".join(
    [
        "#!/bin/bash",
        "gofiles=$(git diff --cached --name-only --diff-filter=ACM | grep -E '\\.go$')",
        'if [ -z "$gofiles" ]; then',
        "  exit 0",
        "fi",
        "",
        "unformatted=$(./godelw format --verify $gofiles)",
        "status=$?",
        'if [ "$status" -eq 0 ]; then',
        "  exit 0",
        "fi",
        "",
        'if [ -n "$unformatted" ]; then',
        '  echo "Unformatted files exist -- run ./godelw format to format these files:"',
        "  printf '  %s\\n' $unformatted",
        "fi",
        "exit $status",
        "",
    ]
)

HOOKS = {"pre-commit": _PRE_COMMIT}


class GitHooksError(Exception):
    """Raised when git hooks cannot be installed."""


def install_git_hooks(root_dir: str) -> None:
    """Write the hooks into ``<root_dir>/.git/hooks``."""
    git_dir = os.path.join(root_dir, ".git")
    try:
        verify_dir_exists(git_dir)
    except FileOperationError:
        raise GitHooksError(f".git directory does not exist at {git_dir}") from None

    hooks_dir = os.path.join(git_dir, "hooks")
    for name, script in HOOKS.items():
        target = os.path.join(hooks_dir, name)
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o755)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(script)
        except OSError as exc:
            raise GitHooksError(f"failed to write {name} hook to {target}: {exc}") from exc