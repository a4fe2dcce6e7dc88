"""Command-line entry point for the built-in project tasks."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from typing import Optional, Sequence

from .fileops import FileOperationError
from .githooks import GitHooksError, install_git_hooks
from .githubwiki import DEFAULT_MESSAGE, GitError, WikiParams, sync_github_wiki
from .idea import IdeaError, clean_idea_files, create_gogland_files, create_intellij_files

PROG = "godel"
INTELLIJ_USAGE = "Create IntelliJ project files for this project"


class CommandError(Exception):
    """Raised when a command is invoked incorrectly."""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG)
    parser.add_argument(
        "--project-dir",
        default=None,
        help="project directory (defaults to the current directory)",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    exec_cmd = commands.add_parser("exec", help="Executes given shell command using godel")
    exec_cmd.add_argument("args", nargs=argparse.REMAINDER)

    commands.add_parser(
        "git-hooks",
        help="Install git commit hooks that verify that Go files are properly formatted before commit",
    )

    wiki = commands.add_parser(
        "github-wiki", help="Push contents of a documents directory to a GitHub Wiki repository"
    )
    wiki.add_argument(
        "--docs-dir",
        required=True,
        help="Directory whose contents should be pushed to the GitHub Wiki repository",
    )
    wiki.add_argument("--repository", required=True, help="GitHub wiki repository address")
    for flag, who in (
        ("--author-name", "Author name"),
        ("--author-email", "Author email"),
        ("--committer-name", "Committer name"),
        ("--committer-email", "Committer email"),
    ):
        wiki.add_argument(
            flag,
            default="",
            help=f"{who} to use for commit (if blank, uses value of last commit in current project)",
        )
    wiki.add_argument(
        "--message",
        default=DEFAULT_MESSAGE,
        help="Commit message to use for commit in GitHub Wiki repository",
    )

    idea = commands.add_parser(
        "idea",
        help=INTELLIJ_USAGE,
        description="Subcommands: gogland, intellij, clean",
    )
    idea.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def _run_exec(args: Sequence[str]) -> int:
    if not args:
        raise CommandError("no command specified")
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        result = subprocess.run(list(args), check=False)
    except OSError as exc:
        raise CommandError(f"failed to execute {args[0]}: {exc}") from exc
    return result.returncode


_IDEA_SUBCOMMANDS = {
    "gogland": create_gogland_files,
    # The "intellij" subcommand writes the same files as "gogland".
    "intellij": create_gogland_files,
    "clean": clean_idea_files,
}


def _run_idea(project_dir: str, args: Sequence[str]) -> None:
    if not args:
        create_intellij_files(project_dir)
        return
    action = _IDEA_SUBCOMMANDS.get(args[0])
    if action is None:
        # Refuse rather than ignore extra arguments, so a typo never runs the wrong command.
        raise CommandError(f'unknown command "{args[0]}" for "{PROG} idea"')
    if len(args) > 1:
        raise CommandError(f'unknown command "{args[1]}" for "{PROG} idea {args[0]}"')
    action(project_dir)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a task and return the process exit status."""
    parser = _build_parser()
    try:
        ns = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 2

    project_dir = ns.project_dir or os.getcwd()
    try:
        if ns.command == "exec":
            return _run_exec(ns.args)
        if ns.command == "git-hooks":
            install_git_hooks(project_dir)
        elif ns.command == "github-wiki":
            sync_github_wiki(
                WikiParams(
                    docs_dir=ns.docs_dir,
                    repo=ns.repository,
                    author_name=ns.author_name,
                    author_email=ns.author_email,
                    committer_name=ns.committer_name,
                    committer_email=ns.committer_email,
                    msg=ns.message,
                ),
                sys.stdout,
            )
        elif ns.command == "idea":
            _run_idea(project_dir, ns.args)
    except (CommandError, GitHooksError, GitError, IdeaError, FileOperationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())