"""Publishing a documents directory to a GitHub wiki repository."""

from __future__ import annotations

import json
import os
import re
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional, TextIO, Union

from .fileops import FileOperationError, sync_dir, verify_dir_exists

DEFAULT_MESSAGE = 'Sync documentation using godel github-wiki task ({{ printf "%.7s" .CommitID}})'


class GitError(Exception):
    """Raised when a git command fails."""


@dataclass
class WikiParams:
    """What to publish, where, and with which commit identity and message."""

    docs_dir: str
    repo: str
    author_name: str = ""
    author_email: str = ""
    committer_name: str = ""
    committer_email: str = ""
    msg: str = DEFAULT_MESSAGE


@dataclass(frozen=True)
class GitTemplateParams:
    """Values available to the commit message template."""

    commit_id: str
    commit_time: datetime


# ---------------------------------------------------------------------------
# Commit message templates


class _TemplateParseError(ValueError):
    pass


class _TemplateExecError(ValueError):
    pass


_LEXEME_PATTERN = re.compile(
    r'"(?:[^"\\]|\\.)*"|`[^`]*`|\.(?:[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)?|[A-Za-z_]\w*|-?\d+|\S'
)
_FIELD = re.compile(r"\.(?:[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)?")

_Operand = tuple


def _parse_operand(lexeme: str) -> _Operand:
    if lexeme.startswith('"'):
        if len(lexeme) < 2 or not lexeme.endswith('"'):
            raise _TemplateParseError(f"unterminated quoted string {lexeme}")
        try:
            return ("lit", json.loads(lexeme))
        except ValueError as exc:
            raise _TemplateParseError(f"invalid quoted string {lexeme}: {exc}") from exc
    if lexeme.startswith("`"):
        return ("lit", lexeme[1:-1])
    if _FIELD.fullmatch(lexeme):
        return ("field", tuple(name for name in lexeme.split(".") if name))
    if re.fullmatch(r"-?\d+", lexeme):
        return ("lit", int(lexeme))
    raise _TemplateParseError(f"unexpected {lexeme!r} in command")


def _parse_action(text: str) -> _Operand:
    lexemes = _LEXEME_PATTERN.findall(text.strip())
    if not lexemes:
        raise _TemplateParseError("missing value for command")
    head = lexemes[0]
    if re.fullmatch(r"[A-Za-z_]\w*", head):
        if head != "printf":
            raise _TemplateParseError(f'function "{head}" not defined')
        return ("printf", tuple(_parse_operand(item) for item in lexemes[1:]))
    if len(lexemes) != 1:
        raise _TemplateParseError(f"unexpected {lexemes[1]!r} in operand")
    return _parse_operand(head)


def _parse(template: str) -> list[Union[str, _Operand]]:
    nodes: list[Union[str, _Operand]] = []
    pos = 0
    while True:
        start = template.find("{{", pos)
        if start < 0:
            if pos < len(template):
                nodes.append(template[pos:])
            return nodes
        if start > pos:
            nodes.append(template[pos:start])
        end = template.find("}}", start + 2)
        if end < 0:
            raise _TemplateParseError("unclosed action")
        nodes.append(_parse_action(template[start + 2:end]))
        pos = end + 2


def _fields(obj: Any) -> dict[str, Any]:
    if isinstance(obj, GitTemplateParams):
        return {"CommitID": obj.commit_id, "CommitTime": obj.commit_time}
    if isinstance(obj, datetime):
        return {
            "Unix": int(obj.timestamp()),
            "Year": obj.year,
            "Month": obj.month,
            "Day": obj.day,
            "Hour": obj.hour,
            "Minute": obj.minute,
            "Second": obj.second,
        }
    return {}


def _evaluate(operand: _Operand, params: GitTemplateParams) -> Any:
    kind = operand[0]
    if kind == "lit":
        return operand[1]
    if kind == "field":
        value: Any = params
        for name in operand[1]:
            available = _fields(value)
            if name not in available:
                raise _TemplateExecError(
                    f"can't evaluate field {name} in type {type(value).__name__}"
                )
            value = available[name]
        return value
    args = [_evaluate(arg, params) for arg in operand[1]]
    if not args or not isinstance(args[0], str):
        raise _TemplateExecError("printf requires a format string")
    return _sprintf(args[0], args[1:])


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        local = value if value.tzinfo else value.astimezone()
        return local.strftime("%Y-%m-%d %H:%M:%S %z %Z")
    return str(value)


_VERB = re.compile(r"%([-+# 0]*)(\d*)(?:\.(\d*))?([a-zA-Z%])")


def _sprintf(fmt: str, args: list[Any]) -> str:
    remaining: Iterator[Any] = iter(args)
    missing = object()

    def replace(match: re.Match) -> str:
        flags, width, precision, verb = match.groups()
        if verb == "%":
            return "%"
        arg = next(remaining, missing)
        if arg is missing:
            return f"%!{verb}(MISSING)"
        spec = "%" + flags + width
        if precision is not None:
            spec += "." + (precision or "0")
        if verb in ("s", "v"):
            return (spec + "s") % _to_text(arg)
        if verb == "d" and isinstance(arg, int) and not isinstance(arg, bool):
            return (spec + "d") % arg
        if verb == "q" and isinstance(arg, str):
            return json.dumps(arg)
        return f"%!{verb}({type(arg).__name__}={_to_text(arg)})"

    return _VERB.sub(replace, fmt)


_HTML_ESCAPES = {"&": "&amp;", "'": "&#39;", "<": "&lt;", ">": "&gt;", '"': "&#34;", "\0": "\ufffd"}


def _escape(text: str) -> str:
    return "".join(_HTML_ESCAPES.get(ch, ch) for ch in text)


def _execute(nodes: list[Union[str, _Operand]], params: GitTemplateParams) -> str:
    return "".join(
        node if isinstance(node, str) else _escape(_to_text(_evaluate(node, params)))
        for node in nodes
    )


def render_message(template: str, params: GitTemplateParams) -> str:
    """Apply ``params`` to the commit message ``template``.

    Actions may name fields (``{{.CommitID}}``, ``{{.CommitTime.Unix}}``) or call
    ``printf``. Output of actions is HTML-escaped. Raises ValueError if the
    template cannot be parsed or executed.
    """
    return _execute(_parse(template), params)


# ---------------------------------------------------------------------------
# Git operations


@dataclass(frozen=True)
class _CommitUser:
    author_name: str
    author_email: str
    committer_name: str
    committer_email: str


@dataclass(frozen=True)
class _Git:
    directory: str

    def run(self, *args: str, env: Optional[dict[str, str]] = None) -> str:
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.directory,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            raise GitError(f"{cmd} failed\nError: {exc}\nOutput: ") from exc
        output = result.stdout.decode("utf-8", errors="replace")
        if result.returncode != 0:
            raise GitError(
                f"{cmd} failed\nError: exit status {result.returncode}\nOutput: {output}"
            )
        return output.strip()

    def commit_all(self, msg: str, user: _CommitUser) -> None:
        self.run("add", ".")
        env = dict(os.environ)
        env.update(
            GIT_AUTHOR_NAME=user.author_name,
            GIT_AUTHOR_EMAIL=user.author_email,
            GIT_COMMITTER_NAME=user.committer_name,
            GIT_COMMITTER_EMAIL=user.committer_email,
        )
        self.run("commit", "-m", msg, env=env)

    def commit_time(self, ref: str) -> datetime:
        output = self.run("show", "-s", "--format=%ct", ref)
        try:
            stamp = int(output)
        except ValueError as exc:
            raise GitError(f"failed to parse {output} as an int64: {exc}") from exc
        return datetime.fromtimestamp(stamp).astimezone()

    def value_or(self, value: str, fmt: str) -> str:
        if value:
            return value
        return self.run("--no-pager", "show", "-s", f"--format=%{fmt}", "HEAD")


def _git_template_params(docs_dir: str) -> GitTemplateParams:
    g = _Git(docs_dir)
    return GitTemplateParams(commit_id=g.run("rev-parse", "HEAD"), commit_time=g.commit_time("HEAD"))


def _commit_message(params: WikiParams, out: TextIO) -> str:
    try:
        template_params = _git_template_params(params.docs_dir)
    except GitError as exc:
        out.write(
            f"Failed to determine Git properties of documents directory {params.docs_dir}: {exc}.\n"
        )
        out.write(
            "Continuing with templating disabled. To fix this issue, ensure that the "
            "directory is in a Git repository.\n"
        )
        return params.msg
    try:
        nodes = _parse(params.msg)
    except _TemplateParseError as exc:
        out.write(
            f"Failed to parse message {params.msg} as a template: {exc}. "
            "Using message as a string literal instead.\n"
        )
        return params.msg
    try:
        return _execute(nodes, template_params)
    except _TemplateExecError as exc:
        out.write(
            f"Failed to execute template {params.msg}: {exc}. "
            "Using message as a string literal instead.\n"
        )
        return params.msg


def sync_github_wiki(params: WikiParams, stdout: Optional[TextIO] = None) -> None:
    """Make the wiki repository match the documents directory and push the change."""
    out = stdout if stdout is not None else sys.stdout
    try:
        verify_dir_exists(params.docs_dir)
    except FileOperationError as exc:
        raise FileOperationError(
            f"Docs directory {params.docs_dir} does not exist: {exc}"
        ) from exc

    msg = _commit_message(params, out)

    with tempfile.TemporaryDirectory() as clone_dir:
        g = _Git(clone_dir)
        g.run("clone", params.repo, clone_dir)

        try:
            modified = sync_dir(params.docs_dir, clone_dir, [".git"])
        except FileOperationError as exc:
            raise FileOperationError(
                f"failed to sync contents of repo {clone_dir} to docs directory "
                f"{params.docs_dir}: {exc}"
            ) from exc
        if not modified:
            return

        values = {}
        for label, value, fmt in (
            ("authorName", params.author_name, "an"),
            ("authorEmail", params.author_email, "ae"),
            ("committerName", params.committer_name, "cn"),
            ("committerEmail", params.committer_email, "ce"),
        ):
            try:
                values[label] = g.value_or(value, fmt)
            except GitError as exc:
                raise GitError(f"failed to get {label}: {exc}") from exc

        g.commit_all(
            msg,
            _CommitUser(
                author_name=values["authorName"],
                author_email=values["authorEmail"],
                committer_name=values["committerName"],
                committer_email=values["committerEmail"],
            ),
        )
        out.write(f"Pushing content of {params.docs_dir} to {params.repo}...\n")
        g.run("push", "origin", "HEAD")