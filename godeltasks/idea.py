"""Creation and removal of IntelliJ and Gogland project files."""

from __future__ import annotations

import os
import subprocess
from typing import Callable

DEFAULT_GO_SDK = "Go"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_TASK_SETTINGS = (
    ("arguments", "format runAll $FilePathRelativeToProjectRoot$"),
    ("checkSyntaxErrors", "true"),
    ("description", ""),
    ("exitCodeBehavior", "ERROR"),
    ("fileExtension", "go"),
    ("immediateSync", "false"),
    ("name", "godel"),
    ("output", ""),
    ("outputFilters", None),
    ("outputFromStdout", "false"),
    ("program", "$PROJECT_DIR$/godelw"),
    ("scopeName", "Changed Files"),
    ("trackOnlyRoot", "false"),
    ("workingDir", "$ProjectFileDir$"),
)


class IdeaError(Exception):
    """Raised when project files cannot be created or removed."""


def _attrs(pairs: tuple[tuple[str, str], ...]) -> str:
    return "".join(f' {key}="{value}"' for key, value in pairs)


def _empty(depth: int, tag: str, *pairs: tuple[str, str]) -> str:
    return f"{'  ' * depth}<{tag}{_attrs(pairs)} />"


def _open(depth: int, tag: str, *pairs: tuple[str, str]) -> str:
    return f"{'  ' * depth}<{tag}{_attrs(pairs)}>"


def _close(depth: int, tag: str) -> str:
    return f"{'  ' * depth}</{tag}>"


def _document(lines: list[str]) -> str:
    return "\n".join([_XML_DECLARATION, *lines]) + "\n"


def _module(module_type: str, entries: list[str]) -> str:
    return _document(
        [
            _open(0, "module", ("type", module_type), ("version", "4")),
            _open(1, "component", ("name", "NewModuleRootManager"), ("inherit-compiler-output", "true")),
            _empty(2, "exclude-output"),
            _empty(2, "content", ("url", "file://$MODULE_DIR$")),
            *entries,
            _close(1, "component"),
            _close(0, "module"),
        ]
    )


def _intellij_iml(values: dict[str, str]) -> str:
    return _module(
        "GO_MODULE",
        [
            _empty(2, "orderEntry", ("type", "jdk"), ("jdkName", values["GoSDK"]), ("jdkType", "Go SDK")),
            _empty(2, "orderEntry", ("type", "sourceFolder"), ("forTests", "false")),
        ],
    )


def _gogland_iml(values: dict[str, str]) -> str:
    library = f"GOPATH &lt;{values['ProjectName']}&gt;"
    return _module(
        "WEB_MODULE",
        [
            _empty(2, "orderEntry", ("type", "sourceFolder"), ("forTests", "false")),
            _empty(2, "orderEntry", ("type", "library"), ("name", library), ("level", "project")),
        ],
    )


def _module_manager(values: dict[str, str]) -> list[str]:
    module_path = f"$PROJECT_DIR$/{values['ProjectName']}.iml"
    return [
        _open(1, "component", ("name", "ProjectModuleManager")),
        _open(2, "modules"),
        _empty(3, "module", ("fileurl", "file://" + module_path), ("filepath", module_path)),
        _close(2, "modules"),
        _close(1, "component"),
    ]


def _task_options() -> list[str]:
    lines = [
        _open(1, "component", ("name", "ProjectTasksOptions")),
        _open(2, "TaskOptions", ("isEnabled", "true")),
    ]
    for name, value in _TASK_SETTINGS:
        if value is None:
            lines += [_open(3, "option", ("name", name)), _empty(4, "array"), _close(3, "option")]
        else:
            lines.append(_empty(3, "option", ("name", name), ("value", value)))
    lines += [_empty(3, "envs"), _close(2, "TaskOptions"), _close(1, "component")]
    return lines


def _intellij_ipr(values: dict[str, str]) -> str:
    root_manager = _empty(
        1,
        "component",
        ("name", "ProjectRootManager"),
        ("version", "2"),
        ("default", "false"),
        ("assert-keyword", "false"),
        ("jdk-15", "false"),
        ("project-jdk-name", values["GoSDK"]),
        ("project-jdk-type", "Go SDK"),
    )
    return _document(
        [
            _open(0, "project", ("version", "4")),
            *_module_manager(values),
            root_manager,
            *_task_options(),
            _close(0, "project"),
        ]
    )


def _gogland_ipr(values: dict[str, str]) -> str:
    return _document(
        [
            _open(0, "project", ("version", "4")),
            _empty(1, "component", ("name", "GOROOT"), ("path", values["GoRoot"])),
            *_module_manager(values),
            *_task_options(),
            _close(0, "project"),
        ]
    )


def _go_root() -> str:
    root = os.environ.get("GOROOT", "")
    if root:
        return root
    try:
        result = subprocess.run(
            ["go", "env", "GOROOT"], capture_output=True, stdin=subprocess.DEVNULL, check=False
        )
    except OSError as exc:
        raise IdeaError(f"failed to determine GOROOT: {exc}") from exc
    output = result.stdout.decode("utf-8", errors="replace").strip()
    if result.returncode != 0 or not output:
        raise IdeaError(
            f"failed to determine GOROOT: go env GOROOT exited with status {result.returncode}"
        )
    return output


def _project_name(root_dir: str) -> str:
    return os.path.basename(os.path.normpath(root_dir))


def _write(path: str, content: str, kind: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as exc:
        raise IdeaError(f"failed to write {kind} file to {path}: {exc}") from exc


_Renderer = Callable[[dict[str, str]], str]


def _create_idea_files(root_dir: str, iml: _Renderer, ipr: _Renderer) -> None:
    project_name = _project_name(root_dir)
    values = {
        "GoSDK": DEFAULT_GO_SDK,
        "GoRoot": _go_root(),
        "ProjectName": project_name,
    }
    _write(os.path.join(root_dir, project_name + ".iml"), iml(values), ".iml")
    _write(os.path.join(root_dir, project_name + ".ipr"), ipr(values), ".ipr")


def create_intellij_files(root_dir: str) -> None:
    """Write IntelliJ .iml and .ipr files for the project in ``root_dir``."""
    _create_idea_files(root_dir, _intellij_iml, _intellij_ipr)


def create_gogland_files(root_dir: str) -> None:
    """Write Gogland .iml and .ipr files for the project in ``root_dir``."""
    _create_idea_files(root_dir, _gogland_iml, _gogland_ipr)


def clean_idea_files(root_dir: str) -> None:
    """Remove the .iml, .ipr and .iws files of the project, where present."""
    project_name = _project_name(root_dir)
    for ext in ("iml", "ipr", "iws"):
        path = os.path.join(root_dir, f"{project_name}.{ext}")
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise IdeaError(f"failed to remove file {path}: {exc}") from exc