"""Directory layouts for the gödel home, distribution and wrapper directories."""

from __future__ import annotations

import enum
import os
import platform
import sys
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Sequence, Union

GODEL_HOME_TEMPLATE = "godel-home"
GODEL_HOME_ENV_VAR = "GODEL_HOME"
DEFAULT_GODEL_HOME = ".godel"

ASSETS_DIR = "assets"
CACHE_DIR = "cache"
DISTS_DIR = "dists"
CONFIGS_DIR = "configs"
DOWNLOADS_DIR = "downloads"
PLUGINS_DIR = "plugins"

APP_NAME = "godel"
APP_DIR = "gödel-app"
APP_EXECUTABLE = "app-executable"
OS_TEMPLATE = "os"
ARCH_TEMPLATE = "arch"
VERSION_TEMPLATE = "version"

WRAPPER_DIR = "wrapper-dir"
WRAPPER_SCRIPT_FILE = "wrapper-script"
WRAPPER_APP_DIR = "wrapper-app"
WRAPPER_CONFIG_DIR = "config"
WRAPPER_NAME = "godelw"


class LayoutError(Exception):
    """Raised when a directory does not match its layout specification."""


class Mode(enum.Enum):
    """How a specification directory is checked when it is created."""

    VALIDATE = "validate"
    CREATE = "create"
    SPEC_ONLY = "spec-only"


@dataclass(frozen=True)
class _Part:
    text: str
    template: bool = False

    def render(self, values: Mapping[str, str]) -> str:
        if not self.template:
            return self.text
        try:
            return values[self.text]
        except KeyError:
            raise LayoutError(f"no value provided for template {self.text!r}") from None


def _lit(text: str) -> tuple[_Part, ...]:
    return (_Part(text),)


def _tmpl(key: str) -> tuple[_Part, ...]:
    return (_Part(key, template=True),)


@dataclass(frozen=True)
class _Node:
    name: tuple[_Part, ...]
    alias: str
    is_dir: bool
    children: tuple["_Node", ...] = ()
    optional: bool = False

    def render_name(self, values: Mapping[str, str]) -> str:
        return "".join(part.render(values) for part in self.name)


_Child = Union[_Node, "LayoutSpec"]


def _dir(name: tuple[_Part, ...], alias: str, *children: _Child) -> _Node:
    nodes = tuple(c.root if isinstance(c, LayoutSpec) else c for c in children)
    return _Node(name, alias, True, nodes)


def _file(name: tuple[_Part, ...], alias: str) -> _Node:
    return _Node(name, alias, False)


def _clean(root_dir: str) -> str:
    stripped = str(root_dir).rstrip(os.sep)
    return stripped or str(root_dir)


@dataclass(frozen=True)
class LayoutSpec:
    """A tree of named directories and files, some of them reachable by alias.

    When ``root_dir_is_spec`` is true the root directory itself is the root node
    of the tree and its name must match; otherwise the root node stands for
    whatever directory the spec is applied to.
    """

    root: _Node
    root_dir_is_spec: bool

    def _entries(self, values: Mapping[str, str]) -> Iterator[tuple[tuple[str, ...], _Node]]:
        def walk(node: _Node, prefix: tuple[str, ...]):
            parts = prefix + (node.render_name(values),)
            yield parts, node
            for child in node.children:
                yield from walk(child, parts)

        yield from walk(self.root, ())

    def paths(self, values: Optional[Mapping[str, str]], include_root: bool) -> list[str]:
        """Relative paths of every node, starting with the root node's name."""
        return [
            os.path.join(*parts)
            for parts, _ in self._entries(values or {})
            if include_root or len(parts) > 1
        ]

    def _aliases(self, values: Mapping[str, str]) -> dict[str, tuple[str, ...]]:
        return {node.alias: parts for parts, node in self._entries(values) if node.alias}

    def _resolve(self, root_dir: str, parts: tuple[str, ...]) -> str:
        root_dir = _clean(root_dir)
        if self.root_dir_is_spec:
            return os.path.join(os.path.dirname(root_dir), *parts)
        return os.path.join(root_dir, *parts[1:])

    @staticmethod
    def _display(root_dir: str, parts: tuple[str, ...]) -> str:
        return os.path.join(os.path.basename(_clean(root_dir)), *parts[1:])

    def _check(self, root_dir: str, parts: tuple[str, ...], node: _Node, values: Mapping[str, str]) -> None:
        path = self._resolve(root_dir, parts)
        display = self._display(root_dir, parts)
        if not os.path.exists(path):
            if node.optional:
                return
            raise LayoutError(f"{display} does not exist")
        actual = os.path.isdir(path)
        if actual != node.is_dir:
            raise LayoutError(
                f"IsDir for {display} returned wrong value: "
                f"expected {str(node.is_dir).lower()}, was {str(actual).lower()}"
            )
        for child in node.children:
            self._check(root_dir, parts + (child.render_name(values),), child, values)

    def validate(self, root_dir: str, values: Optional[Mapping[str, str]]) -> None:
        """Raise LayoutError if ``root_dir`` does not match this specification."""
        values = values or {}
        list(self._entries(values))
        root_name = self.root.render_name(values)
        if self.root_dir_is_spec:
            if os.path.basename(_clean(root_dir)) != root_name:
                raise LayoutError(f"{root_dir} is not a path to {root_name}")
            self._check(root_dir, (root_name,), self.root, values)
            return
        for child in self.root.children:
            self._check(root_dir, (root_name, child.render_name(values)), child, values)

    def create_directory_structure(
        self, root_dir: str, values: Optional[Mapping[str, str]], include_optional: bool
    ) -> None:
        """Create every directory of the specification below ``root_dir``."""
        values = values or {}
        for parts, node in self._entries(values):
            if not node.is_dir or (node.optional and not include_optional):
                continue
            path = self._resolve(root_dir, parts)
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise LayoutError(f"failed to create directory {path}: {exc}") from exc


@dataclass(frozen=True)
class SpecDir:
    """A layout specification bound to a concrete root directory."""

    root: str
    spec: LayoutSpec
    values: Mapping[str, str] = field(default_factory=dict)

    def path(self, alias: str) -> str:
        parts = self.spec._aliases(self.values).get(alias)
        if parts is None:
            raise LayoutError(f"alias {alias!r} is not defined by the layout")
        return self.spec._resolve(self.root, parts)


def new_spec_dir(
    root_dir: str, spec: LayoutSpec, values: Optional[Mapping[str, str]], mode: Mode
) -> SpecDir:
    """Bind ``spec`` to ``root_dir``, validating or creating it as ``mode`` asks."""
    values = dict(values or {})
    list(spec._entries(values))
    if mode is Mode.VALIDATE:
        spec.validate(root_dir, values)
    elif mode is Mode.CREATE:
        spec.create_directory_structure(root_dir, values, False)
    return SpecDir(str(root_dir), spec, values)


def all_paths(directory: str) -> dict[str, bool]:
    """Map every path below ``directory`` (relative to it) to whether it is a directory."""
    result: dict[str, bool] = {}

    def walk(current: str, prefix: str) -> None:
        with os.scandir(current) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                key = os.path.join(prefix, entry.name) if prefix else entry.name
                is_dir = entry.is_dir(follow_symlinks=False)
                result[key] = is_dir
                if is_dir:
                    walk(entry.path, key)

    walk(directory, "")
    return result


def godel_home_path() -> str:
    """The gödel home directory: $GODEL_HOME, or $HOME/.godel."""
    home = os.environ.get(GODEL_HOME_ENV_VAR, "")
    if home:
        return home
    user_home = os.environ.get("HOME", "")
    if user_home:
        return os.path.join(user_home, DEFAULT_GODEL_HOME)
    raise LayoutError(f"failed to get {APP_NAME} home directory")


def _godel_home_spec(providers: Sequence[_Child] = ()) -> LayoutSpec:
    return LayoutSpec(
        _dir(
            _tmpl(GODEL_HOME_TEMPLATE),
            "",
            _dir(_lit("assets"), ASSETS_DIR),
            _dir(_lit("cache"), CACHE_DIR),
            _dir(_lit("configs"), CONFIGS_DIR),
            _dir(_lit("dists"), DISTS_DIR, *providers),
            _dir(_lit("downloads"), DOWNLOADS_DIR),
            _dir(_lit("plugins"), PLUGINS_DIR),
        ),
        True,
    )


def godel_home_spec() -> LayoutSpec:
    """Layout of the gödel home directory."""
    return _godel_home_spec()


def godel_home_spec_dir(mode: Mode) -> SpecDir:
    root_dir = godel_home_path()
    values = {GODEL_HOME_TEMPLATE: os.path.basename(_clean(root_dir))}
    return new_spec_dir(root_dir, godel_home_spec(), values, mode)


def godel_dist_layout(version: str, mode: Mode) -> SpecDir:
    """Layout of the gödel home with the distribution of ``version`` under "dists"."""
    root_dir = godel_home_path()
    values = {
        GODEL_HOME_TEMPLATE: os.path.basename(_clean(root_dir)),
        VERSION_TEMPLATE: version,
        **app_spec_template(version),
    }
    return new_spec_dir(root_dir, _godel_home_spec((app_spec(),)), values, mode)


def app_spec() -> LayoutSpec:
    """Layout of an expanded gödel distribution."""
    return LayoutSpec(
        _dir(
            _lit(APP_NAME + "-") + _tmpl(VERSION_TEMPLATE),
            APP_DIR,
            _dir(
                _lit("bin"),
                "",
                _dir(
                    _tmpl(OS_TEMPLATE) + _lit("-") + _tmpl(ARCH_TEMPLATE),
                    "",
                    _file(_lit(APP_NAME), APP_EXECUTABLE),
                ),
            ),
            wrapper_spec(),
        ),
        True,
    )


_GOOS = {"linux": "linux", "darwin": "darwin", "win32": "windows", "cygwin": "windows"}
_GOARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


def _goos() -> str:
    for prefix in ("freebsd", "openbsd", "netbsd"):
        if sys.platform.startswith(prefix):
            return prefix
    return _GOOS.get(sys.platform, sys.platform)


def _goarch() -> str:
    machine = platform.machine().lower()
    return _GOARCH.get(machine, machine)


def app_spec_template(version: str) -> dict[str, str]:
    """Template values for the distribution of ``version`` on this platform."""
    return {VERSION_TEMPLATE: version, OS_TEMPLATE: _goos(), ARCH_TEMPLATE: _goarch()}


def app_spec_dir(root_dir: str, version: str) -> SpecDir:
    return new_spec_dir(root_dir, app_spec(), app_spec_template(version), Mode.VALIDATE)


def wrapper_spec() -> LayoutSpec:
    """Layout of a project directory that holds the gödel wrapper."""
    return LayoutSpec(
        _dir(
            _lit("wrapper"),
            WRAPPER_DIR,
            _file(_lit(WRAPPER_NAME), WRAPPER_SCRIPT_FILE),
            _dir(
                _lit(APP_NAME),
                WRAPPER_APP_DIR,
                _dir(_lit(WRAPPER_CONFIG_DIR), WRAPPER_CONFIG_DIR),
            ),
        ),
        False,
    )