"""Parsing and ordering of gödel version strings."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional


class VersionType(enum.IntEnum):
    """The kind of a version string. The first four kinds can be ordered."""

    RELEASE_CANDIDATE = 0
    RELEASE_CANDIDATE_SNAPSHOT = 1
    RELEASE = 2
    RELEASE_SNAPSHOT = 3
    NON_ORDERABLE = 4

    def __str__(self) -> str:
        return _LABELS[self]


_LABELS = {
    VersionType.RELEASE_CANDIDATE: "ReleaseCandidate",
    VersionType.RELEASE_CANDIDATE_SNAPSHOT: "ReleaseCandidateSnapshot",
    VersionType.RELEASE: "Release",
    VersionType.RELEASE_SNAPSHOT: "ReleaseSnapshot",
    VersionType.NON_ORDERABLE: "NonOrderable",
}

# Checked in order: the first pattern that matches determines the type.
_PATTERNS = {
    VersionType.RELEASE_CANDIDATE: re.compile(r"([0-9]+)\.([0-9]+)\.([0-9])+-rc([0-9]+)"),
    VersionType.RELEASE_CANDIDATE_SNAPSHOT: re.compile(
        r"([0-9]+)\.([0-9]+)\.([0-9])+-rc([0-9]+)-([0-9]+)-g[a-f0-9]+"
    ),
    VersionType.RELEASE: re.compile(r"([0-9]+)\.([0-9]+)\.([0-9])+"),
    VersionType.RELEASE_SNAPSHOT: re.compile(r"([0-9]+)\.([0-9]+)\.([0-9])+-([0-9]+)-g[a-f0-9]+"),
    VersionType.NON_ORDERABLE: re.compile(r"([0-9]+)\.([0-9]+)\.([0-9])+(-[a-z0-9-]+)?(\.dirty)?"),
}


def get_type(value: str) -> Optional[VersionType]:
    """The type of ``value``, or None if it is not a valid version."""
    for version_type, pattern in _PATTERNS.items():
        if pattern.fullmatch(value):
            return version_type
    return None


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


@dataclass(frozen=True)
class GodelVersion:
    """A parsed version string."""

    value: str
    type: VersionType
    major: int
    minor: int
    patch: int
    first_sequence: Optional[int] = None
    second_sequence: Optional[int] = None

    def __str__(self) -> str:
        return self.value

    @property
    def orderable(self) -> bool:
        return self.type is not VersionType.NON_ORDERABLE

    def compare_to(self, other: "GodelVersion") -> Optional[int]:
        """Return -1, 0 or 1 comparing this version to ``other``.

        Returns None if either version cannot be ordered.
        """
        if not (self.orderable and other.orderable):
            return None

        for mine, theirs in (
            (self.major, other.major),
            (self.minor, other.minor),
            (self.patch, other.patch),
        ):
            if mine != theirs:
                return _cmp(mine, theirs)

        types = {self.type, other.type}
        if types == {VersionType.RELEASE_SNAPSHOT, VersionType.RELEASE}:
            return 1 if self.type is VersionType.RELEASE_SNAPSHOT else -1
        if types == {VersionType.RELEASE, VersionType.RELEASE_CANDIDATE}:
            return 1 if self.type is VersionType.RELEASE else -1
        if self.type is VersionType.RELEASE_SNAPSHOT and other.type is VersionType.RELEASE_SNAPSHOT:
            return _cmp(self.first_sequence, other.first_sequence)

        candidates = {VersionType.RELEASE_CANDIDATE, VersionType.RELEASE_CANDIDATE_SNAPSHOT}
        if self.type in candidates and other.type in candidates:
            result = _cmp(self.first_sequence, other.first_sequence)
            if result:
                return result
            if self.type is not other.type:
                return 1 if self.type is VersionType.RELEASE_CANDIDATE_SNAPSHOT else -1
            if self.type is VersionType.RELEASE_CANDIDATE_SNAPSHOT:
                return _cmp(self.second_sequence, other.second_sequence)
        return 0


def parse_version(value: str) -> GodelVersion:
    """Parse ``value``; raise ValueError if it is not a valid version."""
    version_type = get_type(value)
    if version_type is None:
        raise ValueError(f"{value} is not a valid SLS version")

    groups = _PATTERNS[version_type].fullmatch(value).groups()
    first: Optional[int] = None
    second: Optional[int] = None
    if version_type is not VersionType.NON_ORDERABLE:
        if len(groups) > 3:
            first = int(groups[3])
        if len(groups) > 4:
            second = int(groups[4])

    return GodelVersion(
        value=value,
        type=version_type,
        major=int(groups[0]),
        minor=int(groups[1]),
        patch=int(groups[2]),
        first_sequence=first,
        second_sequence=second,
    )