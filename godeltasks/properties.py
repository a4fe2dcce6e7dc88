"""Reading of simple key=value properties files."""

from __future__ import annotations

URL_KEY = "distributionURL"
CHECKSUM_KEY = "distributionSHA256"


class PropertiesError(Exception):
    """Raised when a properties file cannot be read or parsed."""


def read_properties_file(path: str) -> dict[str, str]:
    """Read ``key=value`` lines from ``path``, skipping blank lines and '#' comments."""
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        raise PropertiesError(f"failed to read file {path}: {exc}") from exc

    lines = content.split("\n")
    properties: dict[str, str] = {}
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise PropertiesError(
                f'failed to find character "=" in line "{line}" in file with lines "{lines}"'
            )
        properties[key] = value
    return properties