import json
import os
import time
from datetime import timedelta
from unittest import mock

import pytest

from godeltasks.fileops import checksum
from godeltasks.update import (
    PackageSource,
    UpdateError,
    VersionCache,
    downloaded_tgz_for_version,
    godel_props_dist_pkg_info,
    latest_godel_version,
    read_latest_cached_version,
    set_godel_property_key,
    stored_latest_version_valid,
    write_latest_cached_version,
)

URL_VALUE = "https://github.com/palantir/godel/godel-0.0.1.tgz"
CHECKSUM_VALUE = "871ee79691aee47301214ab0ae10bd851e5bc0d48042ba8d33ac85cfcc7eb6cc"


def _project(tmp_path, content):
    project = tmp_path / "project"
    config = project / "godel" / "config"
    config.mkdir(parents=True)
    (project / "godelw").write_text("wrapper")
    (config / "godel.properties").write_text(content)
    return project


@pytest.fixture
def godel_home(tmp_path, monkeypatch):
    home = tmp_path / "home" / ".godel"
    monkeypatch.setenv("GODEL_HOME", str(home))
    return home


class _FakeResponse:
    def __init__(self, url, status=200):
        self.status = status
        self._url = url

    def geturl(self):
        return self._url

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_props_dist_pkg_info_reads_url_and_checksum(tmp_path):
    project = _project(
        tmp_path,
        f"# comment\ndistributionURL={URL_VALUE}\ndistributionSHA256={CHECKSUM_VALUE}\n",
    )
    assert godel_props_dist_pkg_info(str(project)) == PackageSource(URL_VALUE, CHECKSUM_VALUE)


def test_props_dist_pkg_info_without_checksum(tmp_path):
    project = _project(tmp_path, f"distributionURL={URL_VALUE}\n")
    src = godel_props_dist_pkg_info(str(project))
    assert src.path == URL_VALUE
    assert src.checksum == ""


def test_props_dist_pkg_info_missing_url(tmp_path):
    project = _project(tmp_path, f"distributionSHA256={CHECKSUM_VALUE}\n")
    with pytest.raises(UpdateError, match="does not contain key distributionURL"):
        godel_props_dist_pkg_info(str(project))


def test_invalid_wrapper_dir_raises(tmp_path):
    with pytest.raises(UpdateError, match="godelw does not exist"):
        godel_props_dist_pkg_info(str(tmp_path / "invalid-path"))


def test_set_property_key_replaces_only_matching_line(tmp_path):
    content = f"# comment\ndistributionURL={URL_VALUE}\ndistributionSHA256={CHECKSUM_VALUE}\n"
    project = _project(tmp_path, content)
    set_godel_property_key(str(project), "distributionSHA256", "")
    written = (project / "godel" / "config" / "godel.properties").read_text()
    assert written == f"# comment\ndistributionURL={URL_VALUE}\ndistributionSHA256=\n"
    assert godel_props_dist_pkg_info(str(project)) == PackageSource(URL_VALUE, "")


def test_set_property_key_invalid_dir(tmp_path):
    with pytest.raises(UpdateError, match="unable to create wrapper spec"):
        set_godel_property_key(str(tmp_path / "missing"), "distributionURL", URL_VALUE)


def test_cache_round_trip(godel_home):
    write_latest_cached_version("2.10.0")
    cached = read_latest_cached_version()
    assert cached.latest_version == "2.10.0"
    assert abs(cached.timestamp - time.time()) < 60
    data = json.loads((godel_home / "cache" / "latest-version.json").read_text())
    assert data["latestVersion"] == "2.10.0"


def test_read_cache_missing_raises(godel_home):
    with pytest.raises(UpdateError, match="failed to read version file"):
        read_latest_cached_version()


def test_version_cache_json_round_trip():
    record = VersionCache("1.2.3", 42)
    assert VersionCache.from_json(record.to_json()) == record


def test_stored_latest_version_valid():
    now = int(time.time())
    assert stored_latest_version_valid(VersionCache("1.0.0", now), timedelta(hours=1))
    assert not stored_latest_version_valid(VersionCache("1.0.0", now - 7200), timedelta(hours=1))
    assert not stored_latest_version_valid(VersionCache("1.0.0", 0), timedelta(hours=1))


def test_latest_version_uses_fresh_cache(godel_home):
    write_latest_cached_version("3.1.4")
    with mock.patch("urllib.request.urlopen", side_effect=AssertionError("network used")):
        assert latest_godel_version(timedelta(hours=1)) == "3.1.4"


def test_latest_version_queries_and_trims_v(godel_home):
    fake = _FakeResponse("https://github.com/palantir/godel/releases/tag/v2.10.0")
    with mock.patch("urllib.request.urlopen", return_value=fake):
        assert latest_godel_version(timedelta(0)) == "2.10.0"
    assert read_latest_cached_version().latest_version == "2.10.0"


def test_latest_version_zero_expiration_ignores_cache(godel_home):
    write_latest_cached_version("1.0.0")
    fake = _FakeResponse("https://github.com/palantir/godel/releases/tag/v2.0.0")
    with mock.patch("urllib.request.urlopen", return_value=fake):
        assert latest_godel_version(0) == "2.0.0"


def test_latest_version_bad_status(godel_home):
    fake = _FakeResponse("https://github.com/palantir/godel/releases/tag/v2.0.0", status=204)
    with mock.patch("urllib.request.urlopen", return_value=fake):
        with pytest.raises(UpdateError, match="received status code 204"):
            latest_godel_version(0)


def test_downloaded_tgz_for_version(godel_home):
    downloads = godel_home / "downloads"
    downloads.mkdir(parents=True)
    tgz = downloads / "godel-1.2.3.tgz"
    tgz.write_bytes(b"archive")
    path, digest = downloaded_tgz_for_version("1.2.3")
    assert path == os.path.join(str(downloads), "godel-1.2.3.tgz")
    assert digest == checksum(str(tgz))


def test_downloaded_tgz_missing(godel_home):
    with pytest.raises(UpdateError, match="failed to stat downloaded TGZ file"):
        downloaded_tgz_for_version("9.9.9")