import io
import tarfile

import pytest

from godeltasks.layout import app_spec_template
from godeltasks.tgz import (
    PackageError,
    get_paths_in_tgz,
    verify_package_tgz,
    version_from_entries,
)


def _package_layout(version):
    values = app_spec_template(version)
    platform_dir = f"godel-{version}/bin/{values['os']}-{values['arch']}"
    dirs = [
        f"godel-{version}",
        f"godel-{version}/bin",
        platform_dir,
        f"godel-{version}/wrapper",
        f"godel-{version}/wrapper/godel",
        f"godel-{version}/wrapper/godel/config",
    ]
    files = {
        f"{platform_dir}/godel": "binary",
        f"godel-{version}/wrapper/godelw": "script",
    }
    return dirs, files


def _write_tgz(path, dirs, files):
    with tarfile.open(path, "w:gz") as archive:
        for name in dirs:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            archive.addfile(info)
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return str(path)


def test_get_paths_in_tgz(tmp_path):
    dirs, files = _package_layout("1.2.3")
    tgz = _write_tgz(tmp_path / "pkg.tgz", dirs, files)
    assert get_paths_in_tgz(tgz) == set(dirs) | set(files)


def test_verify_valid_package(tmp_path):
    dirs, files = _package_layout("1.2.3")
    tgz = _write_tgz(tmp_path / "pkg.tgz", dirs, files)
    assert verify_package_tgz(tgz) == "1.2.3"


def test_verify_missing_wrapper_script(tmp_path):
    dirs, files = _package_layout("1.2.3")
    del files["godel-1.2.3/wrapper/godelw"]
    tgz = _write_tgz(tmp_path / "pkg.tgz", dirs, files)
    with pytest.raises(PackageError, match="failed to find godel-1.2.3/wrapper/godelw"):
        verify_package_tgz(tgz)


def test_verify_wrong_root(tmp_path):
    tgz = _write_tgz(tmp_path / "pkg.tgz", ["other-1.2.3"], {"other-1.2.3/x": "x"})
    with pytest.raises(PackageError, match="could not determine version"):
        verify_package_tgz(tgz)


def test_verify_not_gzip(tmp_path):
    path = tmp_path / "pkg.tgz"
    path.write_text("not an archive")
    with pytest.raises(PackageError, match="failed to get directories in tgz file"):
        verify_package_tgz(str(path))


def test_version_from_entries():
    assert version_from_entries(["godel-1.2.3", "godel-1.2.3/bin"]) == "1.2.3"


def test_version_from_entries_bad_prefix():
    with pytest.raises(PackageError, match="did not have expected prefix godel-"):
        version_from_entries(["tool-1.2.3"])


def test_version_from_entries_empty():
    with pytest.raises(PackageError):
        version_from_entries([])