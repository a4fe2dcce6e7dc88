import os

import pytest

from godeltasks import layout
from godeltasks.layout import (
    APP_DIR,
    APP_EXECUTABLE,
    DOWNLOADS_DIR,
    WRAPPER_APP_DIR,
    WRAPPER_CONFIG_DIR,
    WRAPPER_SCRIPT_FILE,
    LayoutError,
    Mode,
)


def _platform_dir(version="0.0.1"):
    values = layout.app_spec_template(version)
    return f"{values['os']}-{values['arch']}"


def _create_files(root, files):
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def test_app_layout_no_validation():
    spec_dir = layout.new_spec_dir(
        "testRoot", layout.app_spec(), layout.app_spec_template("0.0.1"), Mode.SPEC_ONLY
    )
    want = os.path.join("godel-0.0.1", "bin", _platform_dir(), "godel")
    assert spec_dir.path(APP_EXECUTABLE) == want


def test_app_spec_validation_not_a_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(LayoutError) as excinfo:
        layout.app_spec().validate("testRoot", layout.app_spec_template("0.0.1"))
    assert str(excinfo.value) == "testRoot is not a path to godel-0.0.1"


def test_app_spec_validation_missing_bin(tmp_path):
    godel_dir = tmp_path / "godel-0.0.1"
    godel_dir.mkdir()
    with pytest.raises(LayoutError) as excinfo:
        layout.app_spec().validate(str(godel_dir), layout.app_spec_template("0.0.1"))
    assert str(excinfo.value) == os.path.join("godel-0.0.1", "bin") + " does not exist"


def test_app_layout_validation(tmp_path):
    files = {
        os.path.join("godel-0.0.1", "bin", "darwin-amd64", "godel"): "godel",
        os.path.join("godel-0.0.1", "bin", "linux-amd64", "godel"): "godel",
        os.path.join("godel-0.0.1", "bin", _platform_dir(), "godel"): "godel",
        os.path.join("godel-0.0.1", "wrapper", "godel", "bin", "godelw"): "godelw",
        os.path.join("godel-0.0.1", "wrapper", "godel", "config", "foo.yml"): "testconfig",
        os.path.join("godel-0.0.1", "wrapper", "godelw"): "godelw",
    }
    _create_files(tmp_path, files)
    spec_dir = layout.new_spec_dir(
        str(tmp_path / "godel-0.0.1"),
        layout.app_spec(),
        layout.app_spec_template("0.0.1"),
        Mode.VALIDATE,
    )
    expected = os.path.join(str(tmp_path), "godel-0.0.1", "bin", _platform_dir(), "godel")
    assert spec_dir.path(APP_EXECUTABLE) == expected
    assert spec_dir.path(APP_DIR) == str(tmp_path / "godel-0.0.1")


def test_app_spec_dir_validates(tmp_path):
    (tmp_path / "godel-0.0.1").mkdir()
    with pytest.raises(LayoutError):
        layout.app_spec_dir(str(tmp_path / "godel-0.0.1"), "0.0.1")


@pytest.mark.parametrize(
    "alias, want",
    [
        (WRAPPER_CONFIG_DIR, os.path.join("testRoot", "godel", "config")),
        (WRAPPER_APP_DIR, os.path.join("testRoot", "godel")),
        (WRAPPER_SCRIPT_FILE, os.path.join("testRoot", "godelw")),
    ],
)
def test_wrapper_layout_no_validation(alias, want):
    spec_dir = layout.new_spec_dir("testRoot", layout.wrapper_spec(), None, Mode.SPEC_ONLY)
    assert spec_dir.path(alias) == want


def test_wrapper_layout_validation_fail(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(LayoutError) as excinfo:
        layout.wrapper_spec().validate("testRoot", None)
    assert str(excinfo.value) == os.path.join("testRoot", "godelw") + " does not exist"


def test_wrapper_layout_validation(tmp_path):
    parent = tmp_path / "wrapperParent"
    (parent / "godel" / "config").mkdir(parents=True)
    (parent / "godel" / ".src").mkdir(parents=True)
    (parent / "godelw").write_text("test file")
    spec_dir = layout.new_spec_dir(str(parent), layout.wrapper_spec(), None, Mode.VALIDATE)
    assert spec_dir.path(WRAPPER_APP_DIR) == str(parent / "godel")
    assert spec_dir.path(WRAPPER_CONFIG_DIR) == str(parent / "godel" / "config")
    assert spec_dir.path(WRAPPER_SCRIPT_FILE) == str(parent / "godelw")


def test_wrapper_validation_wrong_type(tmp_path):
    root = tmp_path / "wr"
    (root / "godelw").mkdir(parents=True)
    with pytest.raises(LayoutError) as excinfo:
        layout.wrapper_spec().validate(str(root), None)
    assert str(excinfo.value) == (
        f"IsDir for {os.path.join('wr', 'godelw')} returned wrong value: expected false, was true"
    )


def test_create_directory_structure_creates_only_directories(tmp_path):
    root = tmp_path / "project"
    layout.wrapper_spec().create_directory_structure(str(root), None, False)
    assert (root / "godel" / "config").is_dir()
    assert not (root / "godelw").exists()


def test_paths_include_root():
    values = layout.app_spec_template("0.0.1")
    without_root = layout.app_spec().paths(values, False)
    with_root = layout.app_spec().paths(values, True)
    assert "godel-0.0.1" not in without_root
    assert "godel-0.0.1" in with_root
    assert os.path.join("godel-0.0.1", "wrapper", "godelw") in without_root
    assert os.path.join("godel-0.0.1", "bin", _platform_dir(), "godel") in without_root
    assert set(with_root) - set(without_root) == {"godel-0.0.1"}


def test_missing_template_value():
    with pytest.raises(LayoutError):
        layout.app_spec().paths({}, True)


def test_unknown_alias():
    spec_dir = layout.new_spec_dir("testRoot", layout.wrapper_spec(), None, Mode.SPEC_ONLY)
    with pytest.raises(LayoutError):
        spec_dir.path("no-such-alias")


def test_godel_home_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GODEL_HOME", str(tmp_path / "gh"))
    assert layout.godel_home_path() == str(tmp_path / "gh")


def test_godel_home_path_from_home(monkeypatch, tmp_path):
    monkeypatch.delenv("GODEL_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert layout.godel_home_path() == os.path.join(str(tmp_path), ".godel")


def test_godel_home_path_missing(monkeypatch):
    monkeypatch.delenv("GODEL_HOME", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    with pytest.raises(LayoutError) as excinfo:
        layout.godel_home_path()
    assert str(excinfo.value) == "failed to get godel home directory"


def test_godel_home_spec_dir_create(monkeypatch, tmp_path):
    home = tmp_path / "home"
    monkeypatch.setenv("GODEL_HOME", str(home))
    spec_dir = layout.godel_home_spec_dir(Mode.CREATE)
    downloads = spec_dir.path(DOWNLOADS_DIR)
    assert downloads == str(home / "downloads")
    assert os.path.isdir(downloads)
    assert spec_dir.root == str(home)
    layout.godel_home_spec().validate(str(home), {"godel-home": "home"})


def test_godel_home_spec_dir_validate_missing(monkeypatch, tmp_path):
    monkeypatch.setenv("GODEL_HOME", str(tmp_path / "absent"))
    with pytest.raises(LayoutError):
        layout.godel_home_spec_dir(Mode.VALIDATE)


def test_godel_dist_layout_paths(monkeypatch, tmp_path):
    home = tmp_path / "home"
    monkeypatch.setenv("GODEL_HOME", str(home))
    dist = layout.godel_dist_layout("1.0.0", Mode.SPEC_ONLY)
    assert dist.path(APP_DIR) == str(home / "dists" / "godel-1.0.0")
    assert dist.path(WRAPPER_SCRIPT_FILE) == str(home / "dists" / "godel-1.0.0" / "wrapper" / "godelw")


def test_all_paths(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "b" / "f.txt").write_text("x")
    (tmp_path / "top.txt").write_text("y")
    assert layout.all_paths(str(tmp_path)) == {
        "a": True,
        os.path.join("a", "b"): True,
        os.path.join("a", "b", "f.txt"): False,
        "top.txt": False,
    }