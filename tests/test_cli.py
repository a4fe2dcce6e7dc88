import os
import sys

import pytest

from godeltasks.cli import main


def _project(tmp_path):
    project = tmp_path / "proj"
    project.mkdir()
    return project


def test_exec_without_command_fails(capsys):
    assert main(["exec"]) == 1
    assert "no command specified" in capsys.readouterr().err


def test_exec_runs_command(capfd):
    code = main(["exec", sys.executable, "-c", "print('hello from child')"])
    assert code == 0
    assert "hello from child" in capfd.readouterr().out


def test_exec_propagates_exit_status():
    assert main(["exec", sys.executable, "-c", "import sys; sys.exit(3)"]) == 3


def test_git_hooks_without_git_dir(tmp_path, capsys):
    project = _project(tmp_path)
    assert main(["--project-dir", str(project), "git-hooks"]) == 1
    expected = f".git directory does not exist at {os.path.join(str(project), '.git')}"
    assert expected in capsys.readouterr().err


def test_git_hooks_installs_pre_commit(tmp_path):
    project = _project(tmp_path)
    (project / ".git" / "hooks").mkdir(parents=True)
    assert main(["--project-dir", str(project), "git-hooks"]) == 0
    content = (project / ".git" / "hooks" / "pre-commit").read_text()
    assert "./godelw format --verify $gofiles" in content


def test_github_wiki_requires_flags():
    assert main(["github-wiki"]) == 2


def test_github_wiki_missing_docs_dir(tmp_path, capsys):
    missing = tmp_path / "nope"
    code = main(["github-wiki", "--docs-dir", str(missing), "--repository", str(tmp_path)])
    assert code == 1
    assert f"Docs directory {missing} does not exist" in capsys.readouterr().err


def test_idea_default_creates_intellij_files(tmp_path, monkeypatch):
    monkeypatch.setenv("GOROOT", "/opt/goroot")
    project = _project(tmp_path)
    assert main(["--project-dir", str(project), "idea"]) == 0
    iml = (project / "proj.iml").read_text()
    assert 'jdkName="Go"' in iml
    assert (project / "proj.ipr").is_file()


def test_idea_gogland_uses_goroot(tmp_path, monkeypatch):
    monkeypatch.setenv("GOROOT", "/opt/goroot")
    project = _project(tmp_path)
    assert main(["--project-dir", str(project), "idea", "gogland"]) == 0
    ipr = (project / "proj.ipr").read_text()
    assert '<component name="GOROOT" path="/opt/goroot" />' in ipr
    assert "GOPATH &lt;proj&gt;" in (project / "proj.iml").read_text()


def test_idea_intellij_subcommand_matches_gogland(tmp_path, monkeypatch):
    monkeypatch.setenv("GOROOT", "/opt/goroot")
    first = tmp_path / "a" / "proj"
    second = tmp_path / "b" / "proj"
    first.mkdir(parents=True)
    second.mkdir(parents=True)
    assert main(["--project-dir", str(first), "idea", "intellij"]) == 0
    assert main(["--project-dir", str(second), "idea", "gogland"]) == 0
    assert (first / "proj.ipr").read_text() == (second / "proj.ipr").read_text()


@pytest.mark.parametrize("exts", [["iml", "ipr", "iws"], ["iml", "ipr"]])
def test_idea_clean_removes_files(tmp_path, exts):
    project = _project(tmp_path)
    for ext in exts:
        (project / f"proj.{ext}").write_text(ext)
    assert main(["--project-dir", str(project), "idea", "clean"]) == 0
    assert not any((project / f"proj.{ext}").exists() for ext in exts)


def test_idea_unknown_subcommand(tmp_path, capsys):
    project = _project(tmp_path)
    assert main(["--project-dir", str(project), "idea", "bogus"]) == 1
    assert 'unknown command "bogus"' in capsys.readouterr().err
    assert not (project / "proj.iml").exists()


def test_no_command_is_usage_error():
    assert main([]) == 2