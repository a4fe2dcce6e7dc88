# godeltasks

Everyday project tasks for Go repositories that use a `godelw` wrapper
script, and the helpers those tasks are built on:

- a git `pre-commit` hook that checks the formatting of staged Go files
- IntelliJ / Gogland project files
- pushing a documents directory to a GitHub wiki repository
- the directory layouts of the godel home directory (`$GODEL_HOME`, or
  `~/.godel` when that is unset), of a distribution and of the wrapper
- version parsing and ordering, `godel.properties` handling, archive
  verification and running `godelw upgrade-config` after a version change

No third-party libraries are needed. Some tasks run external programs:
`git` for the wiki sync, `go env GOROOT` for the IDEA files when `GOROOT`
is not set, and the project's own `godelw` for version checks and
configuration upgrades.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
godeltasks [--project-dir DIR] COMMAND ...
```

`--project-dir` defaults to the current directory. On failure the command
prints `Error: ...` to standard error and exits with status 1.

```
godeltasks exec <command> [args...]
```
Runs the given program with the terminal's input and output and exits
with its exit status.

```
godeltasks git-hooks
```
Writes `.git/hooks/pre-commit` (mode 755) in the project. Fails if the
project has no `.git` directory.

```
godeltasks idea
godeltasks idea intellij
godeltasks idea gogland
godeltasks idea clean
```
`idea` alone writes IntelliJ `<project>.iml` and `<project>.ipr` files into
the project directory, where `<project>` is the directory's name.
`intellij` and `gogland` both write the Gogland variant of these files.
`clean` removes the `.iml`, `.ipr` and `.iws` files where present. Any
other argument is refused as an unknown command.

```
godeltasks github-wiki --docs-dir docs --repository <wiki repository>
```
Clones the wiki repository into a temporary directory, makes its contents
match the documents directory (the `.git` directory is left alone),
commits and pushes `HEAD` to `origin`. If nothing changed, nothing is
committed. Further options:

- `--author-name`, `--author-email`, `--committer-name`,
  `--committer-email`: identity for the commit. When left blank, each value
  is taken from the last commit of the cloned wiki repository.
- `--message`: the commit message. It may refer to `{{.CommitID}}` and
  `{{.CommitTime}}` (with fields such as `{{.CommitTime.Unix}}`) of the
  documents directory's current commit, and may call `printf`. The default
  is
  `Sync documentation using godel github-wiki task ({{ printf "%.7s" .CommitID}})`.
  When the documents directory is not in a git repository, or the message
  cannot be parsed or executed as a template, it is used as written and a
  notice is printed.

## Library use

- `godeltasks.layout`: `LayoutSpec` (`paths`, `validate`,
  `create_directory_structure`), `SpecDir.path`, `new_spec_dir` with a
  `Mode` (`VALIDATE`, `CREATE`, `SPEC_ONLY`), `wrapper_spec()`,
  `app_spec()`, `app_spec_template()`, `app_spec_dir()`,
  `godel_home_path()`, `godel_home_spec()`, `godel_home_spec_dir()`,
  `godel_dist_layout()` and `all_paths()`. Mismatches raise `LayoutError`.
- `godeltasks.fileops`: `copy_file`, `copy_dir`, `move`, `sync_dir`
  (returns whether anything changed), `sync_dir_additive`, `checksum`
  (SHA-256 hex) and `verify_dir_exists`; errors raise `FileOperationError`.
- `godeltasks.version`: `parse_version`, `get_type`, `VersionType` and
  `GodelVersion.compare_to`, which returns -1, 0 or 1, or `None` when
  either version cannot be ordered.
- `godeltasks.properties`: `read_properties_file` for `key=value` files,
  skipping blank lines and `#` comments.
- `godeltasks.tgz`: `get_paths_in_tgz`, `version_from_entries` and
  `verify_package_tgz`, which checks that an archive has the distribution
  layout and returns its version.
- `godeltasks.update`: `PackageSource`, `godel_props_dist_pkg_info`,
  `set_godel_property_key`, `downloaded_tgz_for_version`, the cached latest
  version (`VersionCache`, `read_latest_cached_version`,
  `write_latest_cached_version`, `stored_latest_version_valid`) and
  `latest_godel_version`, which falls back to querying the release page.
- `godeltasks.godelw`: `get_godel_version`, `get_last_line`,
  `run_upgrade_config` and `run_upgrade_legacy_config`.
- `godeltasks.upgrade`: `run_action_and_upgrade_config`.
- `godeltasks.githooks`, `godeltasks.idea`, `godeltasks.githubwiki`
  (`WikiParams`, `sync_github_wiki`, `render_message`): the tasks behind
  the commands above.

```python
from godeltasks.version import parse_version

older = parse_version("2.0.0-rc1")
newer = parse_version("2.0.0")
assert newer.compare_to(older) == 1
assert parse_version("2.0.0-foo.dirty").compare_to(newer) is None
```

## What it does not do

There is no `install` or `update` command, and nothing here downloads or
unpacks a distribution into the godel home directory or copies a new
wrapper into a project. The `update` and `tgz` modules locate, check and
record distributions, and `run_action_and_upgrade_config` runs the
project's `godelw upgrade-config` around an action you supply; the
configuration upgrade itself is left to that wrapper.