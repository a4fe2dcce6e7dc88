[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "godeltasks"
version = "2.0.0"
description = "Project tasks for Go repositories that use a godelw wrapper: git hooks, IDEA project files, GitHub wiki sync and wrapper layout helpers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "go",
    "build",
    "wrapper",
    "git-hooks",
    "intellij",
    "wiki",
    "project-tooling",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
godeltasks = "godeltasks.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["godeltasks"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
