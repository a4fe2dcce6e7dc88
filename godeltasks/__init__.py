"""Project tasks for Go repositories that use a godelw wrapper: git hooks, IDEA files, wiki sync and layout helpers."""

__version__ = "2.0.0"