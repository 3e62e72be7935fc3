"""Built-in conditions.

File conditions take either a single pattern or a list of patterns. Patterns
use fnmatch syntax and are matched against repository-relative paths.
"""

from __future__ import annotations

import fnmatch
import re
from typing import TYPE_CHECKING, Any

from hookcaptain.conditions.registry import condition

if TYPE_CHECKING:
    from hookcaptain.context import ExecutionContext

_FALSY = {"", "0", "false", "no", "off"}


def _patterns(files: str | list[str]) -> list[str]:
    return [files] if isinstance(files, str) else list(files)


def _matches(path: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatch(path, p) for p in patterns)


def _of_type(files: list[str], suffixes: str | list[str]) -> bool:
    wanted = {s.lstrip(".").lower() for s in _patterns(suffixes)}
    return any(f.rsplit(".", 1)[-1].lower() in wanted for f in files if "." in f)


def _is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY
    return bool(value)


@condition("branch.on")
def on_branch(ctx: ExecutionContext, name: str) -> bool:
    """True if the current branch is exactly ``name``."""
    return ctx.branch == name


@condition("branch.not-on")
def not_on_branch(ctx: ExecutionContext, name: str) -> bool:
    return ctx.branch != name


@condition("branch.on-matching")
def on_matching_branch(ctx: ExecutionContext, regex: str) -> bool:
    """True if the current branch matches a regular expression."""
    return re.search(regex, ctx.branch) is not None


@condition("file-staged.any")
def any_file_staged(ctx: ExecutionContext, files: str | list[str]) -> bool:
    patterns = _patterns(files)
    return any(_matches(f, patterns) for f in ctx.staged_files)


@condition("file-staged.all")
def all_files_staged(ctx: ExecutionContext, files: str | list[str]) -> bool:
    """True if every pattern matches at least one staged file."""
    staged = ctx.staged_files
    return all(any(fnmatch.fnmatch(f, p) for f in staged) for p in _patterns(files))


@condition("file-staged.of-type")
def file_of_type_staged(ctx: ExecutionContext, suffix: str | list[str]) -> bool:
    return _of_type(ctx.staged_files, suffix)


@condition("file-changed.any")
def any_file_changed(ctx: ExecutionContext, files: str | list[str]) -> bool:
    patterns = _patterns(files)
    return any(_matches(f, patterns) for f in ctx.changed_files)


@condition("file-changed.of-type")
def file_of_type_changed(ctx: ExecutionContext, suffix: str | list[str]) -> bool:
    return _of_type(ctx.changed_files, suffix)


@condition("config.custom-value-is-truthy")
def custom_value_is_truthy(ctx: ExecutionContext, value: str) -> bool:
    """True if the custom setting ``value`` exists and is truthy ("0", "false", "no", "off" are not)."""
    return _is_truthy(ctx.config.custom.get(value, ""))


@condition("config.custom-value-is-falsy")
def custom_value_is_falsy(ctx: ExecutionContext, value: str) -> bool:
    return not _is_truthy(ctx.config.custom.get(value, ""))
