"""Shared fixtures for hookcaptain tests."""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml


class FakeRepository:
    """In-memory Repository with call counters."""

    def __init__(
        self,
        branch: str = "main",
        staged: list[str] | None = None,
        changed: list[str] | None = None,
        installed: tuple[str, ...] = (),
    ) -> None:
        self.branch = branch
        self.staged = staged or []
        self.changed = changed or []
        self.installed = set(installed)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def hook_exists(self, hook: str) -> bool:
        return hook in self.installed

    def current_branch(self) -> str:
        self.calls.append(("current_branch", ()))
        return self.branch

    def staged_files(self, diff_filter: str = "ACMR") -> list[str]:
        self.calls.append(("staged_files", (diff_filter,)))
        return list(self.staged)

    def changed_files(self, from_ref: str = "ORIG_HEAD", to_ref: str = "HEAD") -> list[str]:
        self.calls.append(("changed_files", (from_ref, to_ref)))
        return list(self.changed)


@pytest.fixture
def make_repository() -> type[FakeRepository]:
    """Factory for repositories with custom state."""
    return FakeRepository


@pytest.fixture
def repository() -> FakeRepository:
    """Repository on branch 'main' with a few staged and changed files."""
    return FakeRepository(
        staged=["src/app.py", "src/util.py", "README.md"],
        changed=["composer.lock", "docs/index.md"],
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep HOOKCAPTAIN_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("HOOKCAPTAIN_"):
            monkeypatch.delenv(key)


@pytest.fixture
def write_document(tmp_path: Path) -> Callable[[str, dict[str, Any]], Path]:
    """Write a JSON or YAML document below tmp_path and return its path."""

    def _write(name: str, data: dict[str, Any]) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix in (".yaml", ".yml"):
            path.write_text(yaml.safe_dump(data))
        else:
            path.write_text(json.dumps(data, indent=4))
        return path

    return _write

