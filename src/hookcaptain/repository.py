"""Git repository inspection.

Answers the questions conditions, placeholders, and the reporter ask about the
repository: current branch, staged and changed files, and whether a hook
script is installed.
"""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Read-only view of a git repository."""

    def hook_exists(self, hook: str) -> bool: ...

    def current_branch(self) -> str: ...

    def staged_files(self, diff_filter: str = "ACMR") -> list[str]: ...

    def changed_files(self, from_ref: str = "ORIG_HEAD", to_ref: str = "HEAD") -> list[str]: ...


class GitRepository:
    """Repository backed by the git command line.

    Attributes:
        git_dir: Path to the .git directory
        root: Working tree root (parent of git_dir)
        git_binary: git executable to call
    """

    def __init__(self, git_dir: str | Path, git_binary: str = "git") -> None:
        self.git_dir = Path(git_dir)
        self.root = self.git_dir.parent
        self.git_binary = git_binary or "git"

    def _git(self, *args: str) -> str:
        """Run a git command and return its stripped stdout.

        Raises:
            RuntimeError: If git exits with a non-zero status
        """
        command = [self.git_binary, f"--git-dir={self.git_dir}", f"--work-tree={self.root}", *args]
        logger.debug("Running %s", " ".join(command))
        result = subprocess.run(command, capture_output=True, text=True, cwd=self.root)
        if result.returncode != 0:
            raise RuntimeError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
        return result.stdout.strip()

    def _lines(self, *args: str) -> list[str]:
        output = self._git(*args)
        return [line for line in output.splitlines() if line.strip()]

    def hook_exists(self, hook: str) -> bool:
        return (self.git_dir / "hooks" / hook).is_file()

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD")

    def staged_files(self, diff_filter: str = "ACMR") -> list[str]:
        return self._lines("diff", "--cached", "--name-only", f"--diff-filter={diff_filter}")

    def changed_files(self, from_ref: str = "ORIG_HEAD", to_ref: str = "HEAD") -> list[str]:
        return self._lines("diff", "--name-only", from_ref, to_ref)
