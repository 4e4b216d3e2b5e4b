"""Ignore-status oracles consulted before a file is handed to the model."""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class IgnoreCheckError(Exception):
    """Raised when the ignore status of a path cannot be determined."""


class IgnoreOracle(Protocol):
    """Decides whether a repository-relative path is excluded from review.

    Implementations raise on any failure; callers must treat an exception
    as a denial.
    """

    def is_ignored(self, relative_path: str, repo_root: Path) -> bool: ...


class GitIgnoreOracle:
    """Ignore oracle backed by ``git check-ignore``.

    Respects every ``.gitignore`` in the hierarchy, ``.git/info/exclude``
    and the global excludes file, because git evaluates them itself.
    """

    def __init__(self, git_binary: str = "git", timeout: float = 10.0) -> None:
        self.git_binary = git_binary
        self.timeout = timeout

    def is_ignored(self, relative_path: str, repo_root: Path) -> bool:
        """Check whether git ignores ``relative_path``.

        Exit code 0 means ignored and 1 means not ignored. Anything else
        (128 for "not a git repository", a missing binary, a timeout) is an
        error.

        Raises:
            IgnoreCheckError: If git cannot answer
        """
        try:
            completed = subprocess.run(
                [self.git_binary, "check-ignore", "--", relative_path],
                cwd=repo_root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise IgnoreCheckError(f"failed to execute git check-ignore: {e}") from e

        if completed.returncode == 0:
            return True
        if completed.returncode == 1:
            return False

        stderr = completed.stderr.strip()
        logger.debug(
            f"git check-ignore exited with {completed.returncode} for {relative_path}: {stderr}"
        )
        raise IgnoreCheckError(
            f"git check-ignore failed with exit code {completed.returncode}: {stderr}"
        )


class StaticIgnoreOracle:
    """Ignore oracle over a fixed set of repository-relative paths.

    Used where the caller already knows the ignore set, for example when
    the repository is not a git checkout.
    """

    def __init__(self, ignored: set[str] | None = None) -> None:
        self.ignored = {Path(p).as_posix() for p in (ignored or set())}

    def is_ignored(self, relative_path: str, repo_root: Path) -> bool:
        candidate = Path(relative_path)
        for ignored in self.ignored:
            ignored_path = Path(ignored)
            if candidate == ignored_path or ignored_path in candidate.parents:
                return True
        return False
