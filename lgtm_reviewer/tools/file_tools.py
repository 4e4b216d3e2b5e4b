"""Sandboxed file retrieval for the review conversation.

This module is the only place where a path chosen by the model meets the
filesystem. Every request goes through the same checks, in order:

1. Syntax: empty, NUL-containing, non-UTF-8, absolute, and ``..``-bearing
   paths are rejected before any filesystem access.
2. Lexical boundary: the joined path must lie inside the canonical root.
3. Ignore policy: the ignore oracle is consulted, and an oracle failure is
   a denial.
4. Canonical boundary: symlinks (final component and intermediate
   directories) are resolved and the real target is checked against the
   root again, then against the ignore policy again.
5. File type: only regular files are served. The file is opened without
   following symlinks and re-checked with ``fstat`` so a swap between the
   checks and the read is caught.

Denials are returned as ``ToolResponse`` errors, never raised.
"""

import logging
import os
import re
import stat
from pathlib import Path, PureWindowsPath

from lgtm_reviewer.models.tool_types import (
    FILE_TOOL_ARGUMENT,
    FILE_TOOL_NAME,
    AccessDecision,
    DenialReason,
    ToolCall,
    ToolResponse,
)
from lgtm_reviewer.tools.git_ignore import GitIgnoreOracle, IgnoreOracle

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_BYTES = 1024 * 1024

_SEPARATORS = re.compile(r"[\\/]")

_OPEN_FLAGS = os.O_RDONLY | getattr(os, "O_NOFOLLOW", 0) | getattr(os, "O_NONBLOCK", 0)


def _is_within(path: Path, root: Path) -> bool:
    """Component-wise containment; ``/repo-evil`` is not inside ``/repo``."""
    return path == root or root in path.parents


def _is_absolute(requested_path: str) -> bool:
    if requested_path.startswith(("/", "\\")):
        return True
    windows = PureWindowsPath(requested_path)
    return bool(windows.drive or windows.root) or os.path.isabs(requested_path)


class SandboxedRepositoryAccessor:
    """Serves file contents from a single repository tree to the model."""

    def __init__(
        self,
        repo_root: str | Path,
        ignore_oracle: IgnoreOracle | None = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.ignore_oracle = ignore_oracle or GitIgnoreOracle()
        self.max_file_bytes = max_file_bytes

    def resolve(self, requested_path: object) -> AccessDecision:
        """Validate a requested path and resolve it to a readable file.

        Args:
            requested_path: Path as sent by the model, relative to the root

        Returns:
            ``AccessDecision.allowed`` with the canonical path, or a denial
        """
        if not isinstance(requested_path, str):
            return AccessDecision.denied(
                DenialReason.MALFORMED_PATH, "filepath parameter must be a string"
            )
        if not requested_path.strip():
            return AccessDecision.denied(DenialReason.MALFORMED_PATH, "filepath is empty")
        if "\x00" in requested_path:
            return AccessDecision.denied(
                DenialReason.MALFORMED_PATH, "filepath contains a NUL byte"
            )
        try:
            requested_path.encode("utf-8")
        except UnicodeEncodeError:
            return AccessDecision.denied(
                DenialReason.MALFORMED_PATH, "filepath is not valid UTF-8"
            )
        if _is_absolute(requested_path):
            return AccessDecision.denied(
                DenialReason.ESCAPES_REPOSITORY, "absolute paths are not allowed"
            )
        if ".." in _SEPARATORS.split(requested_path):
            return AccessDecision.denied(
                DenialReason.ESCAPES_REPOSITORY, "path traversal not allowed"
            )

        try:
            root = self.repo_root.resolve(strict=True)
        except (OSError, RuntimeError, ValueError) as e:
            return AccessDecision.denied(
                DenialReason.UNREADABLE, f"failed to resolve repository path: {e}"
            )

        lexical = Path(os.path.normpath(root / requested_path))
        if not _is_within(lexical, root):
            return AccessDecision.denied(
                DenialReason.ESCAPES_REPOSITORY, "path is outside repository"
            )
        if lexical == root:
            return AccessDecision.denied(
                DenialReason.NOT_REGULAR_FILE, "path is the repository root"
            )

        denial = self._check_ignored(lexical.relative_to(root).as_posix(), root)
        if denial is not None:
            return denial

        try:
            resolved = lexical.resolve(strict=True)
        except FileNotFoundError:
            return AccessDecision.denied(DenialReason.UNREADABLE, "file not found")
        except (OSError, RuntimeError, ValueError) as e:
            return AccessDecision.denied(
                DenialReason.UNREADABLE, f"failed to resolve path: {e}"
            )

        if not _is_within(resolved, root):
            return AccessDecision.denied(
                DenialReason.ESCAPES_REPOSITORY, "path is outside repository"
            )

        if resolved != lexical:
            if resolved == root:
                return AccessDecision.denied(
                    DenialReason.NOT_REGULAR_FILE, "path is the repository root"
                )
            denial = self._check_ignored(resolved.relative_to(root).as_posix(), root)
            if denial is not None:
                return denial

        if not resolved.is_file():
            return AccessDecision.denied(
                DenialReason.NOT_REGULAR_FILE, "path is not a regular file"
            )

        return AccessDecision.allowed(resolved)

    def _check_ignored(self, relative_path: str, root: Path) -> AccessDecision | None:
        try:
            ignored = self.ignore_oracle.is_ignored(relative_path, root)
        except Exception as e:
            # Fail closed.
            logger.warning(f"Ignore check failed for {relative_path}: {e}")
            return AccessDecision.denied(
                DenialReason.IGNORED_BY_POLICY,
                f"unable to verify ignore status: {e}",
            )
        if ignored:
            return AccessDecision.denied(
                DenialReason.IGNORED_BY_POLICY, "file is gitignored"
            )
        return None

    def fetch(self, requested_path: object) -> ToolResponse:
        """Return the file's text, or a denial reason, for a requested path."""
        decision = self.resolve(requested_path)
        path = decision.resolved_path
        if not decision.is_allowed or path is None:
            logger.debug(f"Denied file request {requested_path!r}: {decision.describe()}")
            return ToolResponse.failure(decision.describe())

        try:
            data = self._read_regular_file(path)
        except _Denied as denied:
            return ToolResponse.failure(denied.decision.describe())
        except (OSError, ValueError) as e:
            return ToolResponse.failure(
                AccessDecision.denied(
                    DenialReason.UNREADABLE, f"failed to read file: {e}"
                ).describe()
            )

        logger.debug(f"Served {len(data)} bytes for {requested_path!r}")
        return ToolResponse.success(data.decode("utf-8", errors="replace"))

    def _read_regular_file(self, path: Path) -> bytes:
        fd = os.open(path, _OPEN_FLAGS)
        with os.fdopen(fd, "rb") as handle:
            info = os.fstat(handle.fileno())
            if not stat.S_ISREG(info.st_mode):
                raise _Denied(
                    AccessDecision.denied(
                        DenialReason.NOT_REGULAR_FILE, "path is not a regular file"
                    )
                )
            if info.st_size > self.max_file_bytes:
                raise _Denied(
                    AccessDecision.denied(
                        DenialReason.UNREADABLE,
                        f"file is larger than {self.max_file_bytes} bytes",
                    )
                )
            data = handle.read(self.max_file_bytes + 1)

        if len(data) > self.max_file_bytes:
            raise _Denied(
                AccessDecision.denied(
                    DenialReason.UNREADABLE,
                    f"file is larger than {self.max_file_bytes} bytes",
                )
            )
        return data

    def handle_tool_call(self, tool_call: ToolCall) -> ToolResponse:
        """Answer one model tool call. Always returns a response."""
        if tool_call.name != FILE_TOOL_NAME:
            logger.warning(f"Model called unsupported tool {tool_call.name!r}")
            return ToolResponse.failure(
                f"unknown tool {tool_call.name!r}; only {FILE_TOOL_NAME} is available"
            )

        if tool_call.requested_path is None:
            return ToolResponse.failure(f"{FILE_TOOL_ARGUMENT} parameter must be a string")

        logger.debug(f"Model requested file function={tool_call.name} filepath={tool_call.requested_path}")
        return self.fetch(tool_call.requested_path)


class _Denied(Exception):
    def __init__(self, decision: AccessDecision) -> None:
        self.decision = decision
        super().__init__(decision.describe())
