"""Tools the review model may call."""

from . import file_tools, git_ignore

__all__ = ["file_tools", "git_ignore"]
