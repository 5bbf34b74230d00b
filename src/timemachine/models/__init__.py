"""Data models for Timemachine."""

from .change_set import ChangeSet
from .commit import CommitView
from .identity import Identity

__all__ = ["ChangeSet", "CommitView", "Identity"]
