"""Commit view model for presenting a commit with its diff."""

from typing import List

import git
from pydantic import BaseModel


class CommitView(BaseModel):
    """A commit together with its rendered diff against the first parent."""

    commit: git.Commit
    diff: str
    paths: List[str] = []

    model_config = {"arbitrary_types_allowed": True}

    @property
    def sha(self) -> str:
        return self.commit.hexsha

    @property
    def message(self) -> str:
        return self.commit.message

    @property
    def author(self) -> str:
        return self.commit.author.name

    @property
    def is_root(self) -> bool:
        """Check if this commit has no parent."""
        return not self.commit.parents
