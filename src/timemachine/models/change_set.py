"""Change set model for batching mutations of one unit of work."""

from typing import List

from pydantic import BaseModel


class ChangeSet(BaseModel):
    """Root-relative paths mutated during one unit of work, pending a commit."""

    paths: List[str] = []

    def add(self, path: str) -> None:
        """Record a mutated path; repeated paths are ignored."""
        if path not in self.paths:
            self.paths.append(path)

    @property
    def is_empty(self) -> bool:
        return not self.paths

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.paths
