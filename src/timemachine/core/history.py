"""Read-only access to commit history and per-commit diffs."""

from typing import Iterator, List, Optional

import git

from timemachine.core.repository import ConfigRepository
from timemachine.exceptions import CommitNotFoundError
from timemachine.models.commit import CommitView

MAX_HISTORY = 100

# Lines git writes before the "---"/"+++" pair of a file diff
_HEADER_PREFIXES = (
    "diff ",
    "index ",
    "new file mode ",
    "deleted file mode ",
    "old mode ",
    "new mode ",
    "similarity index ",
    "rename from ",
    "rename to ",
)


def strip_diff_header(diff_text: str) -> str:
    """Drop the leading provider header lines, keeping the diff body."""
    lines = diff_text.splitlines(keepends=True)
    start = 0
    while start < len(lines) and lines[start].startswith(_HEADER_PREFIXES):
        start += 1
    return "".join(lines[start:])


class HistoryReader:
    """Lists recent commits and renders single commits with their diff.

    Reads take no lock; a read racing a commit simply does not see it yet.
    """

    def __init__(
        self, repository: Optional[ConfigRepository], limit: int = MAX_HISTORY
    ):
        self._repository = repository
        self._limit = min(limit, MAX_HISTORY)

    def get_history(self) -> Iterator[git.Commit]:
        """Iterate recent commits, most recent first."""
        if self._repository is None:
            return iter(())
        return self._repository.log(max_count=self._limit)

    def get_commit(self, commit_id: str) -> CommitView:
        """Get a commit and its diff against its first parent.

        Raises:
            CommitNotFoundError: If commit_id does not resolve to a commit
        """
        if self._repository is None:
            raise CommitNotFoundError(commit_id)

        commit = self._repository.resolve(commit_id)
        if commit is None:
            raise CommitNotFoundError(commit_id)
        # Root commit has no parent and is diffed against the empty tree
        parent = self._repository.resolve(f"{commit.hexsha}~1")

        entries = self._repository.diff(parent, commit)
        # A rename touches both its old and its new path
        paths: List[str] = []
        for entry in entries:
            for path in (entry.a_path, entry.b_path):
                if path and path not in paths:
                    paths.append(path)
        diff_text = strip_diff_header(self._repository.render(entries))
        return CommitView(commit=commit, diff=diff_text, paths=paths)
