"""Git repository adapter for a tracked configuration root."""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import git
from git import Repo

from timemachine.exceptions import NothingToCommitError
from timemachine.models.identity import Identity

logger = logging.getLogger(__name__)

# Abbreviated id git prints for a side without a blob
_NULL_BLOB = "0000000"


class ConfigRepository:
    """Owns the git repository that lives in the tracked root.

    All paths handed to this class are relative to ``root``.
    """

    def __init__(self, repo: Repo):
        self._repo = repo
        self._empty_tree: Optional[git.Tree] = None
        self.root = Path(repo.working_tree_dir).resolve()

    @property
    def repo(self) -> Repo:
        """Get the underlying git repository."""
        return self._repo

    @classmethod
    def open_or_init(
        cls,
        root: Path,
        ghost: Identity,
        initial_message: str = "initial commit",
    ) -> "ConfigRepository":
        """Open the repository at root, initializing it if there is none yet.

        A new repository gets an empty root commit from the ghost identity so
        that history always has a root. Errors other than a missing
        repository propagate.
        """
        root = Path(root)
        try:
            repo = Repo(root)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            logger.info("No git repository in %s, initializing one", root)
            repo = Repo.init(root, mkdir=True)

        repository = cls(repo)
        if not repo.head.is_valid():
            repository.commit(ghost, ghost, initial_message, allow_empty=True)
        return repository

    def stage(self, *paths: str) -> List[str]:
        """Stage paths, including removal of tracked files that were deleted.

        Paths that are neither on disk nor tracked are skipped.

        Returns:
            The paths actually handed to git
        """
        tracked = {path for path, _stage in self._repo.index.entries}
        staged = [
            path for path in paths if (self.root / path).exists() or path in tracked
        ]
        if staged:
            self._repo.git.add("--all", "--", *staged)
        return staged

    def unstage_all(self) -> None:
        """Reset the index to HEAD, dropping anything staged."""
        self._repo.git.reset("-q")

    def has_pending_changes(self) -> bool:
        """Check if the index differs from HEAD."""
        return self._repo.is_dirty(
            index=True, working_tree=False, untracked_files=False
        )

    def commit(
        self,
        author: Identity,
        committer: Identity,
        message: str,
        allow_empty: bool = False,
    ) -> str:
        """Commit the index and return the new commit hash."""
        if not allow_empty and not self.has_pending_changes():
            raise NothingToCommitError("No staged changes to commit")

        commit = self._repo.index.commit(
            message,
            author=git.Actor(author.name, author.email),
            committer=git.Actor(committer.name, committer.email),
        )
        return commit.hexsha

    def log(self, max_count: int = 100) -> Iterator[git.Commit]:
        """Iterate commits from HEAD, most recent first."""
        return self._repo.iter_commits("HEAD", max_count=max_count)

    def resolve(self, rev: str) -> Optional[git.Commit]:
        """Resolve a revision expression to a commit, or None."""
        try:
            obj = self._repo.rev_parse(rev)
        except (git.exc.BadName, git.exc.BadObject, ValueError, IndexError):
            return None
        while isinstance(obj, git.TagObject):
            obj = obj.object
        if not isinstance(obj, git.Commit):
            return None
        return obj

    def empty_tree(self) -> git.Tree:
        """Get the empty tree, writing it to the object store if needed."""
        if self._empty_tree is None:
            sha = self._repo.git.hash_object("-w", "-t", "tree", os.devnull)
            self._empty_tree = self._repo.tree(sha)
        return self._empty_tree

    def diff(
        self, from_commit: Optional[git.Commit], to_commit: git.Commit
    ) -> git.DiffIndex:
        """Diff two commit snapshots; a missing from_commit means empty tree."""
        from_tree = from_commit.tree if from_commit is not None else self.empty_tree()
        return from_tree.diff(to_commit.tree, create_patch=True)

    def render(self, entries: Iterable[git.Diff]) -> str:
        """Render diff entries as git-style unified diff text."""
        lines: List[str] = []
        for entry in entries:
            a_path = entry.a_path or entry.b_path
            b_path = entry.b_path or entry.a_path
            lines.append(f"diff --git a/{a_path} b/{b_path}")
            if entry.renamed_file:
                lines.append(f"rename from {entry.rename_from}")
                lines.append(f"rename to {entry.rename_to}")
            if entry.new_file and entry.b_mode:
                lines.append(f"new file mode {entry.b_mode:o}")
            if entry.deleted_file and entry.a_mode:
                lines.append(f"deleted file mode {entry.a_mode:o}")
            a_sha = entry.a_blob.hexsha[:7] if entry.a_blob else _NULL_BLOB
            b_sha = entry.b_blob.hexsha[:7] if entry.b_blob else _NULL_BLOB
            lines.append(f"index {a_sha}..{b_sha}")
            lines.append("--- /dev/null" if entry.new_file else f"--- a/{a_path}")
            lines.append("+++ /dev/null" if entry.deleted_file else f"+++ b/{b_path}")

            body = entry.diff
            if isinstance(body, bytes):
                body = body.decode("utf-8", errors="replace")
            if body:
                lines.append(body.rstrip("\n"))
        return "\n".join(lines) + "\n" if lines else ""
