"""Commit coordination: batching mutations and serializing commits."""

import contextlib
import logging
import threading
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from timemachine.config import TimeMachineConfig
from timemachine.core.context import current_identity, current_operation
from timemachine.core.repository import ConfigRepository
from timemachine.core.scope import ChangeScopeRegistry
from timemachine.models.identity import Identity

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Optional[Identity]]


class CommitCoordinator:
    """Routes file mutations into change sets or immediate commits.

    Without a repository the coordinator is disabled and every call is a
    no-op. With one, every stage+commit sequence runs under a single lock so
    that staged-but-uncommitted paths of one writer never end up in
    another writer's commit.
    """

    def __init__(
        self,
        repository: Optional[ConfigRepository],
        scopes: ChangeScopeRegistry,
        config: Optional[TimeMachineConfig] = None,
        identity_provider: Optional[IdentityProvider] = None,
    ):
        self._repository = repository
        self._scopes = scopes
        self._config = config or TimeMachineConfig()
        self._identity_provider = identity_provider or current_identity
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._repository is not None

    def relative_path(self, file_path: Union[str, Path]) -> str:
        """Convert a path to a POSIX path relative to the tracked root.

        Relative paths are taken to be relative to the root already.
        """
        root = self._repository.root
        path = Path(file_path)
        if not path.is_absolute():
            path = root / path
        try:
            relative = path.resolve().relative_to(root)
        except ValueError:
            raise ValueError(f"{file_path} is outside tracked root {root}") from None
        if not relative.parts:
            raise ValueError(f"{file_path} is the tracked root, not a file in it")
        return relative.as_posix()

    def notify_mutation(
        self, file_path: Union[str, Path], cause: Optional[str] = None
    ) -> Optional[str]:
        """Record that a tracked file was written.

        Inside a scope the path joins the active change set. Outside one the
        path is committed on its own, unless it has no net change.

        Returns:
            Hash of the commit created, or None if no commit was made
        """
        if self._repository is None:
            return None

        path = self.relative_path(file_path)
        logger.debug(" +%s", path)

        change_set = self._scopes.current_change_set()
        if change_set is not None:
            change_set.add(path)
            return None

        # Change happens outside a unit of work
        with self._lock, self._staging():
            self._repository.stage(path)
            if not self._repository.has_pending_changes():
                return None

            message = f"internally updated {path}\n{self.guess_cause(cause)}"
            sha = self._repository.commit(
                author=self.current_author(),
                committer=self._config.ghost,
                message=message,
            )
        logger.debug("> %s", sha)
        return sha

    def flush(self, message: str) -> Optional[str]:
        """Commit every path of the active change set as one commit.

        Returns:
            Hash of the commit created, or None if there was nothing to flush
        """
        if self._repository is None:
            return None

        change_set = self._scopes.current_change_set()
        if change_set is None or change_set.is_empty:
            return None

        with self._lock, self._staging():
            self._repository.stage(*change_set.paths)
            sha = self._repository.commit(
                author=self.current_author(),
                committer=self._config.ghost,
                message=message,
                allow_empty=True,
            )
        logger.debug("> %s", sha)
        return sha

    @contextlib.contextmanager
    def _staging(self) -> Iterator[None]:
        """Leave nothing staged behind if a stage or commit step fails."""
        try:
            yield
        except Exception:
            logger.warning("Commit failed, resetting index to HEAD")
            self._repository.unstage_all()
            raise

    def current_author(self) -> Identity:
        """Get the acting identity, defaulting to the ghost."""
        return self._identity_provider() or self._config.ghost

    def guess_cause(self, cause: Optional[str] = None) -> str:
        """Best-effort explanation for a change made outside any scope."""
        return cause or current_operation() or self._config.default_cause
