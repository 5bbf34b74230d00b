"""Timemachine facade: one owned repository plus coordinator and reader."""

import contextlib
import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import git

from timemachine.config import TimeMachineConfig
from timemachine.core.coordinator import CommitCoordinator, IdentityProvider
from timemachine.core.history import HistoryReader
from timemachine.core.repository import ConfigRepository
from timemachine.core.scope import ChangeScopeRegistry
from timemachine.models.change_set import ChangeSet
from timemachine.models.commit import CommitView

logger = logging.getLogger(__name__)


class TimeMachine:
    """Tracks a configuration tree in a git repository rooted in it.

    Create one per process with :meth:`start`. If the repository cannot be
    opened the machine is disabled: mutation tracking becomes a no-op and
    the history is empty, but the host keeps running.
    """

    def __init__(
        self,
        root: Path,
        repository: Optional[ConfigRepository] = None,
        config: Optional[TimeMachineConfig] = None,
        identity_provider: Optional[IdentityProvider] = None,
    ):
        self.root = Path(root)
        self.config = config or TimeMachineConfig()
        self.repository = repository
        self.scopes = ChangeScopeRegistry()
        self.coordinator = CommitCoordinator(
            repository, self.scopes, self.config, identity_provider
        )
        self.history = HistoryReader(repository, self.config.history_limit)

    @classmethod
    def start(
        cls,
        root: Union[str, Path],
        config: Optional[TimeMachineConfig] = None,
        identity_provider: Optional[IdentityProvider] = None,
    ) -> "TimeMachine":
        """Open or initialize the repository in root and return a machine."""
        root = Path(root)
        if config is None:
            config = TimeMachineConfig.load(root) if root.is_dir() else TimeMachineConfig()

        try:
            repository = ConfigRepository.open_or_init(
                root, config.ghost, config.initial_message
            )
        except (git.exc.GitError, OSError) as e:
            logger.warning("Timemachine disabled, cannot open %s: %s", root, e)
            return cls(root, None, config, identity_provider)

        logger.info("Timemachine ready, using git repository %s", repository.root)
        return cls(repository.root, repository, config, identity_provider)

    @property
    def enabled(self) -> bool:
        return self.repository is not None

    # === Scope lifecycle ===

    def start_scope(self) -> ChangeSet:
        return self.scopes.start_scope()

    def end_scope(self) -> None:
        self.scopes.end_scope()

    def current_change_set(self) -> Optional[ChangeSet]:
        return self.scopes.current_change_set()

    @contextlib.contextmanager
    def change_scope(self, message: str) -> Iterator[ChangeSet]:
        """Batch mutations made inside the block into one commit.

        The commit is made only if the block exits normally; the scope is
        ended either way.
        """
        with self.scopes.scope() as change_set:
            yield change_set
            self.flush(message)

    # === Mutations ===

    def notify_mutation(
        self, file_path: Union[str, Path], cause: Optional[str] = None
    ) -> Optional[str]:
        return self.coordinator.notify_mutation(file_path, cause)

    def flush(self, message: str) -> Optional[str]:
        return self.coordinator.flush(message)

    # === History ===

    def get_history(self) -> Iterator[git.Commit]:
        return self.history.get_history()

    def get_commit(self, commit_id: str) -> CommitView:
        return self.history.get_commit(commit_id)
