"""Exceptions raised by Timemachine."""


class TimeMachineError(Exception):
    """Base class for Timemachine errors."""


class CommitNotFoundError(TimeMachineError, LookupError):
    """A commit reference does not resolve to a commit."""

    def __init__(self, commit_ref: str):
        super().__init__(f"Commit not found: {commit_ref}")
        self.commit_ref = commit_ref


class NothingToCommitError(TimeMachineError):
    """A non-empty commit was requested but nothing is staged."""
