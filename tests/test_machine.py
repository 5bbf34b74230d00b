"""Tests for TimeMachine startup and degraded mode."""

import tempfile
from pathlib import Path

import git
import pytest

from timemachine.config import TimeMachineConfig
from timemachine.core.machine import TimeMachine
from timemachine.core.repository import ConfigRepository
from timemachine.exceptions import CommitNotFoundError


@pytest.fixture
def temp_root():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir).resolve()


def test_start_initializes_repository(temp_root):
    machine = TimeMachine.start(temp_root)

    assert machine.enabled
    assert machine.root == temp_root
    assert (temp_root / ".git").exists()


def test_start_twice_keeps_history(temp_root):
    TimeMachine.start(temp_root)
    machine = TimeMachine.start(temp_root)

    assert len(list(machine.get_history())) == 1


def test_start_uses_config_from_root(temp_root):
    TimeMachineConfig(ghost_name="timemachine", initial_message="track config").save(
        temp_root
    )

    machine = TimeMachine.start(temp_root)

    root = list(machine.get_history())[-1]
    assert root.message == "track config"
    assert root.author.name == "timemachine"


def test_start_with_explicit_config(temp_root):
    machine = TimeMachine.start(temp_root, config=TimeMachineConfig(history_limit=2))
    for i in range(3):
        machine.repository.commit(
            machine.config.ghost, machine.config.ghost, f"c{i}", allow_empty=True
        )

    assert len(list(machine.get_history())) == 2


def test_start_failure_degrades_to_disabled(temp_root, monkeypatch):
    """A broken repository disables tracking instead of failing startup."""

    def broken(*args, **kwargs):
        raise git.exc.GitCommandError("init", 128)

    monkeypatch.setattr(ConfigRepository, "open_or_init", broken)

    machine = TimeMachine.start(temp_root)

    assert not machine.enabled
    (temp_root / "config.xml").write_text("<hudson/>\n")
    assert machine.notify_mutation(temp_root / "config.xml") is None
    machine.start_scope()
    assert machine.notify_mutation(temp_root / "config.xml") is None
    assert machine.flush("ignored") is None
    machine.end_scope()
    assert list(machine.get_history()) == []
    with pytest.raises(CommitNotFoundError):
        machine.get_commit("HEAD")
    assert not (temp_root / ".git").exists()


def test_start_failure_on_io_error(temp_root, monkeypatch):
    def broken(*args, **kwargs):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(ConfigRepository, "open_or_init", broken)

    assert not TimeMachine.start(temp_root).enabled


def test_invalid_config_propagates(temp_root):
    (temp_root / ".timemachine.json").write_text('{"history_limit": 0}')

    with pytest.raises(ValueError):
        TimeMachine.start(temp_root)
