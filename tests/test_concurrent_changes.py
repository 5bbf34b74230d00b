"""Tests for concurrent writers sharing one TimeMachine."""

import tempfile
import threading
from pathlib import Path

import pytest

from timemachine.core.machine import TimeMachine


@pytest.fixture
def machine():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield TimeMachine.start(Path(temp_dir))


def run_threads(targets):
    errors = []
    barrier = threading.Barrier(len(targets))

    def wrap(target):
        def run():
            barrier.wait()
            try:
                target()
            except Exception as e:  # surfaced through the errors list
                errors.append(e)

        return run

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


def test_solo_commits_do_not_interleave(machine):
    """Two writers outside any scope produce two separate commits."""
    names = ["jobs/a/config.xml", "jobs/b/config.xml"]
    for name in names:
        (machine.root / name).parent.mkdir(parents=True)

    def writer(name):
        def write():
            target = machine.root / name
            target.write_text(f"<project name='{name}'/>\n")
            machine.notify_mutation(target)

        return write

    errors = run_threads([writer(name) for name in names])

    assert errors == []
    commits = list(machine.get_history())[:2]
    assert len(list(machine.get_history())) == 3
    assert {c.message.splitlines()[0] for c in commits} == {
        f"internally updated {name}" for name in names
    }
    for commit in commits:
        path = commit.message.splitlines()[0].split(" ")[-1]
        assert set(commit.stats.files) == {path}


def test_scopes_in_threads_are_isolated(machine):
    """Each thread's scope collects only its own paths."""
    names = [f"jobs/job{i}/config.xml" for i in range(4)]
    for name in names:
        (machine.root / name).parent.mkdir(parents=True)

    def request(name):
        def handle():
            with machine.change_scope(f"Updated {name}"):
                target = machine.root / name
                target.write_text("<project/>\n")
                machine.notify_mutation(target)
                machine.notify_mutation(target)

        return handle

    errors = run_threads([request(name) for name in names])

    assert errors == []
    commits = list(machine.get_history())
    assert len(commits) == len(names) + 1
    for commit in commits[:-1]:
        name = commit.message[len("Updated "):]
        assert set(commit.stats.files) == {name}
