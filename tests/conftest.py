"""Root conftest — shared fixtures for membership tests."""

import logging
import os

import pytest

from tests.fakes import FakeChannel, FakeGuild, FakeRole, RecordingExecutor

# Ensure tests never pick up a real platform token
os.environ.setdefault("API_TOKEN", "test-token")


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def guild(executor):
    """Guild G holding the default role, R1, R3 and one voice channel."""
    return FakeGuild(
        id="G",
        roles={
            "G": FakeRole("G", "@everyone"),
            "R1": FakeRole("R1", "mods"),
            "R3": FakeRole("R3", "artists"),
        },
        channels={"V1": FakeChannel("V1", "General Voice")},
        executor=executor,
    )


@pytest.fixture
def snapshot():
    return {
        "user": {"id": "U1", "username": "alice"},
        "roles": ["R1", "R2"],
        "nick": "Al",
        "joined_at": "2021-01-01T00:00:00Z",
        "deaf": False,
        "mute": False,
    }


@pytest.fixture
def root_logger():
    """Restore root handlers and level after setup_logging mutates them."""
    handlers, level = list(logging.root.handlers), logging.root.level
    yield logging.root
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)
