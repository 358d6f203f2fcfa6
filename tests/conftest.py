import textwrap
from pathlib import Path

import pytest

from tests.fakes import FakeClock, FakePlatform


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform(nicknames={"U1": "alice", "U2": "bob"})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def write_plugin(tmp_path):
    """Write a plugin source file under tmp_path and return its path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        return path

    return _write
