"""
Pytest configuration and fixtures for SuperAgent tests.
"""

import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

# Add the repository root to path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from superagent.errors import ProviderRejectedError  # noqa: E402
from superagent.memory import MemoryStore, Message  # noqa: E402
from superagent.providers import BaseProvider, StaticProvider  # noqa: E402
from superagent.tools import create_default_registry  # noqa: E402


class FailingProvider(BaseProvider):
    """Provider whose chat always fails. Counts calls."""

    def __init__(self, name: str = "failing", error: Exception | None = None):
        super().__init__(name)
        self.error = error or ProviderRejectedError("backend exploded", name, status_code=500)
        self.chat_calls = 0

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def is_running(self) -> bool:
        return True

    async def chat(self, messages: Sequence[Message]) -> str:
        self.chat_calls += 1
        raise self.error


@pytest.fixture
def fixed_text():
    """Deterministic provider reply."""
    return "Draft the release notes"


@pytest.fixture
def static_provider(fixed_text):
    """Provider returning fixed_text for any input."""
    return StaticProvider("local", response=fixed_text)


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture
def memory():
    return MemoryStore()


@pytest.fixture
def tools():
    return create_default_registry()
