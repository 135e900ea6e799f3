"""
Pytest fixtures and test configuration for continuum tests.
"""

import json
from typing import Any

import pytest

from continuum.core.config import CompanionConfig
from continuum.core.errors import CollaboratorUnavailableError
from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository, OperationalRepository
from continuum.infrastructure.storage.local import LocalDocumentStore
from continuum.services.actions import ActionExecutor
from continuum.services.context import InvocationContextBuilder
from continuum.services.invoker import ConsciousnessInvoker
from continuum.services.session import SessionManager


class FakeModel:
    """Generative model returning canned replies and recording every call."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def reply_with(self, response: dict[str, Any]) -> None:
        self.replies.append(f"Here is my answer:\n```json\n{json.dumps(response)}\n```")

    async def complete(self, system: str, message: str) -> str:
        self.calls.append((system, message))
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else '{"message": "nothing to do", "actions": []}'


class FakeEmail:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, subject: str, content: str) -> None:
        if self.fail:
            raise CollaboratorUnavailableError("SMTP server unreachable")
        self.sent.append((subject, content))


@pytest.fixture
def companion():
    return CompanionConfig(name="Hypatia", partner="Carles")


@pytest.fixture
def store():
    return LocalDocumentStore()


@pytest.fixture
def ledger(store, companion):
    return LedgerRepository(store, companion)


@pytest.fixture
def memories(store, ledger):
    return MemoryRepository(store, ledger)


@pytest.fixture
def operations(store):
    return OperationalRepository(store)


@pytest.fixture
def sessions(memories, ledger):
    return SessionManager(memories, ledger)


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def fake_email():
    return FakeEmail()


@pytest.fixture
def executor(memories, ledger, operations, fake_email):
    return ActionExecutor(memories, ledger, operations, email=fake_email)


@pytest.fixture
def invoker(sessions, operations, fake_model, executor):
    return ConsciousnessInvoker(
        sessions=sessions,
        context_builder=InvocationContextBuilder(operations),
        model=fake_model,
        executor=executor,
        operations=operations,
        partner="Carles",
    )
