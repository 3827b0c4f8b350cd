"""Shared fixtures for StepGate tests."""

from typing import Any, Optional

import pytest

from stepgate.classroom import MemoryStore
from stepgate.errors import ExecutionFailed, StorageUnavailable
from stepgate.schemas import ExecutionResult, Module


def section_for(kind: str) -> dict[str, Any]:
    """Smallest valid section payload for a type tag."""
    if kind == "exercise":
        return {"type": "exercise", "title": "Numeric", "answer": 4}
    if kind == "mcq":
        return {"type": "exercise", "exerciseType": "mcq", "options": ["a", "b", "c"], "correct": 2}
    if kind == "quiz":
        return {"type": "quiz", "question": "Q?", "options": ["a", "b"], "correct": 1}
    if kind == "exercise-code":
        return {"type": "exercise-code", "title": "Code"}
    if kind == "code":
        return {"type": "code", "title": "Sample", "code": "print(1)"}
    return {"type": kind, "title": kind.title(), "content": "<p>text</p>"}


def build_module(*kinds: Any, objectives: Optional[list[str]] = None, module_id: str = "m1") -> Module:
    content = [section_for(k) if isinstance(k, str) else k for k in kinds]
    return Module.model_validate({
        "id": module_id,
        "objectives": objectives or [],
        "content": content,
    })


@pytest.fixture
def make_module():
    return build_module


class FakeExecutor:
    """Scripted CodeExecutor."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        error: Optional[str] = None,
        value: Any = True,
        eval_error: Optional[str] = None,
    ):
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.value = value
        self.eval_error = eval_error
        self.sources: list[str] = []
        self.expressions: list[str] = []

    async def run(self, source: str) -> ExecutionResult:
        self.sources.append(source)
        if self.error:
            raise ExecutionFailed(self.error)
        return ExecutionResult(stdout=self.stdout, stderr=self.stderr)

    async def evaluate(self, expression: str) -> Any:
        self.expressions.append(expression)
        if self.eval_error:
            raise ExecutionFailed(self.eval_error)
        return self.value


@pytest.fixture
def fake_executor():
    return FakeExecutor


class FailingStore:
    """Store whose every call fails, like a full or blocked storage."""

    def get(self, key):
        raise StorageUnavailable("storage disabled")

    def set(self, key, value):
        raise StorageUnavailable("quota exceeded")

    def remove(self, key):
        raise StorageUnavailable("storage disabled")


@pytest.fixture
def failing_store():
    return FailingStore()


class ReadOnlyStore(MemoryStore):
    """Reads work, every write is refused."""

    def set(self, key, value):
        raise StorageUnavailable("attempt to write a readonly database")


class LockedStore(MemoryStore):
    """Existing data is there, but reads fail, like a database locked by another tab."""

    def get(self, key):
        raise StorageUnavailable("database is locked")


@pytest.fixture
def read_only_store():
    return ReadOnlyStore


@pytest.fixture
def locked_store():
    return LockedStore
