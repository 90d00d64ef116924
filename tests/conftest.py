"""Shared fixtures for interview-insights tests."""
from typing import Any, Callable

import pytest

from interview_insights.client import Completion


@pytest.fixture
def make_interview() -> Callable[..., dict[str, Any]]:
    """Factory for interview rows in the persisted (snake_case column) shape.

    Analysis items use the camelCase keys the analyzer produces.
    """
    def factory(
        interview_id: str,
        status: str = "completed",
        created_at: str = "2025-01-01T09:00:00+00:00",
        **columns: Any,
    ) -> dict[str, Any]:
        row = {
            "id": interview_id,
            "user_id": "user-1",
            "title": f"Interview {interview_id}",
            "transcript_text": f"Transcript of interview {interview_id}",
            "analysis_status": status,
            "created_at": created_at,
        }
        row.update(columns)
        return row

    return factory


class FakeClient:
    """Stands in for APIClient; returns canned text or raises."""

    def __init__(self, reply: str | Exception | Callable[[str], str]):
        self.reply = reply
        self.calls = 0

    async def call(self, prompt: str, system: str | None = None, semaphore=None, **kwargs) -> Completion:
        self.calls += 1
        reply = self.reply
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        return Completion(text=reply, input_tokens=120, output_tokens=80)


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeClient]:
    return FakeClient


@pytest.fixture
def transcript() -> str:
    return (
        "Interviewer: Walk me through how orders come in.\n"
        "Ops Manager: Sales emails us the order and we re-key it into NetSuite every morning."
    )
