"""
Tests for the coaching summary requester with a stubbed OpenAI client
"""

import asyncio
from types import SimpleNamespace

import coach
from models import CoachingStatus
from prompts import COACH_SYSTEM_PROMPT, NO_DATA_PROMPT

PROMPT_DATA = "--- USER PERFORMANCE DATA ---\nHabit: Floss\n  - Consistency: 90%\n\n"


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def install_client(monkeypatch, completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(coach, "get_client", lambda: client)


def test_summary_returned(monkeypatch):
    completions = FakeCompletions(content="  Great week! Keep flossing.  ")
    install_client(monkeypatch, completions)

    summary = asyncio.run(coach.get_coaching_summary(PROMPT_DATA))

    assert summary.status == CoachingStatus.OK
    assert summary.summary == "Great week! Keep flossing."
    assert summary.generatedAt is not None

    messages = completions.calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": COACH_SYSTEM_PROMPT}
    assert PROMPT_DATA in messages[1]["content"]
    assert completions.calls[0]["model"] == coach.COACH_MODEL


def test_service_error_is_unavailable(monkeypatch):
    install_client(monkeypatch, FakeCompletions(error=RuntimeError("service down")))

    summary = asyncio.run(coach.get_coaching_summary(PROMPT_DATA))

    assert summary.status == CoachingStatus.UNAVAILABLE
    assert summary.summary is None
    assert "service down" in summary.error


def test_empty_response_is_unavailable(monkeypatch):
    install_client(monkeypatch, FakeCompletions(content=""))

    summary = asyncio.run(coach.get_coaching_summary(PROMPT_DATA))

    assert summary.status == CoachingStatus.UNAVAILABLE


def test_no_data_skips_request(monkeypatch):
    completions = FakeCompletions(content="should not be used")
    install_client(monkeypatch, completions)

    summary = asyncio.run(coach.get_coaching_summary(NO_DATA_PROMPT))

    assert summary.status == CoachingStatus.NO_DATA
    assert completions.calls == []
