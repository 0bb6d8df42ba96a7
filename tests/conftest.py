import os
from types import SimpleNamespace

import pytest

# Settings are read when app.py is imported
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['ADMIN_TOKEN'] = 'test-admin-token'
os.environ['SECRET_KEY'] = 'test-secret'
os.environ['MISTRAL_API_KEY'] = 'test-key'

import app as app_module  # noqa: E402
from llm_service import CompletionFetcher, LLMConfig  # noqa: E402
from models import db  # noqa: E402
from token_budget import get_tracker  # noqa: E402


SAMPLE_COMPLETION = """1) General Outlook:
AI will take over much of the documentation work in nursing, but bedside care stays human.

2) Potential Benefits and Risks:
Benefits:
- Less time on charting
- Earlier warning of patient deterioration
Risks:
- Pressure to cut staffing ratios

3) Steps to Adapt:
1. Learn the clinical decision support tools your hospital uses.
2. Build on **patient communication** skills.

4) Placard:
Nurses who pair compassion with AI tools will lead the next decade of care."""


def completion_response(content):
    message = SimpleNamespace(role='assistant', content=content)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeCompletions:
    def __init__(self, content=None, error=None, response=None, gate=None):
        self.content = content
        self.error = error
        self.response = response
        self.gate = gate
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return completion_response(self.content)


class FakeClient:
    """Stands in for openai.OpenAI: only chat.completions.create is used."""

    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def make_fetcher():
    def _make(content=SAMPLE_COMPLETION, api_key='test-key', timeout=5.0, **kwargs):
        client = FakeClient(content=content, **kwargs)
        config = LLMConfig(api_key=api_key, timeout=timeout)
        return CompletionFetcher(config, client=client)
    return _make


@pytest.fixture
def flask_app():
    with app_module.app.app_context():
        db.drop_all()
        db.create_all()
        yield app_module.app
        db.session.remove()


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture(autouse=True)
def reset_tracker():
    get_tracker().reset()
    yield
    get_tracker().reset()
