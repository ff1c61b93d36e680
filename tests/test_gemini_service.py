"""
AI tutoring feedback tests (Gemini model replaced by a fake)
"""
import asyncio
import pytest
from types import SimpleNamespace

from sqlquest.services.gemini_service import (
    GeminiService,
    UNAVAILABLE_FEEDBACK,
    ERROR_FEEDBACK,
)

SCHEMA = "CREATE TABLE employees (id INTEGER, department TEXT);"
QUERY = "SELECT * FROM employees"
ACTUAL = [{"id": 1, "department": "Engineering"}, {"id": 2, "department": "HR"}]
EXPECTED = [{"id": 1, "department": "Engineering"}]


class FakeModel:
    def __init__(self, text="Your query is missing a WHERE clause.", exc=None, delay=0.0):
        self.text = text
        self.exc = exc
        self.delay = delay
        self.calls = []

    async def generate_content_async(self, contents, generation_config=None):
        self.calls.append({"contents": contents, "generation_config": generation_config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc:
            raise self.exc
        return SimpleNamespace(text=self.text)


class BlockedResponse:
    @property
    def text(self):
        raise ValueError("response was blocked")


class BlockedModel:
    async def generate_content_async(self, contents, generation_config=None):
        return BlockedResponse()


@pytest.mark.asyncio
async def test_without_api_key_returns_notice():
    service = GeminiService(api_key=None)

    assert service.available is False
    assert await service.explain(QUERY, ACTUAL, EXPECTED, SCHEMA) == UNAVAILABLE_FEEDBACK
    assert await service.explain_error(QUERY, "no such column: x") == UNAVAILABLE_FEEDBACK


@pytest.mark.asyncio
async def test_prompt_carries_schema_query_and_results():
    model = FakeModel()
    service = GeminiService(api_key="test-key", model=model)

    feedback = await service.explain(QUERY, ACTUAL, EXPECTED, SCHEMA)

    assert feedback == "Your query is missing a WHERE clause."
    call = model.calls[0]
    message = call["contents"][0]
    assert message["role"] == "user"
    prompt = message["parts"][0]
    assert SCHEMA in prompt
    assert QUERY in prompt
    assert '"department": "HR"' in prompt
    assert "without giving the full solution" in prompt
    assert "under 300 words" in prompt
    assert call["generation_config"].max_output_tokens == service.max_output_tokens
    assert call["generation_config"].temperature == service.temperature


@pytest.mark.asyncio
async def test_serialized_results_are_pretty_printed():
    model = FakeModel()
    service = GeminiService(api_key="test-key", model=model)

    await service.explain(QUERY, '[{"id": 1}]', '[{"id": 2}]', SCHEMA)

    prompt = model.calls[0]["contents"][0]["parts"][0]
    assert '"id": 1' in prompt
    assert '"id": 2' in prompt


@pytest.mark.asyncio
async def test_api_failure_falls_back():
    service = GeminiService(api_key="test-key", model=FakeModel(exc=RuntimeError("quota exceeded")))

    assert await service.explain(QUERY, ACTUAL, EXPECTED, SCHEMA) == ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_hung_call_falls_back():
    service = GeminiService(api_key="test-key", model=FakeModel(delay=5.0))
    service.timeout_seconds = 0.05

    assert await service.explain(QUERY, ACTUAL, EXPECTED, SCHEMA) == ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_blocked_or_empty_completion_falls_back():
    blocked = GeminiService(api_key="test-key", model=BlockedModel())
    empty = GeminiService(api_key="test-key", model=FakeModel(text="   "))

    assert await blocked.explain(QUERY, ACTUAL, EXPECTED, SCHEMA) == ERROR_FEEDBACK
    assert await empty.explain(QUERY, ACTUAL, EXPECTED, SCHEMA) == ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_explain_error_includes_database_error():
    model = FakeModel(text="The column does not exist.")
    service = GeminiService(api_key="test-key", model=model)

    feedback = await service.explain_error("SELECT nickname FROM employees", "no such column: nickname", SCHEMA)

    assert feedback == "The column does not exist."
    prompt = model.calls[0]["contents"][0]["parts"][0]
    assert "no such column: nickname" in prompt
    assert SCHEMA in prompt
