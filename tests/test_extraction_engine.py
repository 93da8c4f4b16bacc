"""
Unit Tests for the Extraction Engine

Strategy selection, merge policy and the completion invariants.
"""

import json

import pytest

from services.ai.extraction import (
    ExtractionEngine,
    GenerativeExtractor,
    PatternFallbackExtractor,
    merge_values,
)
from utils.exceptions import CompletionError, CompletionRateLimitError

from conftest import FakeCompletion


def generative_engine(*replies):
    completion = FakeCompletion(*replies)
    return ExtractionEngine(primary=GenerativeExtractor(completion)), completion


class TestMergePolicy:

    def test_empty_extracted_value_never_erases(self, name_email_fields):
        merged = merge_values(name_email_fields, {"e1": "John Smith"}, {"e1": "", "e2": "j@x.io"})
        assert merged == {"e1": "John Smith", "e2": "j@x.io"}

    def test_non_empty_value_overwrites(self, name_email_fields):
        merged = merge_values(name_email_fields, {"e1": "Jon"}, {"e1": "John"})
        assert merged["e1"] == "John"

    def test_keys_limited_to_schema(self, name_email_fields):
        merged = merge_values(name_email_fields, {"stale": "x"}, {"other": "y"})
        assert set(merged) == {"e1", "e2"}


class TestFallbackOnly:
    """No completion backend configured."""

    @pytest.mark.asyncio
    async def test_canonical_example(self, name_email_fields):
        engine = ExtractionEngine()
        result = await engine.extract(
            "my name is John Smith and my email is john at example dot com",
            name_email_fields,
            {},
        )
        assert result.values == {"e1": "John Smith", "e2": "john@example.com"}
        assert result.missing == []
        assert result.is_complete is True
        assert result.strategy == "fallback"

    @pytest.mark.asyncio
    async def test_partial_example(self, name_email_fields):
        result = await ExtractionEngine().extract("John Smith", name_email_fields, {})
        assert result.values == {"e1": "John Smith", "e2": ""}
        assert result.missing == ["Email Address"]
        assert result.is_complete is False
        assert result.filled_count == 1
        assert result.total_fields == 2

    @pytest.mark.asyncio
    async def test_idempotent_second_pass(self, job_form):
        """Feeding the result back as prior values changes nothing."""
        engine = ExtractionEngine()
        transcript = "my name is Ann Lee and my email is ann@lee.io"
        first = await engine.extract(transcript, job_form.fields, {})
        second = await engine.extract(transcript, job_form.fields, first.values)
        assert second.values == first.values
        assert second.missing == first.missing

    @pytest.mark.asyncio
    async def test_fallback_failure_keeps_prior_values(self, name_email_fields):
        """Even a broken fallback yields a well-formed result."""

        class Broken:
            name = "fallback"

            async def extract_values(self, transcript, fields, existing):
                raise RuntimeError("boom")

        engine = ExtractionEngine(fallback=Broken())
        result = await engine.extract("John Smith", name_email_fields, {"e2": "a@b.co"})
        assert result.values == {"e1": "", "e2": "a@b.co"}
        assert result.missing == ["Full Name"]
        assert result.is_complete is False


class TestGenerativeStrategy:

    @pytest.mark.asyncio
    async def test_fenced_json_is_parsed(self, name_email_fields):
        reply = '```json\n{"e1": "Jane Doe", "e2": "", "unknown": "x"}\n```'
        engine, completion = generative_engine(reply)

        result = await engine.extract("I'm Jane Doe", name_email_fields, {})

        assert result.strategy == "generative"
        assert result.values == {"e1": "Jane Doe", "e2": ""}
        assert result.missing == ["Email Address"]
        assert "I'm Jane Doe" in completion.prompts[0]
        assert '"e1": Full Name' in completion.prompts[0]

    @pytest.mark.asyncio
    async def test_chatter_around_json(self, name_email_fields):
        reply = 'Sure! Here it is: {"e1": "Jane Doe", "e2": "jane@doe.com"} Hope that helps {"e1": "x"}'
        engine, _ = generative_engine(reply)
        result = await engine.extract("...", name_email_fields, {})
        assert result.values == {"e1": "Jane Doe", "e2": "jane@doe.com"}
        assert result.is_complete is True

    @pytest.mark.asyncio
    async def test_numbers_become_strings(self):
        from core.schemas import FieldSpec, FieldType
        fields = [FieldSpec(id="r", label="Rating (1-5)", type=FieldType.NUMBER)]
        engine, _ = generative_engine(json.dumps({"r": 4}))
        result = await engine.extract("four", fields, {})
        assert result.values == {"r": "4"}

    @pytest.mark.asyncio
    async def test_monotonic_over_generative_blanks(self, name_email_fields):
        engine, _ = generative_engine('{"e1": "", "e2": "john@example.com"}')
        result = await engine.extract("my email is john@example.com", name_email_fields, {"e1": "John Smith"})
        assert result.values == {"e1": "John Smith", "e2": "john@example.com"}
        assert result.is_complete is True

    @pytest.mark.parametrize("reply", [
        "I could not find anything.",
        '{"e1": "Jane"',
        '["e1", "Jane"]',
        '{"e1": ["Jane"]}',
        CompletionError("backend down"),
        CompletionRateLimitError("429"),
    ])
    @pytest.mark.asyncio
    async def test_any_failure_falls_back(self, name_email_fields, reply):
        engine, _ = generative_engine(reply)
        result = await engine.extract(
            "my name is John Smith and my email is john at example dot com",
            name_email_fields,
            {},
        )
        assert result.strategy == "fallback"
        assert result.values == {"e1": "John Smith", "e2": "john@example.com"}

    @pytest.mark.asyncio
    async def test_completion_consistency(self, job_form):
        """is_complete is true exactly when nothing is missing."""
        all_values = {f.id: "x" for f in job_form.fields}
        engine, _ = generative_engine(json.dumps(all_values), json.dumps({}))

        full = await engine.extract("everything", job_form.fields, {})
        empty = await engine.extract("nothing", job_form.fields, {})

        assert full.is_complete and full.missing == []
        assert not empty.is_complete and empty.missing == job_form.labels

    @pytest.mark.asyncio
    async def test_to_response_wire_shape(self, name_email_fields):
        engine, _ = generative_engine('{"e1": "Jane Doe"}')
        body = (await engine.extract("Jane Doe", name_email_fields, {})).to_response()
        assert body == {
            "values": {"e1": "Jane Doe", "e2": ""},
            "missingFields": ["Email Address"],
            "filledCount": 1,
            "totalFields": 2,
            "isComplete": False,
        }


def test_fallback_is_default_strategy():
    assert isinstance(ExtractionEngine().fallback, PatternFallbackExtractor)
