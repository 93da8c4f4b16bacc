"""
Tests for the HTTP wire-contract clients

httpx.MockTransport plays the server.
"""

import json

import httpx
import pytest

from services.ai.dialogue import DialogueContext, DialogueState
from services.conversation import RemoteDialogueClient, RemoteExtractionClient


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRemoteExtraction:

    @pytest.mark.asyncio
    async def test_posts_contract_and_parses_result(self, name_email_fields):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "values": {"e1": "Jane Doe", "e2": ""},
                "missingFields": ["Email Address"],
                "filledCount": 1,
                "totalFields": 2,
                "isComplete": False,
            })

        client = RemoteExtractionClient("http://pebbles/", http_client=mock_client(handler))
        result = await client.extract("my name is Jane Doe", name_email_fields, {"e2": ""})
        await client.aclose()

        assert seen["path"] == "/analyze-form"
        assert seen["body"]["transcript"] == "my name is Jane Doe"
        assert seen["body"]["formFields"][1] == {"id": "e2", "label": "Email Address", "type": "email"}
        assert seen["body"]["existingValues"] == {"e2": ""}
        assert result.values == {"e1": "Jane Doe", "e2": ""}
        assert result.missing == ["Email Address"]
        assert result.strategy == "remote"
        assert result.filled_count == 1

    @pytest.mark.asyncio
    async def test_server_error_raises(self, name_email_fields):
        client = RemoteExtractionClient(
            "http://pebbles",
            http_client=mock_client(lambda request: httpx.Response(500)),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await client.extract("hi", name_email_fields)

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, name_email_fields):
        client = RemoteExtractionClient(
            "http://pebbles",
            http_client=mock_client(lambda request: httpx.Response(200, json={"values": {}})),
        )
        with pytest.raises(ValueError):
            await client.extract("hi", name_email_fields)


class TestRemoteDialogue:

    @pytest.mark.asyncio
    async def test_reply_from_server(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"reply": "Hey there!"})

        client = RemoteDialogueClient("http://pebbles", http_client=mock_client(handler))
        context = DialogueContext(form_title="Contact", field_labels=["Full Name"], missing_fields=["Full Name"])

        assert await client.respond(DialogueState.INTRO, context) == "Hey there!"
        assert seen["body"] == {
            "state": "INTRO",
            "context": {"formTitle": "Contact"},
            "fieldCount": 1,
            "fieldLabels": ["Full Name"],
            "missingFields": ["Full Name"],
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(503),
        httpx.Response(200, json={"reply": ""}),
        httpx.Response(200, text="not json"),
    ])
    async def test_falls_back_to_template(self, response):
        client = RemoteDialogueClient("http://pebbles", http_client=mock_client(lambda request: response))
        assert await client.respond("DONE") == "All done! Check it out."
