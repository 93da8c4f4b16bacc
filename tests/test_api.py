"""
HTTP API Tests

Run against the ASGI app with pattern extraction and reply templates.
"""

import pytest


class TestHealth:

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_components(self, client):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["completion_configured"] is False
        assert data["components"]["completion_circuit"]["state"] == "closed"
        assert data["components"]["tts_available"] is False

    @pytest.mark.asyncio
    async def test_health_reports_voice_services(self, client, monkeypatch):
        import core.dependencies as deps
        from services.voice import vosk

        monkeypatch.setattr(vosk, "VOSK_AVAILABLE", False)
        monkeypatch.setattr(deps, "_vosk_service", vosk.VoskService(sample_rate=16000))

        components = (await client.get("/health")).json()["components"]

        assert components["tts"] == {
            "available": False,
            "voice_id": "21m00Tcm4TlvDq8ikWAM",
            "model": "eleven_turbo_v2_5",
        }
        assert components["stt"] == {
            "available": False,
            "vosk_installed": False,
            "model_path": None,
            "sample_rate": 16000,
        }
        assert components["stt_loaded"] is False


class TestForms:

    @pytest.mark.asyncio
    async def test_list_forms(self, client):
        response = await client.get("/forms")
        assert response.status_code == 200
        titles = [form["title"] for form in response.json()]
        assert titles[:2] == ["Job Application", "Tech Event Registration"]

    @pytest.mark.asyncio
    async def test_get_form(self, client):
        response = await client.get("/forms/1")
        assert response.status_code == 200
        labels = [field["label"] for field in response.json()["fields"]]
        assert labels[0] == "Full Name"

    @pytest.mark.asyncio
    async def test_unknown_form(self, client):
        response = await client.get("/forms/99")
        assert response.status_code == 404
        assert response.json()["error"] == "FormNotFoundError"


class TestAnalyzeForm:

    FIELDS = [
        {"id": "e1", "label": "Full Name", "type": "text"},
        {"id": "e2", "label": "Email Address", "type": "email"},
    ]

    @pytest.mark.asyncio
    async def test_extracts_and_reports_missing(self, client):
        response = await client.post("/analyze-form", json={
            "formFields": self.FIELDS,
            "transcript": "my name is Jane Doe",
        })

        assert response.status_code == 200
        assert response.json() == {
            "values": {"e1": "Jane Doe", "e2": ""},
            "missingFields": ["Email Address"],
            "filledCount": 1,
            "totalFields": 2,
            "isComplete": False,
        }

    @pytest.mark.asyncio
    async def test_existing_values_kept(self, client):
        response = await client.post("/analyze-form", json={
            "formFields": self.FIELDS,
            "transcript": "it's jane@doe.com",
            "existingValues": {"e1": "Jane Doe"},
        })

        data = response.json()
        assert data["values"] == {"e1": "Jane Doe", "e2": "jane@doe.com"}
        assert data["isComplete"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"formFields": FIELDS},
        {"formFields": FIELDS, "transcript": "   "},
        {"transcript": "my name is Jane"},
    ])
    async def test_missing_data(self, client, body):
        response = await client.post("/analyze-form", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Missing data"}


class TestChat:

    @pytest.mark.asyncio
    async def test_template_reply(self, client):
        response = await client.post("/chat", json={
            "state": "ASK_MISSING",
            "context": {"formTitle": "Job Application"},
            "missingFields": ["Phone Number"],
        })

        assert response.status_code == 200
        assert response.json() == {"reply": "Still need: Phone Number. What are those?"}

    @pytest.mark.asyncio
    async def test_unknown_state(self, client):
        response = await client.post("/chat", json={"state": "NOPE"})
        assert response.json() == {"reply": "I'm ready."}
