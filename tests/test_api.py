"""Tests for API routes."""
import io
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from plexify.agents.registry import AgentRegistry
from plexify.llm.executor import AnthropicExecutor
from plexify.llm.gateway import build_gateway
from plexify.models.schemas import DialogueTurn, PodcastScript
from plexify.services.documents import DocumentStore
from plexify.services.elevenlabs import ElevenLabsClient, PodcastAudio
from plexify.services.podcast_script import PodcastScriptService
from plexify.services.tts import AudioBriefingService


@pytest.fixture
def cfg(make_settings, demo_data_dir):
    return make_settings()


@pytest.fixture
def client(cfg):
    from plexify.main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        executor = AnthropicExecutor(cfg=cfg)
        app.state.document_store = DocumentStore(cfg, cache={})
        app.state.agent_registry = AgentRegistry(executor, cfg=cfg)
        app.state.gateway = build_gateway(executor, cfg)
        app.state.audio_briefing = AudioBriefingService(cfg)
        app.state.podcast_script = PodcastScriptService(executor, cfg=cfg)
        app.state.elevenlabs = ElevenLabsClient(cfg)
        yield test_client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["timestamp"].endswith("Z")
    assert "environment" in data


class TestAgents:
    def test_demo_envelope(self, client):
        response = client.post("/api/agents/board-brief", json={"projectId": "golden-triangle"})

        assert response.status_code == 200
        data = response.json()
        assert data["agentId"] == "board-brief"
        assert data["schemaVersion"] == "1.0"
        assert data["projectId"] == "golden-triangle"
        assert [s["id"] for s in data["sourcesUsed"]] == [
            "gt-annual-2024",
            "q3-assessment-collections",
            "board-minutes-oct-2024",
        ]
        assert data["output"]["title"] == "Board Brief (Demo)"

    def test_empty_body_uses_defaults(self, client):
        response = client.post("/api/agents/ozrf-section")

        assert response.status_code == 200
        assert response.json()["projectId"] == "golden-triangle"

    def test_empty_document_selection(self, client):
        response = client.post("/api/agents/board-brief", json={"documentIds": []})

        assert response.status_code == 400
        assert "select at least one document" in response.json()["error"]

    def test_malformed_document_index(self, client, cfg):
        district = Path(cfg.real_docs_dir) / "golden-triangle"
        district.mkdir(parents=True)
        (district / "index.json").write_text("not json", encoding="utf-8")

        response = client.post("/api/agents/board-brief", json={"documentIds": ["annual"]})

        assert response.status_code == 400
        assert "Malformed index.json for district 'golden-triangle'" in response.json()["error"]

    def test_unknown_agent(self, client):
        response = client.post("/api/agents/unknown-agent", json={})

        assert response.status_code == 404
        assert response.json() == {"error": "Unknown agent"}

    def test_invalid_body(self, client):
        response = client.post("/api/agents/board-brief", json={"documentIds": "not-a-list"})

        assert response.status_code == 400
        assert "error" in response.json()


class TestTTS:
    def test_missing_content(self, client):
        response = client.post("/api/tts/generate", json={"outputId": "brief"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing content"}

    def test_missing_output_id(self, client):
        response = client.post("/api/tts/generate", json={"content": {"title": "T", "sections": []}})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing outputId"}

    def test_key_not_configured(self, client):
        response = client.post(
            "/api/tts/generate", json={"content": {"title": "T", "sections": []}, "outputId": "brief"}
        )
        assert response.status_code == 500
        assert response.json() == {"error": "OpenAI API key not configured"}


class TestPodcast:
    def test_no_documents(self, client):
        response = client.post("/api/podcast/generate", json={"documentIds": []})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "No documents selected" in response.json()["error"]

    def test_elevenlabs_key_missing(self, client):
        response = client.post("/api/podcast/generate", json={"documentIds": ["annual"]})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "ElevenLabs API key not configured"}

    def test_success(self, client, make_settings):
        from plexify.main import app
        from plexify.services.documents import ExtractedDocument, LoadResult

        store = MagicMock()
        store.settings = make_settings()
        store.load_selected_documents = AsyncMock(
            return_value=LoadResult(
                documents=[
                    ExtractedDocument(
                        id="annual", filename="a.pdf", display_name="Annual", text="facts", page_count=1
                    )
                ]
            )
        )
        script = PodcastScript(
            title="Deep Dive",
            description="d",
            dialogue=[DialogueTurn(speaker="CASSIDY", text="Hello there")],
            word_count=2,
        )
        script_service = MagicMock()
        script_service.generate = AsyncMock(return_value=script)
        audio = MagicMock()
        audio.is_configured.return_value = True
        audio.generate_podcast_audio = AsyncMock(
            return_value=PodcastAudio(audio_url="/podcasts/podcast-gt-1.mp3", duration=0.8)
        )
        app.state.document_store = store
        app.state.podcast_script = script_service
        app.state.elevenlabs = audio

        response = client.post("/api/podcast/generate", json={"documentIds": ["annual"]})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "podcast": {
                "podcastUrl": "/podcasts/podcast-gt-1.mp3",
                "title": "Deep Dive",
                "duration": 0.8,
                "script": [{"speaker": "CASSIDY", "text": "Hello there"}],
            },
        }
        context = script_service.generate.call_args.args[0]
        assert context.startswith("--- SOURCE: Annual ---")

    def test_unexpected_failure_uses_podcast_shape(self, client):
        from plexify.main import app

        audio = MagicMock()
        audio.is_configured.return_value = True
        store = MagicMock()
        store.settings = app.state.document_store.settings
        store.load_selected_documents = AsyncMock(side_effect=RuntimeError("disk on fire"))
        app.state.elevenlabs = audio
        app.state.document_store = store

        response = client.post("/api/podcast/generate", json={"documentIds": ["annual"]})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "disk on fire"}


class TestExport:
    def test_no_content(self, client):
        response = client.post("/api/export/docx", json={"boardBrief": None, "editorContent": "  "})

        assert response.status_code == 400
        assert response.json() == {"error": "No content to export"}

    def test_docx_attachment(self, client):
        response = client.post(
            "/api/export/docx",
            json={
                "boardBrief": {"title": "Q3 Brief", "sections": [{"heading": "Highlights", "items": ["Up"]}]},
                "filename": "Q3 brief/final",
            },
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        )
        assert response.headers["content-disposition"] == 'attachment; filename="Q3-brief-final.docx"'
        assert zipfile.is_zipfile(io.BytesIO(response.content))


def test_provider_status(client):
    response = client.get("/api/system-status/providers")

    assert response.status_code == 200
    providers = response.json()["providers"]
    assert set(providers) == {"anthropic", "openai"}
    assert providers["anthropic"]["configured"] is False
