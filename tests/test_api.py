"""Tests for the HTTP API."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from echoshop.api import create_fastapi_app
from echoshop.app import Application
from echoshop.config import Settings
from echoshop.models import TaskType
from echoshop.pipeline import STOP_RESPONSE
from echoshop.pipeline.coordinator import NOT_HEARD_RESPONSE
from echoshop.speech import SpeechResult, Transcription


@pytest.fixture
def sim():
    s = Mock()
    s.start = AsyncMock()
    s.stop = AsyncMock()
    return s


@pytest.fixture
def application(mock_llm):
    return Application(db_path=":memory:", settings=Settings(), llm_provider=mock_llm)


@pytest.fixture
def client(application, sim):
    app = create_fastapi_app(application, sim)
    with TestClient(app) as c:
        yield c


class TestMessagesRoute:
    """Tests for POST /api/messages."""

    def test_send_message(self, client):
        resp = client.post("/api/messages", json={"user_id": "1", "text": "Find me Italian restaurants"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["response"] == "Test response"
        assert data["intent"] == "search"
        assert data["stopped"] is False

    def test_stop(self, client):
        data = client.post("/api/messages", json={"user_id": "1", "text": "stop"}).json()
        assert data["response"] == STOP_RESPONSE
        assert data["stopped"] is True

    def test_empty_text_rejected(self, client):
        resp = client.post("/api/messages", json={"user_id": "1", "text": ""})
        assert resp.status_code == 422


class TestVoiceRoute:
    """Tests for POST /api/voice."""

    @pytest.fixture
    def transcriber(self):
        stt = Mock()
        stt.transcribe = AsyncMock(
            return_value=Transcription(text="find pizza", processing_time=10.0, confidence=0.9)
        )
        return stt

    @pytest.fixture
    def synthesizer(self):
        tts = Mock()
        tts.synthesize = AsyncMock(return_value=SpeechResult(success=True, duration=640.0))
        return tts

    @pytest.fixture
    def voice_app(self, mock_llm, transcriber, synthesizer):
        return Application(
            db_path=":memory:",
            settings=Settings(),
            llm_provider=mock_llm,
            transcriber=transcriber,
            synthesizer=synthesizer,
        )

    @pytest.fixture
    def voice_client(self, voice_app, sim):
        with TestClient(create_fastapi_app(voice_app, sim)) as c:
            yield c

    def _upload(self, client, audio=b"RIFF....WAVE", user_id="1"):
        return client.post(
            "/api/voice",
            files={"audio": ("clip.wav", audio, "audio/wav")},
            data={"user_id": user_id},
        )

    def test_voice_round_trip(self, voice_client, transcriber, synthesizer):
        resp = self._upload(voice_client)

        assert resp.status_code == 200
        data = resp.json()
        assert data["transcript"] == "find pizza"
        assert data["response"] == "Test response"
        assert data["intent"] == "search"
        assert data["stopped"] is False
        assert data["speech"] == {"success": True, "duration": 640.0, "error": None}
        transcriber.transcribe.assert_awaited_once_with(b"RIFF....WAVE")
        synthesizer.synthesize.assert_awaited_once_with("Test response")

    def test_voice_runs_voice_input_stage(self, voice_client, voice_app):
        self._upload(voice_client)

        types = [t.type for t in voice_app.task_manager.tasks()]
        assert types[0] is TaskType.VOICE_INPUT
        assert TaskType.RESPONSE_GENERATION in types

    def test_nothing_heard(self, voice_client, transcriber, synthesizer):
        transcriber.transcribe.return_value = Transcription(
            text="", processing_time=5.0, confidence=0.0
        )

        data = self._upload(voice_client).json()

        assert data["transcript"] == ""
        assert data["response"] == NOT_HEARD_RESPONSE
        assert data["speech"] is None
        synthesizer.synthesize.assert_not_awaited()

    def test_spoken_stop(self, voice_client, transcriber):
        transcriber.transcribe.return_value = Transcription(
            text="stop listening", processing_time=5.0, confidence=0.9
        )

        data = self._upload(voice_client).json()

        assert data["response"] == STOP_RESPONSE
        assert data["stopped"] is True

    def test_empty_upload_rejected(self, voice_client, transcriber):
        assert self._upload(voice_client, audio=b"").status_code == 400
        transcriber.transcribe.assert_not_awaited()

    def test_missing_user_id_rejected(self, voice_client):
        resp = voice_client.post(
            "/api/voice", files={"audio": ("clip.wav", b"RIFF", "audio/wav")}
        )
        assert resp.status_code == 422

    def test_speech_not_configured(self, voice_client, voice_app):
        failing = AsyncMock(side_effect=RuntimeError("Speech-to-text is not configured"))
        with patch.object(voice_app.coordinator, "process_voice", failing):
            resp = self._upload(voice_client)

        assert resp.status_code == 503


class TestStatusRoutes:
    """Tests for /api/status/*."""

    def test_system_status(self, client):
        data = client.get("/api/status/system").json()
        assert data == {
            "active_agents": 7,
            "pending_tasks": 0,
            "in_flight_tasks": 0,
            "total_messages": 0,
        }

    def test_agents(self, client):
        agents = client.get("/api/status/agents").json()
        assert len(agents) == 7
        assert agents[0]["id"] == "voice-input"
        assert agents[0]["current_task"] is None
        assert agents[0]["mailbox_size"] == 0

    def test_tasks_after_message(self, client):
        client.post("/api/messages", json={"user_id": "1", "text": "Find me Italian restaurants"})

        tasks = client.get("/api/status/tasks").json()
        assert [t["type"] for t in tasks] == [
            "INTENT_CLASSIFICATION",
            "PROFILE_UPDATE",
            "RESTAURANT_SEARCH",
            "RECOMMENDATION_GENERATION",
            "RESPONSE_GENERATION",
        ]
        assert all(t["status"] == "COMPLETED" for t in tasks)
        assert all(t["completed_at"] for t in tasks)


class TestKnowledgeRoutes:
    """Tests for profile, cart and graph routes."""

    def test_profile(self, client):
        data = client.get("/api/users/1/profile").json()
        assert data["name"] == "Sarah Johnson"
        assert data["order_count"] == 0

    def test_unknown_profile(self, client):
        assert client.get("/api/users/ghost/profile").status_code == 404

    def test_recommendations(self, client):
        recs = client.get("/api/users/1/recommendations").json()
        assert [r["name"] for r in recs] == ["Tony's Italian", "Fresh & Green"]
        assert recs[0]["score"] == pytest.approx(5.3)

    def test_order_and_checkout(self, client):
        client.post("/api/messages", json={"user_id": "2", "text": "I want a pizza"})

        cart = client.get("/api/users/2/cart").json()
        assert [i["name"] for i in cart["items"]] == ["Margherita Pizza"]
        assert cart["total"] == pytest.approx(18.99)

        profile = client.post("/api/users/2/checkout").json()
        assert profile["last_order"] == "Margherita Pizza from Tony's Italian"
        assert profile["order_count"] == 1
        assert client.get("/api/users/2/cart").json()["items"] == []

    def test_checkout_empty_cart(self, client):
        assert client.post("/api/users/1/checkout").status_code == 400

    def test_unknown_user_cart_is_not_kept(self, client, application):
        cart = client.get("/api/users/visitor/cart").json()

        assert cart == {"items": [], "total": 0.0}
        assert "visitor" not in application.carts._carts

    def test_graph(self, client):
        stats = client.get("/api/graph/stats").json()
        graph = client.get("/api/graph").json()

        assert stats["users"] == 3
        assert len(graph["nodes"]) == stats["nodes"]
        assert len(graph["relationships"]) == stats["relationships"]
        assert any(n["type"] == "User" for n in graph["nodes"])


class TestObservabilityRoutes:
    def test_trace_events(self, client):
        client.post("/api/messages", json={"user_id": "1", "text": "hello"})

        events = client.get("/api/trace-events", params={"event_type": "pipeline_completed"}).json()
        assert len(events) == 1
        assert events[0]["actor"] == "pipeline"

    def test_invalid_after(self, client):
        assert client.get("/api/trace-events", params={"after": "yesterday"}).status_code == 400


class TestControlRoutes:
    def test_reset(self, client):
        client.post("/api/messages", json={"user_id": "1", "text": "hello"})

        assert client.post("/api/control/reset").json() == {"status": "ok"}
        assert client.get("/api/status/tasks").json() == []
        assert client.get("/api/trace-events").json() == []

    def test_sim_start_stop(self, client, sim):
        assert client.post("/api/control/sim/start").status_code == 200
        assert client.post("/api/control/sim/stop").status_code == 200
        sim.start.assert_awaited_once()
        sim.stop.assert_awaited_once()

    def test_sim_not_configured(self, application):
        with TestClient(create_fastapi_app(application)) as c:
            assert c.post("/api/control/sim/start").status_code == 404


class TestAgentMessagesRoute:
    def test_agent_messages(self, client):
        client.post("/api/messages", json={"user_id": "1", "text": "find pasta"})

        messages = client.get("/api/agent-messages", params={"recipient": "discovery"}).json()
        assert len(messages) == 1
        assert messages[0]["kind"] == "TASK_REQUEST"
        assert messages[0]["payload"]["task_type"] == "RESTAURANT_SEARCH"
