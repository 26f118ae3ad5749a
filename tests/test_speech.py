"""Tests for the speech clients."""

import json

import httpx
import pytest

from echoshop.speech import SpeechSynthesizer, SpeechToText

STT_URL = "https://stt.test/v1/audio/transcriptions"
TTS_URL = "https://tts.test/speak"


class TestSpeechToText:
    """Tests for SpeechToText.transcribe()."""

    @pytest.mark.asyncio
    async def test_transcribe(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.content
            return httpx.Response(
                200,
                json={"text": " order a pizza ", "segments": [{"avg_logprob": -0.2}]},
            )

        stt = SpeechToText(STT_URL, api_key="k", transport=httpx.MockTransport(handler))
        result = await stt.transcribe(b"RIFFdata")

        assert result.text == "order a pizza"
        assert result.confidence == -0.2
        assert result.processing_time >= 0
        assert seen["auth"] == "Bearer k"
        assert b"whisper-large-v3-turbo" in seen["body"]

    @pytest.mark.asyncio
    async def test_default_confidence(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"text": "hi"}))
        result = await SpeechToText(STT_URL, transport=transport).transcribe(b"x")
        assert result.confidence == 0.8

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(500, text="nope"))
        result = await SpeechToText(STT_URL, transport=transport).transcribe(b"x")

        assert result.text == ""
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_non_object_body_returns_empty(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=["unexpected"]))
        result = await SpeechToText(STT_URL, transport=transport).transcribe(b"x")

        assert result.text == ""
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_non_string_text_returns_empty(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"text": 42}))
        result = await SpeechToText(STT_URL, transport=transport).transcribe(b"x")

        assert result.text == ""
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_malformed_segments_keep_text(self):
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, json={"text": "hi", "segments": [1]})
        )
        result = await SpeechToText(STT_URL, transport=transport).transcribe(b"x")

        assert result.text == "hi"
        assert result.confidence == 0.8


class TestSpeechSynthesizer:
    """Tests for SpeechSynthesizer.synthesize()."""

    @pytest.mark.asyncio
    async def test_not_configured(self):
        result = await SpeechSynthesizer(None).synthesize("hello")
        assert not result.success
        assert result.error

    @pytest.mark.asyncio
    async def test_synthesize_uses_reported_duration(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"duration": 1234.0})

        tts = SpeechSynthesizer(TTS_URL, transport=httpx.MockTransport(handler))
        result = await tts.synthesize("hello", rate=1.2)

        assert result.success
        assert result.duration == 1234.0
        assert seen == {"text": "hello", "rate": 1.2, "pitch": 1.0, "volume": 0.8}

    @pytest.mark.asyncio
    async def test_audio_response_uses_elapsed_time(self):
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, content=b"\x00\x01", headers={"content-type": "audio/mpeg"})
        )
        result = await SpeechSynthesizer(TTS_URL, transport=transport).synthesize("hello")

        assert result.success
        assert result.duration >= 0

    @pytest.mark.asyncio
    async def test_failure(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(503))
        result = await SpeechSynthesizer(TTS_URL, transport=transport).synthesize("hello")

        assert not result.success
        assert result.duration == 0.0

    @pytest.mark.asyncio
    async def test_non_object_json_uses_elapsed_time(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=[1, 2]))
        result = await SpeechSynthesizer(TTS_URL, transport=transport).synthesize("hello")

        assert result.success
        assert result.duration >= 0
