"""HTTP clients for speech-to-text and text-to-speech.

Both clients report failure through their return value and never raise
into the pipeline.
"""

import time
from dataclasses import dataclass
from typing import Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Transcription:
    text: str
    processing_time: float  # ms
    confidence: float


@dataclass
class SpeechResult:
    success: bool
    duration: float  # ms of spoken audio
    error: str | None = None


class ISpeechToText(Protocol):
    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> Transcription:
        """Audio bytes to text."""
        ...


class ISpeechSynthesizer(Protocol):
    async def synthesize(
        self, text: str, rate: float = 0.9, pitch: float = 1.0, volume: float = 0.8
    ) -> SpeechResult:
        """Speak text."""
        ...


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _parse_transcription(result: object) -> tuple[str, float]:
    """(text, confidence) from a verbose_json body; ValueError on a malformed body."""
    if not isinstance(result, dict):
        raise ValueError(f"transcription body is {type(result).__name__}, not an object")
    text = result.get("text") or ""
    if not isinstance(text, str):
        raise ValueError("transcription text is not a string")

    confidence = 0.8
    segments = result.get("segments")
    if isinstance(segments, list) and segments and isinstance(segments[0], dict):
        logprob = segments[0].get("avg_logprob")
        if isinstance(logprob, (int, float)) and not isinstance(logprob, bool):
            confidence = float(logprob)
    return text.strip(), confidence


class SpeechToText:
    """OpenAI-compatible /audio/transcriptions client."""

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        model: str = "whisper-large-v3-turbo",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> Transcription:
        started = time.perf_counter()
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url,
                    headers=headers,
                    files={"file": (filename, audio, "audio/wav")},
                    data={
                        "model": self._model,
                        "language": "en",
                        "response_format": "verbose_json",
                    },
                )
                response.raise_for_status()
                text, confidence = _parse_transcription(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Audio transcription failed: %s", e)
            return Transcription(text="", processing_time=_elapsed_ms(started), confidence=0.0)

        return Transcription(
            text=text,
            processing_time=_elapsed_ms(started),
            confidence=confidence,
        )


class SpeechSynthesizer:
    """Client for a JSON text-to-speech endpoint."""

    def __init__(
        self,
        url: str | None,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def synthesize(
        self, text: str, rate: float = 0.9, pitch: float = 1.0, volume: float = 0.8
    ) -> SpeechResult:
        if not self._url:
            return SpeechResult(success=False, duration=0.0, error="Text-to-speech not configured")

        started = time.perf_counter()
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url,
                    headers=headers,
                    json={"text": text, "rate": rate, "pitch": pitch, "volume": volume},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Speech synthesis failed: %s", e)
            return SpeechResult(success=False, duration=0.0, error=str(e))

        duration = _elapsed_ms(started)
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                body = response.json()
                if isinstance(body, dict):
                    duration = float(body.get("duration", duration))
            except (ValueError, TypeError):
                logger.debug("TTS response carried no usable duration")

        return SpeechResult(success=True, duration=duration)
