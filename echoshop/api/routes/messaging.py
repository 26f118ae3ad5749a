"""Messaging API routes."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from ...app import Application


class MessageRequest(BaseModel):
    """Request model for sending an utterance."""

    user_id: str
    text: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """Response model for an utterance."""

    response: str
    intent: str | None = None
    entities: dict[str, Any] = {}
    stopped: bool = False


class SpeechResponse(BaseModel):
    success: bool
    duration: float
    error: str | None = None


class VoiceResponse(MessageResponse):
    """Response model for a recorded utterance."""

    transcript: str
    speech: SpeechResponse | None = None


def create_messaging_router(app: Application) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    @router.post("/messages", response_model=MessageResponse)
    async def send_message(request: MessageRequest) -> dict:
        """Run one utterance through the agent pipeline."""
        try:
            result = await app.coordinator.process_utterance(
                text=request.text, user_id=request.user_id
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {
            "response": result.response,
            "intent": result.intent,
            "entities": result.entities,
            "stopped": result.stopped,
        }

    @router.post("/voice", response_model=VoiceResponse)
    async def send_voice(
        audio: UploadFile = File(...),
        user_id: str = Form(...),
    ) -> dict:
        """Transcribe an uploaded recording, run the pipeline and speak the reply."""
        data = await audio.read()
        if not data:
            raise HTTPException(status_code=400, detail="Empty audio upload")

        try:
            voice = await app.coordinator.process_voice(data, user_id)
        except RuntimeError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        speech = voice.speech
        return {
            "transcript": voice.transcript,
            "response": voice.result.response,
            "intent": voice.result.intent,
            "entities": voice.result.entities,
            "stopped": voice.result.stopped,
            "speech": (
                {"success": speech.success, "duration": speech.duration, "error": speech.error}
                if speech
                else None
            ),
        }

    return router
