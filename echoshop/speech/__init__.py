"""Speech service clients."""

from .clients import (
    ISpeechSynthesizer,
    ISpeechToText,
    SpeechResult,
    SpeechSynthesizer,
    SpeechToText,
    Transcription,
)

__all__ = [
    "ISpeechSynthesizer",
    "ISpeechToText",
    "SpeechResult",
    "SpeechSynthesizer",
    "SpeechToText",
    "Transcription",
]
