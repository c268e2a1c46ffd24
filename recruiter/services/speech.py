import base64
import logging

import requests

from recruiter.core import prompts
from recruiter.core.config import settings
from recruiter.core.exceptions import AppException, SpeechUnavailable, ValidationError
from recruiter.services.ai_orchestrator import AIDomain, AIOrchestrator

logger = logging.getLogger(__name__)

# input_audio accepts a short format name, not a full mime type
AUDIO_FORMATS = {
    "mpeg": "mp3",
    "mp3": "mp3",
    "wav": "wav",
    "x-wav": "wav",
    "wave": "wav",
    "webm": "webm",
    "ogg": "ogg",
    "mp4": "mp4",
    "m4a": "m4a",
    "x-m4a": "m4a",
    "flac": "flac",
    "aac": "aac",
}


def audio_format(mime_type: str) -> str:
    subtype = (mime_type or "").split(";")[0].split("/")[-1].strip().lower()
    fmt = AUDIO_FORMATS.get(subtype)
    if not fmt:
        raise ValidationError(f"Unsupported audio type: {mime_type or 'unknown'}")
    return fmt


class SpeechGateway:
    """Speech I/O Gateway. Transports decide where synthesis and recognition happen."""

    name = "base"

    @property
    def available(self) -> bool:
        return False

    def synthesize(self, text: str) -> bytes:
        raise NotImplementedError

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        raise NotImplementedError


class HostedSpeechGateway(SpeechGateway):
    """
    Server-mediated speech.

    Synthesis goes to an OpenAI-compatible ``/audio/speech`` endpoint and
    returns encoded audio. Transcription sends the recording to the
    multimodal chat model as an ``input_audio`` part.
    """

    name = "hosted"

    @property
    def available(self) -> bool:
        return bool(settings.speech.tts_api_key)

    def synthesize(self, text: str) -> bytes:
        if not text or not text.strip():
            raise ValidationError("Nothing to synthesize")
        if not self.available:
            raise SpeechUnavailable("Speech synthesis is not configured.")

        try:
            response = requests.post(
                settings.speech.tts_url,
                headers={
                    "Authorization": f"Bearer {settings.speech.tts_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": settings.speech.tts_model,
                    "voice": settings.speech.tts_voice,
                    "input": text,
                    "response_format": settings.speech.tts_format,
                },
                timeout=settings.ai.timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Speech synthesis failed: {e}")
            raise SpeechUnavailable("Speech synthesis failed.")

        if not response.content:
            raise SpeechUnavailable("Speech synthesis returned no audio.")
        return response.content

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        if not audio:
            raise ValidationError("Audio file is required")
        fmt = audio_format(mime_type)
        content = [
            {"type": "text", "text": prompts.TRANSCRIPTION_INSTRUCTION},
            {
                "type": "input_audio",
                "input_audio": {"data": base64.b64encode(audio).decode(), "format": fmt},
            },
        ]
        try:
            text = AIOrchestrator.complete_text(
                content,
                temperature=0.0,
                domain=AIDomain.TRANSCRIPTION,
                model_name=settings.speech.transcription_model,
            )
        except AppException as e:
            logger.error(f"Transcription failed: {e.message}")
            raise SpeechUnavailable("Failed to transcribe audio")
        if not text:
            raise SpeechUnavailable("Transcription returned no text.")
        return text


class BrowserSpeechGateway(SpeechGateway):
    """Speech stays in the browser; the server only ever receives transcripts as text."""

    name = "browser"

    def synthesize(self, text: str) -> bytes:
        raise SpeechUnavailable("Speech synthesis is handled by the browser.")

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        raise SpeechUnavailable("Speech recognition is handled by the browser.")


def get_speech_gateway() -> SpeechGateway:
    if settings.speech.provider == "browser":
        return BrowserSpeechGateway()
    return HostedSpeechGateway()
