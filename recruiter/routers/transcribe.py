import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from recruiter.core.exceptions import ValidationError
from recruiter.core.limiter import limiter
from recruiter.dependencies import get_speech_gateway
from recruiter.services.speech import SpeechGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Speech"])


@router.post("/transcribe")
@limiter.limit("30/minute")
async def transcribe_audio(
    request: Request,
    audio: UploadFile = File(...),
    speech: SpeechGateway = Depends(get_speech_gateway),
):
    content = await audio.read()
    if not content:
        raise ValidationError("Audio file is required")
    transcription = await run_in_threadpool(speech.transcribe, content, audio.content_type or "")
    return {"transcription": transcription}
