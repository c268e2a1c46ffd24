import logging

from fastapi import APIRouter, Depends, File, Response, UploadFile

from recruiter.core.config import settings
from recruiter.core.exceptions import InvalidTransition, NotFound, ValidationError
from recruiter.dependencies import (
    get_db_factory,
    get_interview_gateway,
    get_repository,
    get_scheduler,
    get_session_registry,
    get_speech_gateway,
)
from recruiter.models.application import Application, InterviewStatus
from recruiter.schemas.interview import (
    AnswerText,
    EvaluationContext,
    FeedbackContext,
    InterviewActionRequest,
    InterviewSnapshot,
    NarrationEnd,
    NarrationStart,
    QuestionContext,
)
from recruiter.services.interview_ai import InterviewGateway
from recruiter.services.interview_session import CandidateContext, InterviewSession
from recruiter.services.persistence import RecruitingRepository
from recruiter.services.scheduler import Scheduler
from recruiter.services.session_registry import SessionRegistry
from recruiter.services.speech import SpeechGateway

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_eligible(application: Application) -> None:
    if application.interview_status != InterviewStatus.eligible:
        raise InvalidTransition(
            f"Application is not eligible for an interview (status: {application.interview_status.value})."
        )


def _candidate_context(application: Application) -> CandidateContext:
    return CandidateContext(
        job_title=application.job.title,
        job_description=application.job.prompt_description(),
        resume_text=application.resume_text or "",
    )


def _result_writer(application_id: int, db_factory):
    def persist(evaluation):
        with db_factory() as db:
            RecruitingRepository(db).complete_interview(application_id, evaluation)

    return persist


# --- Stateless action dispatch ---

@router.post("/interview", tags=["Interviews"])
def interview_action(
    payload: InterviewActionRequest,
    repo: RecruitingRepository = Depends(get_repository),
    gateway: InterviewGateway = Depends(get_interview_gateway),
):
    """
    One interview step per call; the client carries the history.

    - get-question: next question for ``questionNumber`` given ``previousQA``
    - provide-feedback: feedback on ``answer`` to ``currentQuestion``
    - evaluate: final evaluation of ``allQA``; the result is persisted
    """
    application = repo.get_application(payload.application_id)
    _require_eligible(application)
    context = _candidate_context(application)

    if payload.action == "get-question":
        question_number = payload.question_number or len(payload.previous_qa) + 1
        question = gateway.next_question(QuestionContext(
            resume_text=context.resume_text,
            job_description=context.job_description,
            job_title=context.job_title,
            question_number=question_number,
            previous_qa=payload.previous_qa,
        ))
        return {"question": question}

    if payload.action == "provide-feedback":
        if not payload.current_question or not (payload.answer or "").strip():
            raise ValidationError("currentQuestion and answer are required for feedback")
        feedback = gateway.feedback(FeedbackContext(
            question=payload.current_question,
            answer=payload.answer,
            resume_text=context.resume_text,
            job_description=context.job_description,
            question_number=payload.question_number or 1,
        ))
        return {"feedback": feedback}

    evaluation = gateway.evaluate(EvaluationContext(
        resume_text=context.resume_text,
        job_description=context.job_description,
        job_title=context.job_title,
        all_qa=payload.all_qa,
    ))
    repo.complete_interview(application.id, evaluation)
    return {"evaluation": evaluation.model_dump(by_alias=True)}


# --- Interview sessions ---

@router.post("/interviews/{application_id}/start", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def start_interview(
    application_id: int,
    repo: RecruitingRepository = Depends(get_repository),
    registry: SessionRegistry = Depends(get_session_registry),
    gateway: InterviewGateway = Depends(get_interview_gateway),
    speech: SpeechGateway = Depends(get_speech_gateway),
    scheduler: Scheduler = Depends(get_scheduler),
    db_factory=Depends(get_db_factory),
):
    existing = registry.find(application_id)
    if existing is not None and existing.live:
        return existing.snapshot()

    application = repo.get_application(application_id)
    _require_eligible(application)

    session = registry.add(InterviewSession(
        application_id=application_id,
        context=_candidate_context(application),
        gateway=gateway,
        speech=speech,
        scheduler=scheduler,
        on_complete=_result_writer(application_id, db_factory),
    ))
    await session.start()
    return session.snapshot()


@router.get("/interviews/{application_id}", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def get_interview_state(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    return registry.snapshot(application_id)


@router.put("/interviews/{application_id}/answer", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def edit_answer(application_id: int, body: AnswerText, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.edit_answer(body.text)
    return session.snapshot()


@router.post("/interviews/{application_id}/transcript", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def append_transcript(application_id: int, body: AnswerText, registry: SessionRegistry = Depends(get_session_registry)):
    """Browser speech recognition results, appended to the answer."""
    session = registry.get(application_id)
    session.append_transcript(body.text)
    return session.snapshot()


@router.post("/interviews/{application_id}/recording/start", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def start_recording(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.start_recording()
    return session.snapshot()


@router.post("/interviews/{application_id}/recording/stop", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def stop_recording(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.stop_recording()
    return session.snapshot()


@router.post("/interviews/{application_id}/audio", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def upload_answer_audio(
    application_id: int,
    audio: UploadFile = File(...),
    registry: SessionRegistry = Depends(get_session_registry),
):
    session = registry.get(application_id)
    content = await audio.read()
    if not content:
        raise ValidationError("Audio file is required")
    await session.transcribe(content, audio.content_type or "")
    return session.snapshot()


@router.get("/interviews/{application_id}/narration", tags=["Interview Sessions"])
async def get_narration_audio(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    audio = registry.narration_audio(application_id)
    if audio is None:
        raise NotFound("No narration audio available")
    return Response(content=audio, media_type=f"audio/{settings.speech.tts_format}")


@router.post("/interviews/{application_id}/narration/start", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def narration_started(application_id: int, body: NarrationStart, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.narration_started(body.duration_seconds)
    return session.snapshot()


@router.post("/interviews/{application_id}/narration/end", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def narration_ended(application_id: int, body: NarrationEnd, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.narration_ended(stopped=body.stopped)
    return session.snapshot()


@router.post("/interviews/{application_id}/submit", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def submit_answer(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    await session.submit()
    return session.snapshot()


@router.post("/interviews/{application_id}/retry", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def retry_question(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    await session.retry()
    return session.snapshot()


@router.post("/interviews/{application_id}/cancel", response_model=InterviewSnapshot, tags=["Interview Sessions"])
async def cancel_interview(application_id: int, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(application_id)
    session.cancel()
    snapshot = session.snapshot()
    registry.discard(application_id)
    return snapshot
