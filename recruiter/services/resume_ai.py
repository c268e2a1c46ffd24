import base64
import logging
import mimetypes
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from recruiter.core import prompts
from recruiter.core.config import settings
from recruiter.core.exceptions import AnalysisFailed, MalformedResponse, UpstreamRejected, UpstreamUnavailable
from recruiter.models.application import InterviewStatus
from recruiter.schemas.application import AnalysisResponse, ResumeScore
from recruiter.services.ai_orchestrator import AIDomain, AIOrchestrator
from recruiter.services.persistence import RecruitingRepository
from recruiter.services.storage import ResumeStore

logger = logging.getLogger(__name__)


def admit(score: float, threshold: Optional[float] = None) -> bool:
    """Pre-interview gate: a candidate may interview iff the match score reaches the threshold."""
    if threshold is None:
        threshold = settings.interview.match_threshold
    return score >= threshold


class ResumeScorer:
    """AI Scoring Gateway: sends the resume document and the job to the model, parses the score."""

    def score_resume(
        self,
        document: bytes,
        filename: str,
        job_description: str,
        job_title: str,
    ) -> ResumeScore:
        logger.info(f"Scoring resume '{filename}' for '{job_title}'")
        mime_type = mimetypes.guess_type(filename)[0] or "application/pdf"
        encoded = base64.b64encode(document).decode()

        prompt = prompts.get_prompt(
            prompts.RESUME_MATCH_TEMPLATE,
            job_title=job_title,
            job_description=job_description,
        )
        content = [
            {"type": "text", "text": prompt},
            {
                "type": "file",
                "file": {
                    "filename": filename,
                    "file_data": f"data:{mime_type};base64,{encoded}",
                },
            },
        ]

        # single attempt: a failed analysis is reported, never silently retried
        data = AIOrchestrator.complete_json(
            content, temperature=0.2, domain=AIDomain.RESUME, retries=False
        )
        try:
            return ResumeScore.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Scoring reply missing fields: {e.errors()}")
            raise MalformedResponse("AI scoring response is missing required fields.")


def _to_response(application, cached: bool) -> AnalysisResponse:
    analysis = application.analysis_result or {}
    score = application.jd_match_score or 0.0
    return AnalysisResponse(
        application_id=application.id,
        match_score=score,
        eligible=admit(score),
        interview_status=application.interview_status,
        summary=analysis.get("summary", ""),
        strengths=analysis.get("strengths", []),
        concerns=analysis.get("concerns", []),
        recommendation=analysis.get("recommendation", ""),
        cached=cached,
        resume_text=application.resume_text,
        raw=analysis or None,
    )


def process_resume_analysis(
    repo: RecruitingRepository,
    store: ResumeStore,
    scorer: ResumeScorer,
    application_id: int,
) -> AnalysisResponse:
    """
    Score an application's resume against its job and gate it for interview.

    An application that was already scored is answered from the stored
    analysis; the status only ever moves forward. Gateway failures surface as
    AnalysisFailed and leave the status at ``none``.
    """
    application = repo.get_application(application_id)
    if application.interview_status != InterviewStatus.none:
        logger.info(f"Application {application_id} already analyzed; serving stored result")
        return _to_response(application, cached=True)

    job = application.job
    resume_name = store.filename_from_url(application.resume_url)
    document = store.download_resume(resume_name)

    try:
        score = scorer.score_resume(document, resume_name, job.prompt_description(), job.title)
    except (UpstreamUnavailable, UpstreamRejected, MalformedResponse) as e:
        logger.error(f"Analysis failed for application {application_id}: {e.message}")
        raise AnalysisFailed(e)
    eligible = admit(score.match_score)

    # a concurrent request may have recorded its analysis while the model was working
    application = repo.lock_application(application_id)
    if application.interview_status != InterviewStatus.none:
        logger.warning(f"Application {application_id} was analyzed concurrently; keeping the recorded result")
        return _to_response(application, cached=True)
    application = repo.record_analysis(application, score, eligible)

    logger.info(
        f"Analysis completed for application {application_id}",
        extra={"match_score": score.match_score, "eligible": eligible},
    )
    return _to_response(application, cached=False)
