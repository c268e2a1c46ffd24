import logging

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile

from recruiter.core.limiter import limiter
from recruiter.dependencies import get_repository, get_resume_scorer, get_resume_store
from recruiter.schemas.application import AnalysisResponse, AnalyzeRequest, ResumeUploadResponse
from recruiter.services.persistence import RecruitingRepository
from recruiter.services.resume_ai import ResumeScorer, process_resume_analysis
from recruiter.services.storage import ResumeStore, validate_resume

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/resumes", response_model=ResumeUploadResponse, tags=["Resumes"])
@limiter.limit("10/minute")
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    store: ResumeStore = Depends(get_resume_store),
):
    content = await file.read()
    validate_resume(content, file.filename)
    url = store.upload_resume(content, file.filename)
    return ResumeUploadResponse(filename=store.filename_from_url(url), url=url)


@router.get("/resumes/{filename}", tags=["Resumes"])
def download_resume(filename: str, store: ResumeStore = Depends(get_resume_store)):
    content = store.download_resume(filename)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.post("/analyze-resume", response_model=AnalysisResponse, tags=["Resumes"])
@limiter.limit("10/minute")
def analyze_resume(
    request: Request,
    payload: AnalyzeRequest,
    repo: RecruitingRepository = Depends(get_repository),
    store: ResumeStore = Depends(get_resume_store),
    scorer: ResumeScorer = Depends(get_resume_scorer),
):
    """Score the application's resume against its job and decide interview eligibility."""
    return process_resume_analysis(repo, store, scorer, payload.application_id)
