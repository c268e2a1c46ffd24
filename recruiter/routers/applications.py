import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from recruiter.core.limiter import limiter
from recruiter.dependencies import get_repository
from recruiter.routers.auth_deps import require_admin
from recruiter.schemas.application import ApplicationCreate, ApplicationPatch, ApplicationResponse
from recruiter.services.persistence import RecruitingRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/applications",
    tags=["Applications"]
)


@router.get("", response_model=List[ApplicationResponse])
def list_applications(
    job_id: Optional[int] = Query(None),
    repo: RecruitingRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    return repo.list_applications(job_id=job_id)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def create_application(
    request: Request,
    application_in: ApplicationCreate,
    repo: RecruitingRepository = Depends(get_repository),
):
    return repo.create_application(application_in.model_dump())


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, repo: RecruitingRepository = Depends(get_repository)):
    return repo.get_application(application_id)


@router.patch("/{application_id}", response_model=ApplicationResponse)
def patch_application(
    application_id: int,
    update: ApplicationPatch,
    repo: RecruitingRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    """Admin shortlist toggle."""
    application = repo.patch_application(application_id, shortlisted=update.shortlisted)
    logger.info(f"Application {application_id} shortlisted={update.shortlisted} by {admin}")
    return application
