import logging
from typing import List

from fastapi import APIRouter, Depends, status

from recruiter.dependencies import get_repository
from recruiter.routers.auth_deps import require_admin
from recruiter.schemas.job import JobCreate, JobResponse
from recruiter.services.persistence import RecruitingRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"]
)


@router.get("", response_model=List[JobResponse])
def list_jobs(repo: RecruitingRepository = Depends(get_repository)):
    """Public job board, newest first."""
    return repo.list_jobs()


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, repo: RecruitingRepository = Depends(get_repository)):
    return repo.get_job(job_id)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    job_in: JobCreate,
    repo: RecruitingRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    job = repo.create_job(job_in.model_dump())
    logger.info(f"Job {job.id} created by {admin}")
    return job


@router.delete("/{job_id}")
def delete_job(
    job_id: int,
    repo: RecruitingRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    """Delete a job posting together with its applications."""
    repo.delete_job(job_id)
    logger.info(f"Job {job_id} deleted by {admin}")
    return {"success": True}
