import json
import logging
from typing import Any, Dict, List, Optional

from recruiter.core.exceptions import NotFound, ValidationError
from recruiter.models.application import Application, InterviewStatus
from recruiter.models.job import Job, JobType
from recruiter.schemas.application import ResumeScore
from recruiter.schemas.interview import Evaluation
from recruiter.services.base import BaseService

logger = logging.getLogger(__name__)

REQUIRED_JOB_FIELDS = ("title", "description")
REQUIRED_APPLICATION_FIELDS = (
    "job_id", "name", "email", "phone", "current_ctc", "expected_ctc", "resume_url",
)


def _missing(fields: Dict[str, Any], required) -> List[str]:
    return [name for name in required if not str(fields.get(name) or "").strip()]


class RecruitingRepository(BaseService):
    """CRUD over jobs and applications. Every write is a single-row update, last writer wins."""

    # --- Jobs ---

    def list_jobs(self) -> List[Job]:
        return self.db.query(Job).order_by(Job.created_at.desc(), Job.id.desc()).all()

    def get_job(self, job_id: int) -> Job:
        job = self.db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found")
        return job

    def create_job(self, fields: Dict[str, Any]) -> Job:
        missing = _missing(fields, REQUIRED_JOB_FIELDS)
        if missing:
            raise ValidationError("Missing required job fields", details={"missing": missing})
        try:
            job_type = JobType(fields.get("type") or JobType.full_time)
        except ValueError:
            raise ValidationError(
                "Invalid job type", details={"allowed": [t.value for t in JobType]}
            )

        job = Job(
            title=fields["title"].strip(),
            description=fields["description"].strip(),
            requirements=fields.get("requirements") or "",
            location=fields.get("location") or "",
            type=job_type,
            salary_range=fields.get("salary_range") or "",
        )
        self.db.add(job)
        self.commit()
        self.db.refresh(job)
        logger.info(f"Created job {job.id}", extra={"title": job.title})
        return job

    def delete_job(self, job_id: int) -> None:
        job = self.get_job(job_id)
        # applications go with the job (cascade on the relationship)
        self.db.delete(job)
        self.commit()
        logger.info(f"Deleted job {job_id}")

    # --- Applications ---

    def list_applications(self, job_id: Optional[int] = None) -> List[Application]:
        query = self.db.query(Application)
        if job_id is not None:
            query = query.filter(Application.job_id == job_id)
        return query.order_by(Application.created_at.desc(), Application.id.desc()).all()

    def get_application(self, application_id: int) -> Application:
        application = self.db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFound("Application not found")
        return application

    def lock_application(self, application_id: int) -> Application:
        """Fresh read of the row, locked until commit where the backend supports FOR UPDATE."""
        application = (
            self.db.query(Application)
            .filter(Application.id == application_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not application:
            raise NotFound("Application not found")
        return application

    def create_application(self, fields: Dict[str, Any]) -> Application:
        missing = _missing(fields, REQUIRED_APPLICATION_FIELDS)
        if missing:
            raise ValidationError("All fields are required", details={"missing": missing})
        self.get_job(int(fields["job_id"]))

        application = Application(
            job_id=int(fields["job_id"]),
            name=fields["name"].strip(),
            email=str(fields["email"]).strip(),
            phone=fields["phone"].strip(),
            current_ctc=str(fields["current_ctc"]).strip(),
            expected_ctc=str(fields["expected_ctc"]).strip(),
            resume_url=fields["resume_url"].strip(),
            interview_status=InterviewStatus.none,
            shortlisted=False,
        )
        self.db.add(application)
        self.commit()
        self.db.refresh(application)
        logger.info(f"Created application {application.id} for job {application.job_id}")
        return application

    def patch_application(self, application_id: int, shortlisted: Optional[bool] = None) -> Application:
        application = self.get_application(application_id)
        if shortlisted is not None:
            application.shortlisted = shortlisted
        self.commit()
        self.db.refresh(application)
        return application

    def record_analysis(self, application: Application, score: ResumeScore, eligible: bool) -> Application:
        application.advance_interview_status(
            InterviewStatus.eligible if eligible else InterviewStatus.rejected
        )
        application.resume_text = score.extracted_text or "PDF content"
        application.jd_match_score = score.match_score
        application.analysis_result = score.model_dump(by_alias=True)
        self.commit()
        self.db.refresh(application)
        return application

    def complete_interview(self, application_id: int, evaluation: Evaluation) -> Application:
        application = self.get_application(application_id)
        application.advance_interview_status(InterviewStatus.completed)
        application.interview_result = evaluation.to_json()
        application.shortlisted = evaluation.selected
        self.commit()
        self.db.refresh(application)
        logger.info(
            f"Interview completed for application {application_id}",
            extra={"decision": evaluation.decision, "overall_score": evaluation.overall_score},
        )
        return application

    @staticmethod
    def stored_evaluation(application: Application) -> Optional[Evaluation]:
        if not application.interview_result:
            return None
        return Evaluation.model_validate(json.loads(application.interview_result))
