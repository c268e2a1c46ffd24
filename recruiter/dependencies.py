"""
Service providers for FastAPI ``Depends``.

Every gateway the routers talk to is resolved here so tests can swap any of
them through ``app.dependency_overrides``.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from recruiter.database import SessionLocal, get_db
from recruiter.services.interview_ai import InterviewGateway
from recruiter.services.persistence import RecruitingRepository
from recruiter.services.resume_ai import ResumeScorer
from recruiter.services.scheduler import AsyncioScheduler, Scheduler
from recruiter.services.session_registry import SessionRegistry, session_registry
from recruiter.services.speech import SpeechGateway, get_speech_gateway as _speech_gateway
from recruiter.services.storage import ResumeStore


def get_repository(db: Session = Depends(get_db)) -> RecruitingRepository:
    return RecruitingRepository(db)


def get_resume_store() -> ResumeStore:
    return ResumeStore()


def get_resume_scorer() -> ResumeScorer:
    return ResumeScorer()


def get_interview_gateway() -> InterviewGateway:
    return InterviewGateway()


def get_speech_gateway() -> SpeechGateway:
    return _speech_gateway()


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_db_factory():
    """Sessions opened outside a request (interview results land after the request that started them)."""
    return SessionLocal


_scheduler = AsyncioScheduler()


def get_scheduler() -> Scheduler:
    return _scheduler
