from fastapi import APIRouter
from recruiter.routers import applications, auth, interview, jobs, resume, transcribe

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(jobs.router, tags=["Jobs"])
api_router.include_router(applications.router, tags=["Applications"])
api_router.include_router(resume.router)
api_router.include_router(interview.router)
api_router.include_router(transcribe.router)
