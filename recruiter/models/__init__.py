# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import job, application

# Explicit class exports for cleaner imports
from .job import Job, JobType
from .application import Application, InterviewStatus

__all__ = [
    "Job",
    "JobType",
    "Application",
    "InterviewStatus",
]
