from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from recruiter.models.job import JobType

class JobBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    requirements: str = ""
    location: str = ""
    type: JobType = JobType.full_time
    salary_range: str = ""

class JobCreate(JobBase):
    pass

class JobResponse(JobBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
