from typing import List, Optional, Dict, Any
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime

from recruiter.models.application import InterviewStatus

class ApplicationCreate(BaseModel):
    job_id: int
    name: str
    email: EmailStr
    phone: str
    current_ctc: str
    expected_ctc: str
    resume_url: str

class ApplicationPatch(BaseModel):
    shortlisted: bool

class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    name: str
    email: str
    phone: str
    current_ctc: str
    expected_ctc: str
    resume_url: str
    resume_text: Optional[str] = None
    jd_match_score: Optional[float] = None
    interview_status: InterviewStatus
    interview_result: Optional[str] = None
    shortlisted: bool
    created_at: Optional[datetime] = None

class ResumeUploadResponse(BaseModel):
    filename: str
    url: str

class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: int = Field(alias="applicationId")

class AnalysisResponse(BaseModel):
    application_id: int
    match_score: float
    eligible: bool
    interview_status: InterviewStatus
    summary: str = ""
    strengths: List[str] = []
    concerns: List[str] = []
    recommendation: str = ""
    cached: bool = False
    resume_text: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

class ResumeScore(BaseModel):
    """Structured reply of the resume scoring model."""
    model_config = ConfigDict(populate_by_name=True)

    match_score: float = Field(validation_alias=AliasChoices("matchScore", "match_score"), serialization_alias="matchScore")
    extracted_text: str = Field(default="", validation_alias=AliasChoices("extractedText", "extracted_text"), serialization_alias="extractedText")
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list, validation_alias=AliasChoices("concerns", "gaps"))
    recommendation: str = ""

    @field_validator("match_score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))
