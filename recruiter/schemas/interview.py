from typing import List, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from recruiter.core.config import settings

class QAPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    feedback: Optional[str] = None

class Evaluation(BaseModel):
    """Final multi-axis interview evaluation; persisted with camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    overall_score: float = Field(alias="overallScore")
    technical_score: float = Field(alias="technicalScore")
    communication_score: float = Field(alias="communicationScore")
    culture_fit_score: float = Field(alias="cultureFitScore")
    decision: Literal["selected", "rejected"]
    feedback: str = ""
    next_steps: str = Field(default="", alias="nextSteps")

    @field_validator("overall_score", "technical_score", "communication_score", "culture_fit_score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))

    @field_validator("decision", mode="before")
    @classmethod
    def normalize_decision(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def selected(self) -> bool:
        return self.decision == "selected"

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

class QuestionContext(BaseModel):
    resume_text: str
    job_description: str
    job_title: str
    question_number: int
    previous_qa: List[QAPair] = Field(default_factory=list)

class FeedbackContext(BaseModel):
    question: str
    answer: str
    resume_text: str
    job_description: str
    question_number: int

class EvaluationContext(BaseModel):
    resume_text: str
    job_description: str
    job_title: str
    all_qa: List[QAPair]

# --- Stateless action dispatch (POST /interview) ---

class InterviewActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: int = Field(validation_alias=AliasChoices("applicationId", "application_id"))
    action: Literal["get-question", "provide-feedback", "evaluate"]
    question_number: Optional[int] = Field(
        default=None, ge=1, le=settings.interview.total_questions,
        validation_alias=AliasChoices("questionNumber", "question_number"),
    )
    previous_qa: List[QAPair] = Field(default_factory=list, validation_alias=AliasChoices("previousQA", "previous_qa"))
    all_qa: List[QAPair] = Field(default_factory=list, validation_alias=AliasChoices("allQA", "all_qa"))
    answer: Optional[str] = None
    current_question: Optional[str] = Field(default=None, validation_alias=AliasChoices("currentQuestion", "current_question"))

# --- Session endpoints ---

class AnswerText(BaseModel):
    text: str

class NarrationStart(BaseModel):
    duration_seconds: float = Field(..., ge=0)

class NarrationEnd(BaseModel):
    stopped: bool = False

class InterviewSnapshot(BaseModel):
    application_id: int
    phase: str
    question_number: int
    total_questions: int
    question: Optional[str] = None
    tokens: List[str] = Field(default_factory=list)
    highlight_index: Optional[int] = None
    answer: str = ""
    remaining_seconds: int
    timer_running: bool
    narrating: bool
    recording: bool
    loading: bool
    narration_available: bool = False
    history: List[QAPair] = Field(default_factory=list)
    evaluation: Optional[Evaluation] = None
    closing_message: Optional[str] = None
    error: Optional[str] = None
    transcription: Optional[str] = None
