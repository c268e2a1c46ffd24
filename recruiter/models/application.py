from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from recruiter.database import Base
from recruiter.core.exceptions import InvalidTransition

class InterviewStatus(str, enum.Enum):
    none = "none"
    eligible = "eligible"
    rejected = "rejected"
    completed = "completed"

# interview_status only ever moves forward
ALLOWED_STATUS_TRANSITIONS = {
    InterviewStatus.none: {InterviewStatus.eligible, InterviewStatus.rejected},
    InterviewStatus.eligible: {InterviewStatus.completed},
    InterviewStatus.rejected: {InterviewStatus.completed},
    InterviewStatus.completed: set(),
}

class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False)
    current_ctc = Column(String, nullable=False)
    expected_ctc = Column(String, nullable=False)
    resume_url = Column(String, nullable=False)
    resume_text = Column(Text, nullable=True)
    jd_match_score = Column(Float, nullable=True)
    analysis_result = Column(JSON, nullable=True)
    interview_status = Column(SQLEnum(InterviewStatus), default=InterviewStatus.none, nullable=False, index=True)
    interview_result = Column(Text, nullable=True)  # serialized Evaluation
    shortlisted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    job = relationship("Job", back_populates="applications")

    def advance_interview_status(self, new_status: InterviewStatus) -> None:
        current = self.interview_status or InterviewStatus.none
        if new_status not in ALLOWED_STATUS_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Interview status cannot move from '{current.value}' to '{new_status.value}'."
            )
        self.interview_status = new_status
