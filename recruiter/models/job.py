from sqlalchemy import Column, Integer, String, Text, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from recruiter.database import Base

class JobType(str, enum.Enum):
    full_time = "Full-time"
    part_time = "Part-time"
    contract = "Contract"
    internship = "Internship"

class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, default="")
    location = Column(String, default="")
    type = Column(
        SQLEnum(JobType, values_callable=lambda e: [m.value for m in e]),
        default=JobType.full_time,
        nullable=False,
    )
    salary_range = Column(String, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    applications = relationship(
        "Application", back_populates="job", cascade="all, delete-orphan"
    )

    def prompt_description(self) -> str:
        """Description plus requirements, as handed to the model."""
        if self.requirements:
            return f"{self.description}\n\nRequirements:\n{self.requirements}"
        return self.description
