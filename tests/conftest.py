import pytest
import os
from contextlib import nullcontext
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "AdminPassword123!"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["AI_MAX_ATTEMPTS"] = "1"
os.environ["INTERVIEW_NARRATION"] = "false"
os.environ["TTS_API_KEY"] = "test-tts-key"

from recruiter.database import Base, get_db
from recruiter.main import app
from recruiter.dependencies import (
    get_db_factory,
    get_interview_gateway,
    get_resume_scorer,
    get_resume_store,
    get_scheduler,
    get_session_registry,
    get_speech_gateway,
)
from recruiter.core.exceptions import UpstreamUnavailable
from recruiter.models.application import InterviewStatus
from recruiter.schemas.application import ResumeScore
from recruiter.schemas.interview import Evaluation
from recruiter.services.persistence import RecruitingRepository
from recruiter.services.session_registry import SessionRegistry
from recruiter.services.speech import SpeechGateway
from recruiter.services.storage import ResumeStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_pdf() -> bytes:
    """Smallest well-formed one-page PDF, with a correct xref table."""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


def make_evaluation(decision="selected", overall=82, technical=78) -> Evaluation:
    return Evaluation.model_validate({
        "overallScore": overall,
        "technicalScore": technical,
        "communicationScore": 80,
        "cultureFitScore": 75,
        "decision": decision,
        "feedback": "Solid answers grounded in real project work.",
        "nextSteps": "Our team will be in touch within 2 business days.",
    })


# --- Fakes ---

class ManualHandle:
    def __init__(self, due, callback, interval=None):
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by the test: time only moves on advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_every(self, interval, callback):
        handle = ManualHandle(self.now + interval, callback, interval)
        self.handles.append(handle)
        return handle

    def spawn(self, coro):
        import asyncio
        return asyncio.get_running_loop().create_task(coro)

    def active(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self.active() if h.due <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = handle.due
            if handle.interval:
                handle.due += handle.interval
            else:
                handle.cancelled = True
            handle.callback()
        self.now = target
        self.handles = self.active()


class FakeInterviewGateway:
    def __init__(self, decision="selected", question_failures=0, fail_evaluation=False, fail_feedback=False):
        self.decision = decision
        self.question_failures = question_failures
        self.fail_evaluation = fail_evaluation
        self.fail_feedback = fail_feedback
        self.question_calls = []
        self.feedback_calls = []
        self.evaluate_calls = []

    def next_question(self, ctx):
        self.question_calls.append(ctx)
        if self.question_failures:
            self.question_failures -= 1
            raise UpstreamUnavailable("AI service is unreachable.")
        return f"Question {ctx.question_number}: tell me about your work with FastAPI?"

    def feedback(self, ctx):
        self.feedback_calls.append(ctx)
        if self.fail_feedback:
            raise UpstreamUnavailable("AI service is unreachable.")
        return f"Good point on question {ctx.question_number}."

    def evaluate(self, ctx):
        self.evaluate_calls.append(ctx)
        if self.fail_evaluation:
            raise UpstreamUnavailable("AI service completely unavailable.")
        return make_evaluation(self.decision)


class FakeSpeech(SpeechGateway):
    name = "fake"

    def __init__(self, available=True, transcripts=None, fail_synthesis=False, fail_transcription=False):
        self.enabled = available
        self.transcripts = list(transcripts or ["I built the billing API"])
        self.fail_synthesis = fail_synthesis
        self.fail_transcription = fail_transcription
        self.synthesized = []
        self.transcribed = []

    @property
    def available(self):
        return self.enabled

    def synthesize(self, text):
        from recruiter.core.exceptions import SpeechUnavailable
        self.synthesized.append(text)
        if self.fail_synthesis:
            raise SpeechUnavailable("Speech synthesis failed.")
        return b"ID3-fake-audio"

    def transcribe(self, audio, mime_type):
        from recruiter.core.exceptions import SpeechUnavailable
        self.transcribed.append((audio, mime_type))
        if self.fail_transcription:
            raise SpeechUnavailable("Failed to transcribe audio")
        return self.transcripts.pop(0)


class FakeScorer:
    def __init__(self, score=75.0, error=None):
        self.score = score
        self.error = error
        self.calls = []

    def score_resume(self, document, filename, job_description, job_title):
        self.calls.append((filename, job_title))
        if self.error:
            raise self.error
        return ResumeScore.model_validate({
            "matchScore": self.score,
            "extractedText": "Jane Doe\nBackend engineer. Python, FastAPI, PostgreSQL.",
            "summary": "Experienced backend engineer.",
            "strengths": ["Python", "API design"],
            "concerns": ["Limited frontend exposure"],
            "recommendation": "proceed" if self.score >= 60 else "reject",
        })


# --- Fixtures ---

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def repo(db_session):
    return RecruitingRepository(db_session)


@pytest.fixture
def store(tmp_path):
    return ResumeStore(bucket_dir=str(tmp_path / "resumes"), public_base_url="http://testserver", create_bucket=True)


@pytest.fixture
def scorer():
    return FakeScorer()


@pytest.fixture
def interview_gateway():
    return FakeInterviewGateway()


@pytest.fixture
def speech():
    return FakeSpeech(available=False)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def job(repo):
    return repo.create_job({
        "title": "Backend Engineer",
        "description": "Build and run Python APIs.",
        "requirements": "Python, FastAPI, SQL",
        "location": "Remote",
        "type": "Full-time",
        "salary_range": "100k-130k",
    })


@pytest.fixture
def application(repo, job, store):
    url = store.upload_resume(make_pdf(), "jane.pdf")
    return repo.create_application({
        "job_id": job.id,
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "current_ctc": "90000",
        "expected_ctc": "110000",
        "resume_url": url,
    })


@pytest.fixture
def eligible_application(repo, application):
    score = FakeScorer(75).score_resume(b"", "jane.pdf", "", "")
    repo.record_analysis(application, score, eligible=True)
    assert application.interview_status == InterviewStatus.eligible
    return application


@pytest.fixture(scope="function")
def client(db_session, store, scorer, interview_gateway, speech, scheduler, registry):
    """TestClient wired to the test database and fake gateways via dependency overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_factory] = lambda: (lambda: nullcontext(db_session))
    app.dependency_overrides[get_resume_store] = lambda: store
    app.dependency_overrides[get_resume_scorer] = lambda: scorer
    app.dependency_overrides[get_interview_gateway] = lambda: interview_gateway
    app.dependency_overrides[get_speech_gateway] = lambda: speech
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_session_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    registry.close_all()
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "AdminPassword123!"})
    assert response.status_code == 200
    return client


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def evaluation():
    return make_evaluation()
