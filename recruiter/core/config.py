import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    model_name: str = Field(default=os.getenv("AI_MODEL_NAME", "google/gemini-2.5-flash"))
    fallback_model: str = Field(default=os.getenv("AI_FALLBACK_MODEL", "google/gemini-2.0-flash-001"))
    kill_switch: bool = Field(default=os.getenv("AI_KILL_SWITCH", "false").lower() == "true")
    max_attempts: int = int(os.getenv("AI_MAX_ATTEMPTS", "3"))
    timeout_seconds: int = int(os.getenv("AI_TIMEOUT_SECONDS", "60"))

class SpeechSettings(BaseModel):
    # "hosted" synthesizes/transcribes on the server, "browser" leaves both to the client
    provider: str = os.getenv("SPEECH_PROVIDER", "hosted")
    tts_url: str = os.getenv("TTS_URL", "https://api.openai.com/v1/audio/speech")
    tts_api_key: Optional[str] = Field(default=os.getenv("TTS_API_KEY"))
    tts_model: str = os.getenv("TTS_MODEL", "gpt-4o-mini-tts")
    tts_voice: str = os.getenv("TTS_VOICE", "alloy")
    tts_format: str = os.getenv("TTS_FORMAT", "mp3")
    transcription_model: str = os.getenv("TRANSCRIPTION_MODEL", "google/gemini-2.5-flash")

class StorageSettings(BaseModel):
    resume_dir: str = os.getenv("RESUME_STORAGE_DIR", "./storage/resumes")
    create_bucket: bool = os.getenv("RESUME_STORAGE_CREATE", "true").lower() == "true"
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

class InterviewSettings(BaseModel):
    total_questions: int = 8
    answer_seconds: int = int(os.getenv("INTERVIEW_ANSWER_SECONDS", "180"))
    match_threshold: float = float(os.getenv("MATCH_THRESHOLD", "60"))
    narration_enabled: bool = os.getenv("INTERVIEW_NARRATION", "true").lower() == "true"
    feedback_enabled: bool = os.getenv("INTERVIEW_FEEDBACK", "true").lower() == "true"
    # final snapshots kept after a session is released
    finished_retention: int = int(os.getenv("INTERVIEW_FINISHED_RETENTION", "100"))

class Config(BaseModel):
    app_name: str = "AI Recruiter"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./recruiter.db")

    # Admin gate
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
    admin_password: Optional[str] = Field(default=os.getenv("ADMIN_PASSWORD"))
    admin_password_hash: Optional[str] = Field(default=os.getenv("ADMIN_PASSWORD_HASH"))
    admin_cookie_name: str = "admin_session"
    admin_session_days: int = 7

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    ai: AISettings = AISettings()
    speech: SpeechSettings = SpeechSettings()
    storage: StorageSettings = StorageSettings()
    interview: InterviewSettings = InterviewSettings()

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if not (settings.admin_password or settings.admin_password_hash):
        _critical_missing.append("ADMIN_PASSWORD or ADMIN_PASSWORD_HASH")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("Using insecure default SECRET_KEY, acceptable in development only.")
