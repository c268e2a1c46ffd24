import logging
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, Optional

from recruiter.core.config import settings
from recruiter.core.exceptions import InvalidTransition, NotFound
from recruiter.schemas.interview import InterviewSnapshot
from recruiter.services.interview_session import InterviewSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinishedInterview:
    """What is left of a session once it completed or failed."""
    snapshot: InterviewSnapshot
    closing_audio: Optional[bytes] = None


class SessionRegistry:
    """
    In-memory interview sessions keyed by application id.

    At most one live session per application. A session that completes or
    fails is released straight away; only its final snapshot is kept, for
    the most recent ``max_finished`` interviews, so clients can still read
    the outcome. The closing narration is handed out once and then dropped.
    """

    def __init__(self, max_finished: Optional[int] = None):
        self._sessions: Dict[int, InterviewSession] = {}
        self._finished: "OrderedDict[int, FinishedInterview]" = OrderedDict()
        self.max_finished = settings.interview.finished_retention if max_finished is None else max_finished

    def find(self, application_id: int) -> Optional[InterviewSession]:
        return self._sessions.get(application_id)

    def get(self, application_id: int) -> InterviewSession:
        session = self.find(application_id)
        if session is not None:
            return session
        if application_id in self._finished:
            raise InvalidTransition("This interview has already finished.")
        raise NotFound("No interview session for this application")

    def add(self, session: InterviewSession) -> InterviewSession:
        """Register ``session`` unless a live one exists for the same application; return the one in use."""
        existing = self.find(session.application_id)
        if existing is not None:
            if existing.live:
                return existing
            existing.close()
        self._finished.pop(session.application_id, None)
        session.on_finished = self._release
        self._sessions[session.application_id] = session
        return session

    def _release(self, session: InterviewSession) -> None:
        if self._sessions.get(session.application_id) is not session:
            return
        del self._sessions[session.application_id]
        self._finished[session.application_id] = FinishedInterview(
            snapshot=session.snapshot(),
            closing_audio=session.narration_audio,
        )
        while len(self._finished) > self.max_finished:
            self._finished.popitem(last=False)
        logger.info(f"Released interview session for application {session.application_id} ({session.state.phase.value})")

    def snapshot(self, application_id: int) -> InterviewSnapshot:
        session = self.find(application_id)
        if session is not None:
            return session.snapshot()
        finished = self._finished.get(application_id)
        if finished is None:
            raise NotFound("No interview session for this application")
        return finished.snapshot

    def narration_audio(self, application_id: int) -> Optional[bytes]:
        session = self.find(application_id)
        if session is not None:
            return session.narration_audio
        finished = self._finished.get(application_id)
        if finished is None:
            raise NotFound("No interview session for this application")
        if finished.closing_audio is not None:
            self._finished[application_id] = replace(
                finished,
                snapshot=finished.snapshot.model_copy(update={"narration_available": False}),
                closing_audio=None,
            )
        return finished.closing_audio

    def discard(self, application_id: int) -> None:
        self._finished.pop(application_id, None)
        session = self._sessions.pop(application_id, None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        count = len(self._sessions)
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        self._finished.clear()
        if count:
            logger.info(f"Closed {count} interview session(s)")

    def __len__(self) -> int:
        """Number of interviews still in progress."""
        return sum(1 for session in self._sessions.values() if session.live)


session_registry = SessionRegistry()
