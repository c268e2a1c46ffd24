import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set

from starlette.concurrency import run_in_threadpool

from recruiter.core.config import settings
from recruiter.core.exceptions import AppException
from recruiter.schemas.interview import (
    Evaluation,
    EvaluationContext,
    FeedbackContext,
    InterviewSnapshot,
    QuestionContext,
)
from recruiter.services import interview_flow as flow
from recruiter.services.interview_ai import InterviewGateway
from recruiter.services.scheduler import Scheduler
from recruiter.services.speech import SpeechGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateContext:
    """What the interviewer knows about the candidate and the role."""
    job_title: str
    job_description: str
    resume_text: str


class InterviewSession:
    """
    Drives one candidate's interview.

    All state lives in an immutable ``FlowState``; this class only turns
    user requests, gateway results and timer ticks into events, and keeps
    the countdown and narration ticker in step with the state after every
    transition. Gateway calls are blocking and run in the threadpool, so
    transitions only ever happen on the event loop.
    """

    def __init__(
        self,
        application_id: int,
        context: CandidateContext,
        gateway: InterviewGateway,
        speech: SpeechGateway,
        scheduler: Scheduler,
        on_complete: Callable[[Evaluation], None],
        narration_enabled: Optional[bool] = None,
        feedback_enabled: Optional[bool] = None,
        answer_seconds: Optional[int] = None,
    ):
        self.application_id = application_id
        self.context = context
        self.gateway = gateway
        self.speech = speech
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.narration_enabled = (
            settings.interview.narration_enabled if narration_enabled is None else narration_enabled
        )
        self.feedback_enabled = (
            settings.interview.feedback_enabled if feedback_enabled is None else feedback_enabled
        )
        self.state = flow.FlowState(
            answer_seconds=answer_seconds or settings.interview.answer_seconds
        )
        self.narration_audio: Optional[bytes] = None
        self.transcription: Optional[str] = None
        # set by the registry so a finished interview can release its slot
        self.on_finished: Optional[Callable[["InterviewSession"], None]] = None

        self._started = False
        self._handles: Dict[str, object] = {}
        self._signatures: Dict[str, tuple] = {}
        self._tasks: Set[asyncio.Task] = set()

    # --- State & timers ---

    def dispatch(self, event) -> flow.FlowState:
        self.state = flow.transition(self.state, event)
        self._sync_timers()
        return self.state

    def _sync_timers(self) -> None:
        state = self.state
        countdown = None
        if state.phase == flow.Phase.awaiting_answer and state.timer_running and not state.narrating:
            countdown = (state.question_number,)
        self._rearm("countdown", countdown, 1.0, self._on_timer_tick)

        ticker = None
        if state.narrating and state.word_interval and state.highlight_index is not None:
            ticker = (state.question_number, state.word_interval)
        self._rearm("narration", ticker, state.word_interval, self._on_narration_tick)

    def _rearm(self, name: str, signature: Optional[tuple], interval, callback) -> None:
        if signature is not None and self._signatures.get(name) == signature:
            return
        self._cancel_handle(name)
        if signature is None:
            return
        self._handles[name] = self.scheduler.call_every(interval, callback)
        self._signatures[name] = signature

    def _cancel_handle(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        self._signatures.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _on_timer_tick(self) -> None:
        before = self.state.phase
        self.dispatch(flow.TimerTick())
        if before == flow.Phase.awaiting_answer and self.state.phase != before:
            logger.info(
                f"Answer time expired for application {self.application_id}; submitting",
                extra={"question_number": len(self.state.history)},
            )
            self._spawn(self._advance())

    def _on_narration_tick(self) -> None:
        self.dispatch(flow.NarrationTick())

    def _spawn(self, coro) -> asyncio.Task:
        task = self.scheduler.spawn(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # --- Gateway round trips ---

    async def _fetch_question(self) -> None:
        state = self.state
        ctx = QuestionContext(
            resume_text=self.context.resume_text,
            job_description=self.context.job_description,
            job_title=self.context.job_title,
            question_number=len(state.history) + 1,
            previous_qa=list(state.history),
        )
        try:
            text = await run_in_threadpool(self.gateway.next_question, ctx)
        except AppException as e:
            logger.error(f"Question {ctx.question_number} failed for application {self.application_id}: {e.message}")
            self.dispatch(flow.QuestionFailed(e.message))
            return

        self.dispatch(flow.QuestionReceived(text))
        if self.state.phase == flow.Phase.awaiting_answer:
            await self._prepare_narration(self.state.question_number, text)

    async def _prepare_narration(self, question_number: int, text: str) -> None:
        self.narration_audio = None
        if not (self.narration_enabled and self.speech.available):
            self.dispatch(flow.NarrationEnded("unavailable"))
            return
        try:
            audio = await run_in_threadpool(self.speech.synthesize, text)
        except AppException as e:
            logger.warning(f"Narration unavailable for question {question_number}: {e.message}")
            self.dispatch(flow.NarrationEnded("failed"))
            return
        if self.state.phase == flow.Phase.awaiting_answer and self.state.question_number == question_number:
            self.narration_audio = audio

    async def _advance(self) -> None:
        if self.state.phase == flow.Phase.submitting:
            if self.feedback_enabled:
                await self._fetch_feedback()
            await self._fetch_question()
        elif self.state.phase == flow.Phase.evaluating:
            await self._evaluate()

    async def _fetch_feedback(self) -> None:
        last = self.state.history[-1]
        ctx = FeedbackContext(
            question=last.question,
            answer=last.answer,
            resume_text=self.context.resume_text,
            job_description=self.context.job_description,
            question_number=len(self.state.history),
        )
        try:
            feedback = await run_in_threadpool(self.gateway.feedback, ctx)
        except AppException as e:
            logger.warning(f"Feedback skipped for question {ctx.question_number}: {e.message}")
            return
        self.dispatch(flow.FeedbackReceived(feedback))

    async def _evaluate(self) -> None:
        ctx = EvaluationContext(
            resume_text=self.context.resume_text,
            job_description=self.context.job_description,
            job_title=self.context.job_title,
            all_qa=list(self.state.history),
        )
        try:
            evaluation = await run_in_threadpool(self.gateway.evaluate, ctx)
        except AppException as e:
            logger.error(f"Evaluation failed for application {self.application_id}: {e.message}")
            self.dispatch(flow.EvaluationFailed(e.message))
            self._finish()
            return

        self.dispatch(flow.EvaluationReceived(evaluation))
        if self.state.phase != flow.Phase.complete:
            return

        try:
            await run_in_threadpool(self.on_complete, evaluation)
        except Exception:
            logger.exception(f"Could not persist interview result for application {self.application_id}")

        self.narration_audio = None
        if self.narration_enabled and self.speech.available:
            try:
                self.narration_audio = await run_in_threadpool(
                    self.speech.synthesize, self.state.closing_message
                )
            except AppException as e:
                logger.warning(f"Closing narration unavailable: {e.message}")
        self._finish()

    def _finish(self) -> None:
        if self.state.terminal and self.on_finished is not None:
            self.on_finished(self)

    # --- Public operations ---

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        logger.info(f"Interview started for application {self.application_id}")
        await self._fetch_question()

    async def submit(self) -> None:
        self.dispatch(flow.SubmitRequested())
        await self._advance()

    async def retry(self) -> None:
        self.dispatch(flow.RetryRequested())
        await self._fetch_question()

    def edit_answer(self, text: str) -> None:
        self.dispatch(flow.AnswerEdited(text))

    def append_transcript(self, text: str) -> None:
        self.dispatch(flow.TranscriptReceived(text))

    def start_recording(self) -> None:
        self.dispatch(flow.RecordingStarted())

    def stop_recording(self) -> None:
        self.dispatch(flow.RecordingStopped())

    async def transcribe(self, audio: bytes, mime_type: str) -> Optional[str]:
        """Release the microphone, transcribe the segment and append it to the answer."""
        question_number = self.state.question_number
        self.dispatch(flow.RecordingStopped())
        try:
            text = await run_in_threadpool(self.speech.transcribe, audio, mime_type)
        except AppException as e:
            logger.warning(f"Transcription failed for application {self.application_id}: {e.message}")
            return None
        if self.state.phase != flow.Phase.awaiting_answer or self.state.question_number != question_number:
            logger.info("Discarding transcript for a question that was already answered")
            return None
        self.dispatch(flow.TranscriptReceived(text))
        self.transcription = text
        return text

    def narration_started(self, duration_seconds: float) -> None:
        self.dispatch(flow.NarrationStarted(duration_seconds))

    def narration_ended(self, stopped: bool = False) -> None:
        self.dispatch(flow.NarrationEnded("stopped" if stopped else "finished"))

    def cancel(self) -> None:
        self.dispatch(flow.Cancelled())
        self.close()
        logger.info(f"Interview cancelled for application {self.application_id}")

    def close(self) -> None:
        for name in list(self._handles):
            self._cancel_handle(name)
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self.narration_audio = None

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def live(self) -> bool:
        return not self.state.terminal

    def snapshot(self) -> InterviewSnapshot:
        state = self.state
        return InterviewSnapshot(
            application_id=self.application_id,
            phase=state.phase.value,
            question_number=state.question_number,
            total_questions=state.total_questions,
            question=state.question,
            tokens=list(state.tokens),
            highlight_index=state.highlight_index,
            answer=state.answer,
            remaining_seconds=state.remaining,
            timer_running=state.timer_running,
            narrating=state.narrating,
            recording=state.recording,
            loading=state.loading,
            narration_available=self.narration_audio is not None,
            history=list(state.history),
            evaluation=state.evaluation,
            closing_message=state.closing_message,
            error=state.error,
            transcription=self.transcription,
        )
