"""
Interview flow as a value plus a pure transition function.

``transition(state, event)`` never performs I/O and never mutates ``state``;
the session driver owns timers, gateway calls and persistence and feeds the
outcomes back in as events.

Two kinds of events exist:

- user events (submit, edit, record, retry) are checked against the current
  phase and raise ``InvalidTransition`` when they arrive at the wrong time;
- system events (gateway results, ticks) may arrive late, after the user has
  moved on or left, and are silently dropped when they no longer apply.
"""
import enum
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional, Tuple, Type

from recruiter.core.config import settings
from recruiter.core.exceptions import EmptyAnswerError, InvalidTransition
from recruiter.schemas.interview import Evaluation, QAPair

NO_ANSWER = "No answer provided."


class Phase(str, enum.Enum):
    initializing = "initializing"
    awaiting_answer = "awaiting_answer"
    submitting = "submitting"
    evaluating = "evaluating"
    complete = "complete"
    failed = "failed"
    cancelled = "cancelled"


TERMINAL_PHASES = frozenset({Phase.complete, Phase.failed, Phase.cancelled})
LOADING_PHASES = frozenset({Phase.initializing, Phase.submitting, Phase.evaluating})


@dataclass(frozen=True)
class FlowState:
    phase: Phase = Phase.initializing
    question_number: int = 0
    question: Optional[str] = None
    tokens: Tuple[str, ...] = ()
    answer: str = ""
    history: Tuple[QAPair, ...] = ()
    total_questions: int = field(default_factory=lambda: settings.interview.total_questions)
    answer_seconds: int = field(default_factory=lambda: settings.interview.answer_seconds)
    remaining: int = -1
    timer_running: bool = False
    narrating: bool = False
    highlight_index: Optional[int] = None
    word_interval: Optional[float] = None
    recording: bool = False
    evaluation: Optional[Evaluation] = None
    error: Optional[str] = None

    def __post_init__(self):
        if self.remaining < 0:
            object.__setattr__(self, "remaining", self.answer_seconds)

    @property
    def loading(self) -> bool:
        return self.phase in LOADING_PHASES

    @property
    def terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def closing_message(self) -> Optional[str]:
        if self.phase != Phase.complete or self.evaluation is None:
            return None
        opening = "Congratulations!" if self.evaluation.selected else "Thank you for your time."
        return f"{opening} {self.evaluation.next_steps}".strip()


# --- Events ---

@dataclass(frozen=True)
class QuestionReceived:
    text: str


@dataclass(frozen=True)
class QuestionFailed:
    message: str


@dataclass(frozen=True)
class RetryRequested:
    pass


@dataclass(frozen=True)
class AnswerEdited:
    text: str


@dataclass(frozen=True)
class TranscriptReceived:
    text: str


@dataclass(frozen=True)
class RecordingStarted:
    pass


@dataclass(frozen=True)
class RecordingStopped:
    pass


@dataclass(frozen=True)
class NarrationStarted:
    duration: float


@dataclass(frozen=True)
class NarrationTick:
    pass


@dataclass(frozen=True)
class NarrationEnded:
    reason: str = "finished"  # finished | stopped | unavailable | failed


@dataclass(frozen=True)
class TimerTick:
    pass


@dataclass(frozen=True)
class SubmitRequested:
    forced: bool = False


@dataclass(frozen=True)
class FeedbackReceived:
    text: str


@dataclass(frozen=True)
class EvaluationReceived:
    evaluation: Evaluation


@dataclass(frozen=True)
class EvaluationFailed:
    message: str


@dataclass(frozen=True)
class Cancelled:
    pass


# --- Transitions ---

def _require(state: FlowState, *phases: Phase) -> None:
    if state.phase not in phases:
        raise InvalidTransition(f"Not allowed while the interview is {state.phase.value}.")


def _reset_question_timers(state: FlowState, **changes) -> FlowState:
    return replace(
        state,
        remaining=state.answer_seconds,
        timer_running=False,
        narrating=False,
        highlight_index=None,
        word_interval=None,
        **changes,
    )


def _question_received(state: FlowState, event: QuestionReceived) -> FlowState:
    if state.phase not in (Phase.initializing, Phase.submitting):
        return state
    tokens = tuple(event.text.split())
    return _reset_question_timers(
        state,
        phase=Phase.awaiting_answer,
        question_number=len(state.history) + 1,
        question=event.text,
        tokens=tokens,
        answer="",
        recording=False,
        error=None,
    )


def _question_failed(state: FlowState, event: QuestionFailed) -> FlowState:
    if state.phase not in (Phase.initializing, Phase.submitting):
        return state
    return replace(state, error=event.message)


def _retry_requested(state: FlowState, event: RetryRequested) -> FlowState:
    _require(state, Phase.initializing, Phase.submitting)
    if not state.error:
        raise InvalidTransition("Nothing to retry; a question is already being prepared.")
    return replace(state, error=None)


def _answer_edited(state: FlowState, event: AnswerEdited) -> FlowState:
    _require(state, Phase.awaiting_answer)
    if state.recording:
        raise InvalidTransition("Stop recording before editing the answer.")
    return replace(state, answer=event.text)


def _transcript_received(state: FlowState, event: TranscriptReceived) -> FlowState:
    _require(state, Phase.awaiting_answer)
    text = event.text.strip()
    if not text:
        return state
    answer = f"{state.answer.rstrip()} {text}" if state.answer.strip() else text
    return replace(state, answer=answer)


def _recording_started(state: FlowState, event: RecordingStarted) -> FlowState:
    _require(state, Phase.awaiting_answer)
    if state.recording:
        raise InvalidTransition("A recording is already in progress.")
    return replace(state, recording=True)


def _recording_stopped(state: FlowState, event: RecordingStopped) -> FlowState:
    if state.terminal or not state.recording:
        return state
    return replace(state, recording=False)


def _narration_started(state: FlowState, event: NarrationStarted) -> FlowState:
    if state.phase != Phase.awaiting_answer:
        return state
    interval = None
    if state.tokens and event.duration > 0:
        interval = event.duration / len(state.tokens)
    return replace(
        state,
        narrating=True,
        timer_running=False,
        highlight_index=0 if state.tokens else None,
        word_interval=interval,
    )


def _narration_tick(state: FlowState, event: NarrationTick) -> FlowState:
    if not state.narrating or state.highlight_index is None:
        return state
    return replace(state, highlight_index=min(state.highlight_index + 1, len(state.tokens) - 1))


def _narration_ended(state: FlowState, event: NarrationEnded) -> FlowState:
    if state.phase != Phase.awaiting_answer:
        return state
    return replace(
        state,
        narrating=False,
        highlight_index=None,
        word_interval=None,
        timer_running=state.remaining > 0,
    )


def _submit(state: FlowState, answer: str) -> FlowState:
    history = state.history + (QAPair(question=state.question or "", answer=answer),)
    phase = Phase.evaluating if len(history) >= state.total_questions else Phase.submitting
    return _reset_question_timers(state, phase=phase, history=history, answer="", recording=False)


def _timer_tick(state: FlowState, event: TimerTick) -> FlowState:
    if state.phase != Phase.awaiting_answer or not state.timer_running or state.narrating:
        return state
    remaining = state.remaining - 1
    if remaining > 0:
        return replace(state, remaining=remaining)
    # time is up: whatever is in the buffer is submitted
    return _submit(state, state.answer.strip() or NO_ANSWER)


def _submit_requested(state: FlowState, event: SubmitRequested) -> FlowState:
    _require(state, Phase.awaiting_answer)
    answer = state.answer.strip()
    if not answer:
        if not event.forced:
            raise EmptyAnswerError()
        answer = NO_ANSWER
    return _submit(state, answer)


def _feedback_received(state: FlowState, event: FeedbackReceived) -> FlowState:
    if state.phase != Phase.submitting or not state.history:
        return state
    last = state.history[-1]
    if last.feedback:
        return state
    updated = last.model_copy(update={"feedback": event.text})
    return replace(state, history=state.history[:-1] + (updated,))


def _evaluation_received(state: FlowState, event: EvaluationReceived) -> FlowState:
    if state.phase != Phase.evaluating:
        return state
    return replace(state, phase=Phase.complete, evaluation=event.evaluation, error=None)


def _evaluation_failed(state: FlowState, event: EvaluationFailed) -> FlowState:
    if state.phase != Phase.evaluating:
        return state
    return replace(state, phase=Phase.failed, error=event.message)


def _cancelled(state: FlowState, event: Cancelled) -> FlowState:
    if state.terminal:
        return state
    return _reset_question_timers(
        state, phase=Phase.cancelled, history=(), answer="", recording=False
    )


_HANDLERS: Dict[Type, Callable[[FlowState, object], FlowState]] = {
    QuestionReceived: _question_received,
    QuestionFailed: _question_failed,
    RetryRequested: _retry_requested,
    AnswerEdited: _answer_edited,
    TranscriptReceived: _transcript_received,
    RecordingStarted: _recording_started,
    RecordingStopped: _recording_stopped,
    NarrationStarted: _narration_started,
    NarrationTick: _narration_tick,
    NarrationEnded: _narration_ended,
    TimerTick: _timer_tick,
    SubmitRequested: _submit_requested,
    FeedbackReceived: _feedback_received,
    EvaluationReceived: _evaluation_received,
    EvaluationFailed: _evaluation_failed,
    Cancelled: _cancelled,
}


def transition(state: FlowState, event) -> FlowState:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown interview event: {event!r}")
    return handler(state, event)
