import pytest

from recruiter.core.exceptions import EmptyAnswerError, InvalidTransition
from recruiter.services import interview_flow as flow
from recruiter.services.interview_flow import FlowState, Phase, transition


def run(state, *events):
    for event in events:
        state = transition(state, event)
    return state


def awaiting(question="Tell me about your last project", **kwargs):
    state = FlowState(answer_seconds=kwargs.pop("answer_seconds", 180), **kwargs)
    return run(state, flow.QuestionReceived(question), flow.NarrationEnded("unavailable"))


def answer_all(state, count):
    for n in range(count):
        state = run(
            state,
            flow.AnswerEdited(f"answer {n + 1}"),
            flow.SubmitRequested(),
        )
        if state.phase == Phase.submitting:
            state = run(state, flow.QuestionReceived(f"Question {n + 2}?"))
    return state


def test_initial_state():
    state = FlowState()
    assert state.phase == Phase.initializing
    assert state.loading
    assert state.total_questions == 8
    assert state.remaining == state.answer_seconds

def test_question_received_tokenizes_and_waits_for_narration():
    state = transition(FlowState(), flow.QuestionReceived("Why  did you\nleave Acme?"))
    assert state.phase == Phase.awaiting_answer
    assert state.question_number == 1
    assert state.tokens == ("Why", "did", "you", "leave", "Acme?")
    assert state.timer_running is False

def test_timer_starts_when_narration_ends():
    state = awaiting()
    assert state.timer_running is True
    assert state.remaining == 180

def test_manual_submit_requires_answer():
    state = awaiting()
    with pytest.raises(EmptyAnswerError):
        transition(state, flow.SubmitRequested())
    state = transition(state, flow.AnswerEdited("   "))
    with pytest.raises(EmptyAnswerError):
        transition(state, flow.SubmitRequested())

def test_submit_appends_history_and_moves_to_submitting():
    state = run(awaiting("Q1?"), flow.AnswerEdited("  My answer  "), flow.SubmitRequested())
    assert state.phase == Phase.submitting
    assert state.history[-1].question == "Q1?"
    assert state.history[-1].answer == "My answer"
    assert state.answer == ""
    assert state.timer_running is False
    assert state.remaining == state.answer_seconds

def test_next_question_number_follows_history_length():
    state = awaiting()
    for k in range(1, 8):
        state = run(state, flow.AnswerEdited("ok"), flow.SubmitRequested())
        assert len(state.history) == k
        state = transition(state, flow.QuestionReceived(f"Question {k + 1}?"))
        assert state.question_number == k + 1

def test_eighth_answer_moves_to_evaluating():
    state = answer_all(awaiting("Question 1?"), 8)
    assert state.phase == Phase.evaluating
    assert len(state.history) == 8
    assert [qa.answer for qa in state.history] == [f"answer {n}" for n in range(1, 9)]

def test_second_submit_is_rejected():
    state = run(awaiting(), flow.AnswerEdited("done"), flow.SubmitRequested())
    with pytest.raises(InvalidTransition):
        transition(state, flow.SubmitRequested())

def test_timer_expiry_with_blank_answer_submits_sentinel():
    state = awaiting(answer_seconds=3)
    state = run(state, flow.TimerTick(), flow.TimerTick())
    assert state.remaining == 1
    state = transition(state, flow.TimerTick())
    assert state.phase == Phase.submitting
    assert state.history[-1].answer == flow.NO_ANSWER

def test_timer_expiry_keeps_partial_answer():
    state = run(awaiting(answer_seconds=1), flow.TranscriptReceived("half an answer"), flow.TimerTick())
    assert state.history[-1].answer == "half an answer"

def test_timer_paused_while_narrating():
    state = transition(FlowState(), flow.QuestionReceived("one two three four"))
    state = run(state, flow.NarrationStarted(2.0), flow.TimerTick(), flow.TimerTick())
    assert state.remaining == state.answer_seconds
    assert state.timer_running is False

def test_narration_highlight_protocol():
    state = transition(FlowState(), flow.QuestionReceived("one two three four"))
    state = transition(state, flow.NarrationStarted(2.0))
    assert state.narrating
    assert state.highlight_index == 0
    assert state.word_interval == pytest.approx(0.5)

    state = run(state, *[flow.NarrationTick()] * 10)
    assert state.highlight_index == 3

    state = transition(state, flow.NarrationEnded("stopped"))
    assert state.narrating is False
    assert state.highlight_index is None
    assert state.word_interval is None
    assert state.timer_running is True

def test_transcripts_append_space_joined():
    state = run(
        awaiting(),
        flow.AnswerEdited("I worked"),
        flow.TranscriptReceived("on payments"),
        flow.TranscriptReceived("   "),
        flow.TranscriptReceived("for two years"),
    )
    assert state.answer == "I worked on payments for two years"

def test_edit_rejected_while_recording():
    state = run(awaiting(), flow.RecordingStarted())
    with pytest.raises(InvalidTransition):
        transition(state, flow.AnswerEdited("typed"))
    with pytest.raises(InvalidTransition):
        transition(state, flow.RecordingStarted())
    state = transition(state, flow.RecordingStopped())
    assert transition(state, flow.AnswerEdited("typed")).answer == "typed"

def test_submit_releases_recording():
    state = run(awaiting(), flow.RecordingStarted(), flow.TranscriptReceived("spoken"), flow.SubmitRequested())
    assert state.recording is False

def test_feedback_attaches_to_latest_pair_once():
    state = run(awaiting(), flow.AnswerEdited("a"), flow.SubmitRequested())
    state = run(state, flow.FeedbackReceived("Nice"), flow.FeedbackReceived("Ignored"))
    assert state.history[-1].feedback == "Nice"

def test_question_failure_and_retry():
    state = transition(FlowState(), flow.QuestionFailed("AI service is unreachable."))
    assert state.phase == Phase.initializing
    assert state.error == "AI service is unreachable."
    state = transition(state, flow.RetryRequested())
    assert state.error is None
    with pytest.raises(InvalidTransition):
        transition(state, flow.RetryRequested())

def test_evaluation_success(evaluation):
    state = answer_all(awaiting("Question 1?"), 8)
    state = transition(state, flow.EvaluationReceived(evaluation))
    assert state.phase == Phase.complete
    assert state.terminal
    assert state.closing_message == "Congratulations! Our team will be in touch within 2 business days."

def test_rejected_closing_message(evaluation):
    rejected = evaluation.model_copy(update={"decision": "rejected"})
    state = answer_all(awaiting("Question 1?"), 8)
    state = transition(state, flow.EvaluationReceived(rejected))
    assert state.closing_message.startswith("Thank you for your time.")

def test_evaluation_failure_is_terminal():
    state = answer_all(awaiting("Question 1?"), 8)
    state = transition(state, flow.EvaluationFailed("AI service completely unavailable."))
    assert state.phase == Phase.failed
    assert state.evaluation is None
    with pytest.raises(InvalidTransition):
        transition(state, flow.SubmitRequested())

def test_cancel_abandons_history():
    state = run(awaiting(), flow.AnswerEdited("a"), flow.SubmitRequested(), flow.Cancelled())
    assert state.phase == Phase.cancelled
    assert state.history == ()

def test_late_system_events_are_ignored_after_cancel(evaluation):
    state = run(awaiting(), flow.Cancelled())
    for event in (
        flow.QuestionReceived("late"),
        flow.FeedbackReceived("late"),
        flow.EvaluationReceived(evaluation),
        flow.TimerTick(),
        flow.NarrationTick(),
        flow.Cancelled(),
    ):
        assert transition(state, event) == state

def test_transition_does_not_mutate():
    state = awaiting()
    transition(state, flow.AnswerEdited("changed"))
    assert state.answer == ""

def test_unknown_event():
    with pytest.raises(TypeError):
        transition(FlowState(), object())
