from types import SimpleNamespace

import pytest

from recruiter.core import prompts
from recruiter.core.exceptions import MalformedResponse, ValidationError
from recruiter.schemas.interview import EvaluationContext, FeedbackContext, QAPair, QuestionContext
from recruiter.services.ai_orchestrator import AIOrchestrator
from recruiter.services.interview_ai import InterviewGateway, difficulty_for, format_history


@pytest.fixture
def sent(monkeypatch):
    """Capture prompts instead of calling the model."""
    captured = SimpleNamespace(calls=[], reply="What drew you to distributed systems?", payload=None)

    def fake_complete_text(prompt, **kwargs):
        captured.calls.append((prompt, kwargs))
        return captured.reply

    def fake_complete_json(prompt, **kwargs):
        captured.calls.append((prompt, kwargs))
        return captured.payload

    monkeypatch.setattr(AIOrchestrator, "complete_text", staticmethod(fake_complete_text))
    monkeypatch.setattr(AIOrchestrator, "complete_json", staticmethod(fake_complete_json))
    return captured


def qa(n):
    return [QAPair(question=f"Q{i}?", answer=f"A{i}", feedback=f"F{i}" if i % 2 else None) for i in range(1, n + 1)]


@pytest.mark.parametrize("number, stage", [
    (1, "warmup"), (2, "warmup"), (3, "moderate"), (4, "moderate"),
    (5, "deep"), (6, "deep"), (7, "advanced"), (8, "advanced"),
])
def test_difficulty_progression(number, stage):
    assert difficulty_for(number) == prompts.INTERVIEW_DIFFICULTY[stage]

def test_format_history_keeps_order_and_feedback():
    text = format_history(qa(2))
    assert text == "Q1: Q1?\nA1: A1\nFeedback Given: F1\n\nQ2: Q2?\nA2: A2"

def test_next_question_prompt(sent):
    ctx = QuestionContext(
        resume_text="R" * 3000,
        job_description="Build APIs",
        job_title="Backend Engineer",
        question_number=3,
        previous_qa=qa(2),
    )
    question = InterviewGateway().next_question(ctx)
    assert question == "What drew you to distributed systems?"
    prompt = sent.calls[0][0]
    assert "Question 3 of 8" in prompt
    assert "Q2: Q2?" in prompt
    assert "R" * 1500 in prompt and "R" * 1501 not in prompt

def test_next_question_number_out_of_range(sent):
    ctx = QuestionContext(resume_text="", job_description="", job_title="", question_number=9)
    with pytest.raises(ValidationError):
        InterviewGateway().next_question(ctx)
    assert sent.calls == []

def test_feedback_prompt(sent):
    ctx = FeedbackContext(question="Why Python?", answer="Readable.", resume_text="CV", job_description="JD", question_number=2)
    InterviewGateway().feedback(ctx)
    assert '"Readable."' in sent.calls[0][0]

def test_evaluate_requires_full_history(sent):
    ctx = EvaluationContext(resume_text="", job_description="", job_title="", all_qa=qa(5))
    with pytest.raises(ValidationError):
        InterviewGateway().evaluate(ctx)
    assert sent.calls == []

def test_evaluate_parses_and_normalizes(sent):
    sent.payload = {
        "overallScore": 104, "technicalScore": 70, "communicationScore": 66, "cultureFitScore": 71,
        "decision": "Selected", "feedback": "Strong.", "nextSteps": "We will call you.",
    }
    ctx = EvaluationContext(resume_text="CV", job_description="JD", job_title="Dev", all_qa=qa(8))
    evaluation = InterviewGateway().evaluate(ctx)
    assert evaluation.overall_score == 100
    assert evaluation.decision == "selected"
    assert evaluation.selected
    assert sent.calls[0][1]["retries"] is False
    assert "Q8: Q8?" in sent.calls[0][0]

def test_evaluate_missing_fields(sent):
    sent.payload = {"overallScore": 50}
    ctx = EvaluationContext(resume_text="CV", job_description="JD", job_title="Dev", all_qa=qa(8))
    with pytest.raises(MalformedResponse):
        InterviewGateway().evaluate(ctx)

def test_evaluation_json_uses_camel_case(evaluation):
    import json
    data = json.loads(evaluation.to_json())
    assert set(data) == {
        "overallScore", "technicalScore", "communicationScore", "cultureFitScore",
        "decision", "feedback", "nextSteps",
    }
