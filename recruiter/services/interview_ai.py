import logging
from typing import Sequence

from pydantic import ValidationError as PydanticValidationError

from recruiter.core import prompts
from recruiter.core.config import settings
from recruiter.core.exceptions import MalformedResponse, ValidationError
from recruiter.schemas.interview import (
    Evaluation,
    EvaluationContext,
    FeedbackContext,
    QAPair,
    QuestionContext,
)
from recruiter.services.ai_orchestrator import AIDomain, AIOrchestrator

logger = logging.getLogger(__name__)


def difficulty_for(question_number: int) -> str:
    """Questions get harder as the interview progresses: 1-2, 3-4, 5-6, 7+."""
    if question_number <= 2:
        return prompts.INTERVIEW_DIFFICULTY["warmup"]
    if question_number <= 4:
        return prompts.INTERVIEW_DIFFICULTY["moderate"]
    if question_number <= 6:
        return prompts.INTERVIEW_DIFFICULTY["deep"]
    return prompts.INTERVIEW_DIFFICULTY["advanced"]


def format_history(pairs: Sequence[QAPair], feedback_label: str = "Feedback Given") -> str:
    lines = []
    for i, qa in enumerate(pairs, start=1):
        entry = f"Q{i}: {qa.question}\nA{i}: {qa.answer}"
        if qa.feedback:
            entry += f"\n{feedback_label}: {qa.feedback}"
        lines.append(entry)
    return "\n\n".join(lines)


class InterviewGateway:
    """Interview Question/Evaluation Gateway."""

    def next_question(self, ctx: QuestionContext) -> str:
        total = settings.interview.total_questions
        if not 1 <= ctx.question_number <= total:
            raise ValidationError(f"Question number must be between 1 and {total}")

        previous_context = ""
        if ctx.previous_qa:
            previous_context = (
                "\nPrevious questions, answers and your feedback:\n"
                + format_history(ctx.previous_qa, feedback_label="Your Feedback")
            )

        prompt = prompts.get_prompt(
            prompts.INTERVIEW_QUESTION_TEMPLATE,
            job_title=ctx.job_title,
            job_description=ctx.job_description[:800],
            resume_text=ctx.resume_text[:1500],
            previous_context=previous_context,
            question_number=ctx.question_number,
            total_questions=total,
            difficulty=difficulty_for(ctx.question_number),
        )
        question = AIOrchestrator.complete_text(prompt, temperature=0.8, domain=AIDomain.INTERVIEW)
        if not question:
            raise MalformedResponse("AI returned an empty interview question.")
        logger.info(f"Generated interview question {ctx.question_number}/{total}")
        return question

    def feedback(self, ctx: FeedbackContext) -> str:
        prompt = prompts.get_prompt(
            prompts.INTERVIEW_FEEDBACK_TEMPLATE,
            question=ctx.question,
            answer=ctx.answer,
            job_description=ctx.job_description[:400],
            resume_text=ctx.resume_text[:800],
            question_number=ctx.question_number,
            total_questions=settings.interview.total_questions,
        )
        return AIOrchestrator.complete_text(prompt, temperature=0.7, domain=AIDomain.INTERVIEW)

    def evaluate(self, ctx: EvaluationContext) -> Evaluation:
        total = settings.interview.total_questions
        if len(ctx.all_qa) != total:
            raise ValidationError(
                f"Evaluation requires exactly {total} answered questions",
                details={"received": len(ctx.all_qa)},
            )

        prompt = prompts.get_prompt(
            prompts.INTERVIEW_EVALUATION_TEMPLATE,
            job_title=ctx.job_title,
            job_description=ctx.job_description,
            resume_text=ctx.resume_text[:2000],
            transcript=format_history(ctx.all_qa),
        )
        # no automatic retry for the final decision
        data = AIOrchestrator.complete_json(
            prompt, temperature=0.3, domain=AIDomain.INTERVIEW, retries=False
        )
        try:
            evaluation = Evaluation.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Evaluation reply missing fields: {e.errors()}")
            raise MalformedResponse("AI evaluation response is missing required fields.")

        logger.info(
            "Interview evaluated",
            extra={"decision": evaluation.decision, "overall_score": evaluation.overall_score},
        )
        return evaluation
