"""
ExerciseEvaluator - Judge learner attempts.

Each judge returns a Verdict with a tri-state outcome. INVALID means the
attempt could not be judged (nothing selected, not a number) and must not
change any completion or lock state.
"""

import math
import re
from typing import Optional, Union

from stepgate.errors import ErrorKind, ExecutionFailed
from stepgate.schemas import (
    CodeExerciseSection,
    ExecutionResult,
    ExerciseSection,
    Outcome,
    QuizSection,
    Verdict,
)

from .executor import CodeExecutor

ChoiceSection = Union[ExerciseSection, QuizSection]

# ASCII digits only; rejects "4_000", "inf" and non-Latin numerals that float() accepts
DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


def parse_number(text: Optional[str]) -> Optional[float]:
    """Parse a decimal number written with '.' or ','; None if not a finite number."""
    if text is None:
        return None
    cleaned = str(text).strip().replace(",", ".", 1)
    if not DECIMAL_PATTERN.fullmatch(cleaned):
        return None
    value = float(cleaned)
    return value if math.isfinite(value) else None


def _praise(prefix: str, explanation: Optional[str]) -> str:
    return f"{prefix} {explanation}".strip() if explanation else prefix


def judge_numeric(section: ExerciseSection, text: Optional[str]) -> Verdict:
    if section.exercise_type != "numeric":
        raise ValueError(f"Exercise {section.title!r} is not numeric")

    value = parse_number(text)
    if value is None:
        return Verdict(
            outcome=Outcome.INVALID,
            error=ErrorKind.INVALID_INPUT,
            message="Enter a valid number",
        )

    if abs(value - section.answer) <= section.tolerance:
        return Verdict(outcome=Outcome.CORRECT, message=_praise("Correct!", section.explanation))
    return Verdict(
        outcome=Outcome.INCORRECT,
        message=section.wrong_explanation or "Incorrect. Try again!",
    )


def _judge_option(section: ChoiceSection, selected: Optional[int], praise: str, fallback: str) -> Verdict:
    if selected is None:
        return Verdict(
            outcome=Outcome.INVALID,
            error=ErrorKind.NO_SELECTION,
            message="Select an answer",
        )
    if selected == section.correct:
        return Verdict(outcome=Outcome.CORRECT, message=_praise(praise, section.explanation))
    return Verdict(outcome=Outcome.INCORRECT, message=section.wrong_explanation or fallback)


def judge_choice(section: ExerciseSection, selected: Optional[int]) -> Verdict:
    """Multiple-choice exercise."""
    if section.exercise_type != "mcq":
        raise ValueError(f"Exercise {section.title!r} is not multiple-choice")
    return _judge_option(section, selected, "Excellent!", "Incorrect. Try again!")


def judge_quiz(section: QuizSection, selected: Optional[int]) -> Verdict:
    """Quiz question; same contract as judge_choice."""
    return _judge_option(section, selected, "Perfect!", "Not quite. Re-read the previous section.")


def _check_failed(detail: str, result: ExecutionResult) -> Verdict:
    return Verdict(
        outcome=Outcome.INCORRECT,
        error=ErrorKind.EXECUTION_FAILED,
        message=f"Error while checking your code: {detail}",
        execution=result,
    )


async def judge_code(section: CodeExerciseSection, source: str, executor: CodeExecutor) -> Verdict:
    """
    Run learner code and judge the result.

    Any execution error fails the attempt. Otherwise, in order: the declared
    expected_output must appear in stdout; else the validate expression must
    be truthy; else running without error is enough.
    """
    try:
        result = await executor.run(source)
    except ExecutionFailed as e:
        return Verdict(
            outcome=Outcome.INCORRECT,
            error=ErrorKind.EXECUTION_FAILED,
            message="Fix the errors in your code",
            execution=ExecutionResult(stderr=e.message),
        )

    if result.has_error_output:
        return Verdict(
            outcome=Outcome.INCORRECT,
            error=ErrorKind.EXECUTION_FAILED,
            message="Fix the errors in your code",
            execution=result,
        )

    if section.expected_output:
        if section.expected_output in result.stdout:
            return Verdict(
                outcome=Outcome.CORRECT,
                message=section.success_message or "Well done! Your code works.",
                execution=result,
            )
        return Verdict(
            outcome=Outcome.INCORRECT,
            message="The code runs but the expected result was not found. Check your implementation.",
            execution=result,
        )

    if section.validate_expr:
        try:
            passed = bool(await executor.evaluate(section.validate_expr))
        except ExecutionFailed as e:
            return _check_failed(e.message, result)
        except Exception as e:
            # Result has no usable truth value, e.g. a multi-element numpy array
            return _check_failed(f"{type(e).__name__}: {e}", result)
        if passed:
            return Verdict(
                outcome=Outcome.CORRECT,
                message=section.success_message or "Correct code!",
                execution=result,
            )
        return Verdict(
            outcome=Outcome.INCORRECT,
            message=section.error_message or "Not quite. Check your code.",
            execution=result,
        )

    return Verdict(outcome=Outcome.CORRECT, message="Code ran successfully!", execution=result)
