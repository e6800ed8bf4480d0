"""
Post-generation validation layer.
생성된 문제의 구조적 완전성과 정답 일관성을 검증합니다.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .schema import GeneratedQuestion, QuestionType


class ValidationIssue(BaseModel):
    """Single validation issue found in a generated question set."""

    level: Literal["error", "warning"] = Field(description="'error' or 'warning'")
    question_id: str | None = None
    message: str


class ValidationResult(BaseModel):
    """Result of validating a generated question set."""

    is_valid: bool
    total_errors: int = 0
    total_warnings: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)


_MCQ_TYPES = {QuestionType.MCQ_SINGLE, QuestionType.MCQ_MULTI}
_TRUE_FALSE_ANSWERS = {"True", "False"}


def validate_questions(
    questions: list[GeneratedQuestion],
    expected_count: int | None = None,
) -> ValidationResult:
    """
    Validate generated questions for structural completeness.

    Args:
        questions: Questions to check
        expected_count: Number of questions that was requested

    Returns:
        ValidationResult with all issues found
    """
    issues: list[ValidationIssue] = []

    _validate_set(questions, issues, expected_count)
    for q in questions:
        _validate_common_fields(q, issues)
        if q.type in _MCQ_TYPES:
            _validate_mcq(q, issues)
        elif q.type == QuestionType.TRUE_FALSE:
            _validate_true_false(q, issues)
        elif q.type == QuestionType.NUMERIC:
            _validate_numeric(q, issues)

    errors = sum(1 for i in issues if i.level == "error")
    warnings = sum(1 for i in issues if i.level == "warning")

    return ValidationResult(
        is_valid=errors == 0,
        total_errors=errors,
        total_warnings=warnings,
        issues=issues,
    )


def _error(q: GeneratedQuestion, message: str) -> ValidationIssue:
    return ValidationIssue(level="error", question_id=q.id, message=message)


def _validate_set(
    questions: list[GeneratedQuestion],
    issues: list[ValidationIssue],
    expected_count: int | None = None,
):
    """Check ids are unique and the set has the requested size."""
    if not questions:
        issues.append(ValidationIssue(level="error", message="No questions generated"))
        return

    seen = set()
    for q in questions:
        if q.id in seen:
            issues.append(_error(q, f"Duplicate question id: {q.id}"))
        seen.add(q.id)

    if expected_count is not None and len(questions) != expected_count:
        issues.append(
            ValidationIssue(
                level="warning",
                message=f"Expected {expected_count} questions, found {len(questions)}",
            )
        )


def _validate_common_fields(q: GeneratedQuestion, issues: list[ValidationIssue]):
    if not q.text or not q.text.strip():
        issues.append(_error(q, "Question text is empty"))
    if q.marks < 0:
        issues.append(_error(q, f"Marks cannot be negative (got {q.marks})"))
    if q.negative_marks > 0:
        issues.append(
            _error(q, f"Negative marks should be 0 or a negative number (got {q.negative_marks})")
        )


def _validate_mcq(q: GeneratedQuestion, issues: list[ValidationIssue]):
    if len(q.options) < 2:
        issues.append(_error(q, "MCQ questions must have at least 2 options"))
        return
    if not q.correct:
        issues.append(_error(q, "MCQ questions must have correct answers"))
        return

    # Answers may name an option by its label or by its full text
    identifiers = set()
    for opt in q.options:
        identifiers.update(s.strip() for s in (opt.label, opt.text) if s and s.strip())

    invalid = [
        answer for answer in (a.strip() for a in q.correct)
        if not answer or not (answer in identifiers or answer.upper() in identifiers)
    ]
    if invalid:
        issues.append(_error(q, f"Correct answers not found in options: {', '.join(invalid)}"))

    if q.type == QuestionType.MCQ_SINGLE and len(q.correct) > 1:
        issues.append(_error(q, "Single choice MCQ can have only one correct answer"))


def _validate_true_false(q: GeneratedQuestion, issues: list[ValidationIssue]):
    if not q.correct or q.correct[0] not in _TRUE_FALSE_ANSWERS:
        issues.append(
            _error(q, 'True/False questions must have correct answer as "True" or "False"')
        )


def _validate_numeric(q: GeneratedQuestion, issues: list[ValidationIssue]):
    if not q.correct:
        issues.append(_error(q, "Numeric questions must have correct answer"))
        return
    try:
        float(q.correct[0])
    except ValueError:
        issues.append(_error(q, "Numeric questions must have numeric correct answer"))
