"""
Recovery of question arrays from free-text model replies.
모델 응답의 깨진 JSON을 복구하여 문제 배열로 변환합니다.

The model is told to emit strict JSON, but question text legitimately carries
LaTeX with single backslashes, so replies are often invalid JSON. Each repair
strategy below is a pure text -> text function tried, in order, before a parse
attempt; the first one that yields valid JSON wins.
"""

import json
import logging
import re
import uuid
from typing import Callable

from pydantic import ValidationError

from ..errors import ResponseParseError
from ..models._utils import strip_code_fences
from ..schema import GeneratedQuestion, GenerationRequest, QuestionType

logger = logging.getLogger(__name__)

RepairStrategy = tuple[str, Callable[[str], str]]

_STRAY_BACKSLASH_RE = re.compile(r'\\(?!["\\/bfnrtu])')
# A backslash plus the escape character it starts, if that escape is one
# restored after a blanket escape: quote, backslash, slash, n, t, r, b, f
_BACKSLASH_PAIR_RE = re.compile(r'\\(["\\/ntrbf])?')

# LaTeX commands that commonly appear unescaped in model output
_LATEX_COMMANDS = ("sum", "prod", "int", "frac", "sqrt", "begin", "end")

_QUESTION_TYPES = {t.value for t in QuestionType}


def extract_json_array(text: str) -> str:
    """Strip code fences and slice from the first '[' to the last ']'."""
    cleaned = strip_code_fences(text or "")
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise ResponseParseError("No JSON array found in response")
    return cleaned[start:end + 1]


def _unchanged(text: str) -> str:
    return text


def escape_stray_backslashes(text: str) -> str:
    """Double every backslash that does not start a valid JSON escape."""
    return _STRAY_BACKSLASH_RE.sub(r"\\\\", text)


def normalize_backslashes(text: str) -> str:
    """Escape all backslashes, then restore the escapes that were already valid.

    Done in a single left-to-right pass so an escaped backslash followed by a
    letter (``\\\\frac``) is restored as a pair and never re-read as ``\\f``.
    Unicode escapes are not restored, which rescues ``\\underline``-style text.
    """
    return _BACKSLASH_PAIR_RE.sub(
        lambda m: m.group(0) if m.group(1) else "\\\\", text
    )


def escape_latex_commands(text: str) -> str:
    """Double-escape literal \\n, \\t, \\r and a fixed list of LaTeX commands."""
    fixed = text
    for name in ("n", "t", "r") + _LATEX_COMMANDS:
        fixed = fixed.replace("\\" + name, "\\\\" + name)
    return fixed


REPAIR_STRATEGIES: list[RepairStrategy] = [
    ("direct", _unchanged),
    ("backslash escaping", escape_stray_backslashes),
    ("aggressive backslash normalization", normalize_backslashes),
    ("LaTeX command escaping", escape_latex_commands),
]


def parse_question_array(text: str) -> list:
    """
    Parse a model reply into a list of raw question records.

    Raises:
        ResponseParseError: no array found, every strategy failed, or the
            parsed value is not an array. The first decode error is chained.
    """
    json_text = extract_json_array(text)

    original_error: json.JSONDecodeError | None = None
    for name, repair in REPAIR_STRATEGIES:
        try:
            data = json.loads(repair(json_text))
        except json.JSONDecodeError as e:
            if original_error is None:
                original_error = e
                logger.warning("Initial JSON parse failed, attempting fixes...")
            continue
        if original_error is not None:
            logger.info("Fixed model JSON with %s", name)
        break
    else:
        logger.error("All JSON parsing strategies failed")
        raise ResponseParseError(
            f"Failed to parse AI response: {original_error}", original_error
        ) from original_error

    if not isinstance(data, list):
        raise ResponseParseError("Parsed response is not an array")
    return data


def _new_question_id() -> str:
    return f"gen_{uuid.uuid4().hex}"


def to_questions(records: list, request: GenerationRequest) -> list[GeneratedQuestion]:
    """
    Turn raw records into GeneratedQuestion objects.

    Ids are always reassigned. Unknown question types fall back to the
    requested type and missing topic/subject are taken from the request.
    Records that still fail validation are skipped.
    """
    questions: list[GeneratedQuestion] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("Skipping non-object question record at index %d", index)
            continue

        data = dict(record)
        data["id"] = _new_question_id()
        if data.get("type") not in _QUESTION_TYPES:
            data["type"] = request.question_type.value
        if not data.get("topic"):
            data["topic"] = request.topic
        if not data.get("subject"):
            data["subject"] = request.subject

        try:
            questions.append(GeneratedQuestion.model_validate(data))
        except ValidationError as e:
            logger.warning("Skipping malformed question record at index %d: %s", index, e)
    return questions


def parse_generated_questions(text: str, request: GenerationRequest) -> list[GeneratedQuestion]:
    """Full parse: repair chain followed by post-processing."""
    return to_questions(parse_question_array(text), request)
