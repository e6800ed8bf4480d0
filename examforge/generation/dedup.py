"""
Near-duplicate question filtering by lexical (Jaccard) overlap.
어휘(Jaccard) 유사도로 중복에 가까운 문제를 제거합니다.
"""

import logging
import re
from typing import Callable, Iterable, TypeVar

from ..config import DUPLICATE_THRESHOLD
from ..schema import GeneratedQuestion

logger = logging.getLogger(__name__)

Q = TypeVar("Q")

STOP_WORDS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but", "if",
    "then", "else", "when", "what", "where", "how", "why", "who", "to", "from",
    "in", "of", "for", "with", "by", "about", "as", "into", "like", "through",
    "after", "over", "between", "out", "against", "during", "without",
    "before", "under", "around", "among",
})

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def tokenize(text: str | None) -> frozenset[str]:
    """Significant lowercase words of text: no punctuation, stop words or words of <= 2 chars."""
    if not text:
        return frozenset()
    words = _PUNCTUATION_RE.sub("", text.lower()).split()
    return frozenset(w for w in words if len(w) > 2 and w not in STOP_WORDS)


def jaccard_similarity(tokens_a: frozenset[str], tokens_b: frozenset[str]) -> float:
    """Intersection over union; 0.0 when either side is empty."""
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def text_similarity(text_a: str | None, text_b: str | None) -> float:
    return jaccard_similarity(tokenize(text_a), tokenize(text_b))


def filter_near_duplicates(
    questions: Iterable[Q],
    threshold: float = DUPLICATE_THRESHOLD,
    key: Callable[[Q], str] = lambda q: q.text,
) -> list[Q]:
    """
    Drop every question whose similarity to an already-accepted one exceeds threshold.

    First-seen order is preserved and running the filter on its own output
    removes nothing. Quadratic in the number of questions, which stays in the
    tens per run.
    """
    accepted: list[Q] = []
    accepted_tokens: list[frozenset[str]] = []

    for question in questions:
        tokens = tokenize(key(question))
        if any(jaccard_similarity(tokens, seen) > threshold for seen in accepted_tokens):
            logger.debug("Dropping near-duplicate question: %.40s", key(question))
            continue
        accepted.append(question)
        accepted_tokens.append(tokens)

    return accepted


def dedupe_questions(questions: Iterable[GeneratedQuestion]) -> list[GeneratedQuestion]:
    """filter_near_duplicates with the default threshold, logging how many were removed."""
    questions = list(questions)
    unique = filter_near_duplicates(questions)
    if len(unique) < len(questions):
        logger.info("Removed %d near-duplicate questions", len(questions) - len(unique))
    return unique
