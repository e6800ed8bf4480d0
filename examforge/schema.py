"""
Pydantic models for generation requests, generated questions and crop regions.
문제 생성 요청, 생성된 문제, 크롭 영역을 위한 Pydantic 모델입니다.
"""

import string
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import MAX_QUESTION_COUNT


class QuestionType(str, Enum):
    """Question formats the generator can be asked for."""

    MCQ_SINGLE = "mcq_single"
    MCQ_MULTI = "mcq_multi"
    TRUE_FALSE = "true_false"
    NUMERIC = "numeric"
    DESCRIPTIVE = "descriptive"


class DifficultyLabel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GenerationRequest(BaseModel):
    """Immutable input to a generation run."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(min_length=1)
    subject: str
    grade: str
    count: int = Field(ge=1, le=MAX_QUESTION_COUNT)
    question_type: QuestionType = QuestionType.MCQ_SINGLE
    difficulty: int = Field(default=50, ge=1, le=100, description="1 (easiest) to 100 (hardest)")
    specific_needs: str | None = None

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("topic must not be blank")
        return v.strip()


# A model option is either a bare string (plain) or a labeled object.
PlainOption = str


class QuestionOption(BaseModel):
    """Labeled answer option."""

    label: str
    text: str
    diagram: str | None = None


def _option_letter(index: int) -> str:
    letters = string.ascii_uppercase
    return letters[index] if index < len(letters) else str(index + 1)


def normalize_option(raw: Any, index: int = 0) -> QuestionOption:
    """Turn any option shape the model produces into a QuestionOption."""
    if isinstance(raw, QuestionOption):
        return raw
    if isinstance(raw, dict):
        label = raw.get("label")
        text = raw.get("text")
        if text is None:
            text = raw.get("value", "")
        return QuestionOption(
            label=str(label) if label not in (None, "") else _option_letter(index),
            text=str(text),
            diagram=raw.get("diagram"),
        )
    text = str(raw)
    return QuestionOption(label=text, text=text)


class QuestionImages(BaseModel):
    """Which parts of a question carry an image."""

    question: bool = False
    options: list[bool] = Field(default_factory=list)


class GeneratedQuestion(BaseModel):
    """A single machine-generated exam question."""

    id: str
    type: QuestionType
    text: str
    options: list[QuestionOption] = Field(default_factory=list)
    correct: list[str] = Field(default_factory=list)
    marks: float = 1
    negative_marks: float = 0
    explanation: str = ""
    difficulty: DifficultyLabel = DifficultyLabel.MEDIUM
    topic: str = ""
    subject: str = ""
    tags: list[str] = Field(default_factory=list)
    images: QuestionImages = Field(default_factory=QuestionImages)

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, v):
        if v is None:
            return []
        return [normalize_option(opt, i) for i, opt in enumerate(v)]

    @field_validator("correct", "tags", mode="before")
    @classmethod
    def _as_string_list(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        return [str(v)]

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lenient_difficulty(cls, v):
        if isinstance(v, DifficultyLabel):
            return v
        if isinstance(v, str) and v.strip().lower() in {d.value for d in DifficultyLabel}:
            return v.strip().lower()
        return DifficultyLabel.MEDIUM

    @field_validator("images", mode="before")
    @classmethod
    def _default_images(cls, v):
        return v if isinstance(v, (dict, QuestionImages)) else QuestionImages()

    @field_validator("explanation", "topic", "subject", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v


class Batch(BaseModel):
    """One bounded-size slice of a generation request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    request: GenerationRequest
    delay_seconds: float = 0.0
    questions: list[GeneratedQuestion] = Field(default_factory=list)
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class GenerationReport(BaseModel):
    """Outcome of one generation run."""

    requested: int
    questions: list[GeneratedQuestion] = Field(default_factory=list)
    raw_count: int = 0
    deduplicated_count: int = 0
    failed_batches: int = 0
    topped_up: bool = False

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - len(self.questions))


class BoundingBox(BaseModel):
    """Region on a page, as origin+size or as two corners, fractional or pixels."""

    model_config = ConfigDict(frozen=True)

    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    x1: float | None = None
    y1: float | None = None
    x2: float | None = None
    y2: float | None = None

    @model_validator(mode="after")
    def _require_complete_shape(self) -> "BoundingBox":
        if not (self.is_corner_format or self.is_rect_format):
            raise ValueError(
                "bounding box needs either x, y, width, height or x1, y1, x2, y2"
            )
        return self

    @property
    def is_corner_format(self) -> bool:
        return None not in (self.x1, self.y1, self.x2, self.y2)

    @property
    def is_rect_format(self) -> bool:
        return None not in (self.x, self.y, self.width, self.height)


class CanonicalRect(BaseModel):
    """Clamped pixel rectangle in origin+size form."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


class RasterPage(BaseModel):
    """PNG rendering of a single PDF page."""

    image: bytes
    width: int
    height: int
    page_number: int
    engine: str


class PageRegion(BaseModel):
    """Bounding box tagged with the 1-indexed page it belongs to."""

    page_number: int = Field(ge=1)
    bbox: BoundingBox
