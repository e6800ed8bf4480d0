import asyncio
import io
import json

import fitz
import pytest
from PIL import Image

from examforge.models.base import ModelClient
from examforge.schema import GenerationRequest


def make_png(width: int = 100, height: int = 50, color=(255, 255, 255)) -> bytes:
    """Encode a solid-color RGB image as PNG."""
    img = Image.new("RGB", (width, height), color=color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def png_size(png: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(png)) as img:
        return img.size


def make_pdf(pages: int = 3) -> bytes:
    """Build a small PDF with one line of text per page."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=200, height=300)
        page.insert_text((20, 40), f"Page {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def question_records(prefix: str, n: int, **overrides) -> list[dict]:
    """n question records whose texts share no significant words with each other."""
    records = []
    for i in range(n):
        record = {
            "id": f"model_{i}",
            "type": "mcq_single",
            "text": f"{prefix}{i}x {prefix}{i}y {prefix}{i}z",
            "options": ["A1", "B1", "C1", "D1"],
            "correct": ["A1"],
            "difficulty": "medium",
        }
        record.update(overrides)
        records.append(record)
    return records


def reply(prefix: str, n: int, **overrides) -> str:
    """A fenced JSON reply the way the model tends to send it."""
    return "```json\n" + json.dumps(question_records(prefix, n, **overrides)) + "\n```"


class FakeModelClient(ModelClient):
    """Scripted client: each call consumes the next reply (a string, or an exception to raise).

    delays, when given, holds the simulated latency of each call in call order.
    """

    def __init__(self, replies, configured: bool = True, delays=None):
        super().__init__(model_name="fake-model")
        self.replies = list(replies)
        self.delays = list(delays or [])
        self.prompts: list[str] = []
        self.started: list[float] = []
        self.configured = configured

    def ensure_configured(self) -> None:
        if not self.configured:
            from examforge.errors import ConfigurationError

            raise ConfigurationError("no credentials")

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.started.append(asyncio.get_running_loop().time())
        item = self.replies.pop(0)
        delay = self.delays.pop(0) if self.delays else 0
        if delay:
            await asyncio.sleep(delay)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def pdf_bytes():
    return make_pdf(3)


@pytest.fixture
def base_request():
    return GenerationRequest(
        topic="Photosynthesis",
        subject="Biology",
        grade="10",
        count=5,
        difficulty=50,
    )
