"""
Batched question generation.
요청을 배치로 나누어 병렬 생성하고 중복 제거 후 부족분을 보충합니다.

Large requests are split into staggered batches that run concurrently against
the model client. Results are merged in batch order, near-duplicates removed,
and a single top-up batch fills any shortfall.
"""

import asyncio
import logging
import math

from ..config import (
    BATCH_SIZE,
    BATCH_STAGGER_SECONDS,
    OVERGENERATION_FACTOR,
    TOP_UP_EXAMPLE_CHARS,
    TOP_UP_EXAMPLE_LIMIT,
    TOP_UP_FACTOR,
)
from ..models.base import ModelClient
from ..prompt import build_generation_prompt
from ..schema import Batch, GeneratedQuestion, GenerationReport, GenerationRequest
from .dedup import dedupe_questions
from .repair import parse_generated_questions

logger = logging.getLogger(__name__)


def plan_batches(
    request: GenerationRequest,
    batch_size: int = BATCH_SIZE,
    overgeneration: float = OVERGENERATION_FACTOR,
    stagger_seconds: float = BATCH_STAGGER_SECONDS,
) -> list[Batch]:
    """
    Split a request into batches of batch_size, inflated to absorb duplicate loss.

    The last batch takes the remainder; batch i is scheduled i * stagger_seconds
    after dispatch.
    """
    target = math.ceil(request.count * overgeneration)
    num_batches = math.ceil(target / batch_size)

    batches = []
    for i in range(num_batches):
        batch_count = target - i * batch_size if i == num_batches - 1 else batch_size
        if batch_count <= 0:
            continue
        batches.append(Batch(
            index=i,
            request=request.model_copy(update={"count": batch_count}),
            delay_seconds=i * stagger_seconds,
        ))
    return batches


def build_top_up_request(
    request: GenerationRequest,
    accepted: list[GeneratedQuestion],
    shortfall: int,
) -> GenerationRequest:
    """Request ~1.5x the shortfall, steering the model away from accepted questions."""
    existing = "; ".join(
        q.text[:TOP_UP_EXAMPLE_CHARS] for q in accepted[:TOP_UP_EXAMPLE_LIMIT]
    )
    needs = (
        f"{request.specific_needs or ''}. "
        f"IMPORTANT: Do NOT repeat questions similar to: {existing}"
    )
    return request.model_copy(update={
        "count": math.ceil(shortfall * TOP_UP_FACTOR),
        "specific_needs": needs,
    })


class QuestionGenerator:
    """Runs the batched generation pipeline against one model client."""

    def __init__(
        self,
        client: ModelClient,
        batch_size: int = BATCH_SIZE,
        stagger_seconds: float = BATCH_STAGGER_SECONDS,
        overgeneration: float = OVERGENERATION_FACTOR,
    ):
        self.client = client
        self.batch_size = batch_size
        self.stagger_seconds = stagger_seconds
        self.overgeneration = overgeneration

    async def generate(self, request: GenerationRequest) -> list[GeneratedQuestion]:
        """Return at most request.count distinct questions."""
        report = await self.run(request)
        return report.questions

    async def run(self, request: GenerationRequest) -> GenerationReport:
        """Run the pipeline and report how the requested count was met."""
        self.client.ensure_configured()

        if request.count <= self.batch_size:
            raw = await self._generate_single_batch(request)
            questions = dedupe_questions(raw)
            return self._finish(request, GenerationReport(
                requested=request.count,
                raw_count=len(raw),
                deduplicated_count=len(questions),
                questions=questions,
            ))

        logger.info("Starting parallel generation for %d questions...", request.count)
        batches = plan_batches(
            request,
            batch_size=self.batch_size,
            overgeneration=self.overgeneration,
            stagger_seconds=self.stagger_seconds,
        )
        logger.info("Planning %d batches of ~%d questions each", len(batches), self.batch_size)

        await self._run_batches(batches)

        # Merge in dispatch order; completion order is irrelevant.
        raw = [q for batch in batches for q in batch.questions]
        failed = sum(1 for batch in batches if not batch.succeeded)
        logger.info("Raw generated count: %d (%d failed batches)", len(raw), failed)

        questions = dedupe_questions(raw)
        logger.info("Count after de-duplication: %d", len(questions))

        report = GenerationReport(
            requested=request.count,
            raw_count=len(raw),
            deduplicated_count=len(questions),
            failed_batches=failed,
        )

        if len(questions) < request.count:
            shortfall = request.count - len(questions)
            logger.warning("Short by %d questions. Running top-up batch...", shortfall)
            report.topped_up = True
            top_up_request = build_top_up_request(request, questions, shortfall)
            try:
                top_up = await self._generate_single_batch(top_up_request)
            except Exception as e:
                logger.error("Top-up batch failed: %s", e)
            else:
                questions = dedupe_questions(questions + top_up)

        report.questions = questions
        return self._finish(request, report)

    def _finish(self, request: GenerationRequest, report: GenerationReport) -> GenerationReport:
        report.questions = report.questions[:request.count]
        if report.shortfall:
            logger.warning(
                "Returning %d of %d requested questions",
                len(report.questions), request.count,
            )
        return report

    async def _run_batches(self, batches: list[Batch]) -> None:
        """Run all batches concurrently, recording each outcome in its own slot."""
        outcomes = await asyncio.gather(
            *(self._run_delayed(batch) for batch in batches),
            return_exceptions=True,
        )
        for batch, outcome in zip(batches, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Batch %d failed: %s", batch.index + 1, outcome)
                batch.error = outcome
            else:
                batch.questions = outcome

    async def _run_delayed(self, batch: Batch) -> list[GeneratedQuestion]:
        if batch.delay_seconds > 0:
            await asyncio.sleep(batch.delay_seconds)
        return await self._generate_single_batch(batch.request)

    async def _generate_single_batch(self, request: GenerationRequest) -> list[GeneratedQuestion]:
        logger.info(
            "Generating %d questions on %r using %s...",
            request.count, request.topic, self.client.model_name,
        )
        raw_text = await self.client.generate_text(build_generation_prompt(request))
        return parse_generated_questions(raw_text, request)


def generate_questions(
    request: GenerationRequest,
    client: ModelClient | None = None,
) -> list[GeneratedQuestion]:
    """Synchronous entry point: build a Gemini client from settings unless one is given."""
    if client is None:
        from ..models.gemini_client import GeminiClient

        client = GeminiClient.from_settings()
    return asyncio.run(QuestionGenerator(client).generate(request))
