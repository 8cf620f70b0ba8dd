"""
pipeline.py - one analysis run, end to end.
Stages run strictly in order:
  1. Fetch      -> raw page markup
  2. Extract    -> review texts (document order)
  3. Sample     -> first max_batch_size texts
  4. Request    -> raw JSON text from Gemini
  5. Validate   -> Analysis
Any failure ends the run in FAILED with the error's kind; nothing partial is returned.
"""
import asyncio
import logging

from .agents.response_parser import parse_analysis
from .agents.review_analyst import ReviewAnalyst
from .config import AppConfig
from .errors import (
    AnalysisError,
    AnalysisTimeoutError,
    FetchError,
    MalformedAnalysisError,
    UpstreamTransportError,
    ValidationError,
)
from .models import Analysis, PipelineStage
from .sampling import sample_reviews
from .scrapers.bs4_scraper import PageFetcher, extract_reviews

logger = logging.getLogger("Pipeline")

PAGE_UNPARSEABLE_MESSAGE = "The product page could not be parsed."

# What an unexpected exception means, depending on where it escaped.
# A crash while parsing the page is a 500, never a "no reviews" 404.
_STAGE_ERRORS = {
    PipelineStage.FETCHING: (FetchError, None),
    PipelineStage.EXTRACTING: (FetchError, PAGE_UNPARSEABLE_MESSAGE),
    PipelineStage.SAMPLING: (FetchError, PAGE_UNPARSEABLE_MESSAGE),
    PipelineStage.REQUESTING: (UpstreamTransportError, None),
    PipelineStage.VALIDATING: (MalformedAnalysisError, None),
}


class ReviewAnalysisPipeline:
    """Serves exactly one request. Build a new instance per URL."""

    def __init__(self, config: AppConfig, fetcher: PageFetcher, analyst: ReviewAnalyst):
        self.config = config
        self.fetcher = fetcher
        self.analyst = analyst
        self.stage = PipelineStage.IDLE
        self.failure: str | None = None
        self.reviews_found = 0
        self.reviews_sent = 0

    def _enter(self, stage: PipelineStage) -> None:
        logger.debug(f"{self.stage.value} -> {stage.value}")
        self.stage = stage

    async def _with_deadline(self, coro, timeout: float):
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise AnalysisTimeoutError(f"Timed out after {timeout:g}s while {self.stage.value}.") from e

    def _wrap_unexpected(self, exc: Exception) -> AnalysisError:
        logger.error(f"Unexpected {type(exc).__name__} while {self.stage.value}: {exc}", exc_info=exc)
        error_cls, message = _STAGE_ERRORS[self.stage]
        return error_cls(message)

    async def run(self, url: str, timeout: float | None = None) -> Analysis:
        """
        `timeout` is the caller's deadline for each network stage;
        defaults to request_timeout_seconds from the config.
        """
        if self.stage != PipelineStage.IDLE:
            raise RuntimeError("ReviewAnalysisPipeline instances are single-use")
        deadline = self.config.request_timeout_seconds if timeout is None else timeout

        try:
            # ── STAGE 1: FETCH ───────────────────────────────────────
            self._enter(PipelineStage.FETCHING)
            page = await self._with_deadline(self.fetcher.fetch(url), deadline)

            # ── STAGE 2: EXTRACT ─────────────────────────────────────
            self._enter(PipelineStage.EXTRACTING)
            reviews = extract_reviews(page.html, self.config.review_selector)
            self.reviews_found = len(reviews)

            # ── STAGE 3: SAMPLE ──────────────────────────────────────
            self._enter(PipelineStage.SAMPLING)
            batch = sample_reviews(reviews, self.config.max_batch_size)
            self.reviews_sent = len(batch)
            logger.info(f"Extracted {self.reviews_found} reviews, sending {self.reviews_sent}")

            # ── STAGE 4: REQUEST ─────────────────────────────────────
            self._enter(PipelineStage.REQUESTING)
            raw_text = await self._with_deadline(self.analyst.analyze(batch), deadline)

            # ── STAGE 5: VALIDATE ────────────────────────────────────
            self._enter(PipelineStage.VALIDATING)
            analysis = parse_analysis(raw_text)

        except AnalysisError as e:
            self._fail(e)
            raise
        except asyncio.CancelledError:
            logger.warning(f"Run for {url} cancelled while {self.stage.value}")
            self.failure = "cancelled"
            self.stage = PipelineStage.FAILED
            raise
        except Exception as e:
            wrapped = self._wrap_unexpected(e)
            self._fail(wrapped)
            raise wrapped from e

        self._enter(PipelineStage.DONE)
        logger.info(f"Analysis complete for {url}")
        return analysis

    def _fail(self, error: AnalysisError) -> None:
        logger.error(f"Run failed while {self.stage.value} [{error.kind}]: {error.message}")
        self.failure = error.kind
        self.stage = PipelineStage.FAILED


async def analyze(
    url: str | None,
    *,
    config: AppConfig,
    fetcher: PageFetcher,
    analyst: ReviewAnalyst,
    timeout: float | None = None,
) -> Analysis:
    """Service entry point: validate input, then run a fresh pipeline."""
    if not url or not url.strip():
        raise ValidationError()
    pipeline = ReviewAnalysisPipeline(config, fetcher, analyst)
    return await pipeline.run(url.strip(), timeout=timeout)
