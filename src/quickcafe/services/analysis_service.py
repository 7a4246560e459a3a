"""Review analysis orchestration.

Turns raw review text into validated per-category confidences through the
text scorer, batch by batch, and persists the confident part through the
cache coordinator. Throttling, network errors and malformed model output
are expected here; each only costs the affected cafe its analysis for this
run.
"""

import asyncio
import logging
from collections.abc import Sequence

from quickcafe.config import settings
from quickcafe.entities import AnalysisResult, CafeEntity, InvalidResponse
from quickcafe.errors import UpstreamError
from quickcafe.protocols import TextScorer

from .cache_service import CacheCoordinator
from .prompts import build_scoring_request
from .retry import RetryPolicy
from .validation import validate_analysis

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Batched, retrying review analysis.

    Example:
        ```python
        orchestrator = AnalysisOrchestrator.create(
            scorer=OpenAITextScorer.create(),
            cache=cache_coordinator,
        )
        results = await orchestrator.analyze(cafes)
        ```
    """

    def __init__(
        self,
        scorer: TextScorer,
        cache: CacheCoordinator,
        retry_policy: RetryPolicy | None = None,
        batch_size: int | None = None,
        min_review_chars: int | None = None,
        max_reviews: int | None = None,
        review_char_budget: int | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            scorer: Text scoring service (required).
            cache: Cache coordinator used to persist results (required).
            retry_policy: Retry policy for scorer calls. Defaults to settings.
            batch_size: Cafes analyzed concurrently per batch. Defaults to settings.
            min_review_chars: Minimum total review text to analyze. Defaults to settings.
            max_reviews: Reviews sent per cafe. Defaults to settings.
            review_char_budget: Characters kept per review. Defaults to settings.
        """
        self._scorer = scorer
        self._cache = cache
        self._retry = retry_policy or RetryPolicy.create()
        self._batch_size = batch_size or settings.analysis_batch_size
        self._min_review_chars = (
            settings.min_review_chars if min_review_chars is None else min_review_chars
        )
        self._max_reviews = max_reviews or settings.max_reviews_per_cafe
        self._review_char_budget = review_char_budget or settings.review_char_budget

    @classmethod
    def create(
        cls,
        scorer: TextScorer,
        cache: CacheCoordinator,
        retry_policy: RetryPolicy | None = None,
    ) -> "AnalysisOrchestrator":
        """Factory method to create AnalysisOrchestrator with settings defaults."""
        return cls(scorer=scorer, cache=cache, retry_policy=retry_policy)

    def has_enough_text(self, cafe: CafeEntity) -> bool:
        return cafe.review_chars >= self._min_review_chars

    async def analyze(
        self,
        cafes: Sequence[CafeEntity],
        deadline: float | None = None,
    ) -> dict[str, AnalysisResult]:
        """Analyze cafes and persist their confident scores.

        Business logic:
        1. Skip cafes without enough review text
        2. Split the rest into batches of ``batch_size``
        3. Score each batch's cafes concurrently, batches one after another
        4. Validate and persist each result independently

        Args:
            cafes: Persisted cafes to analyze
            deadline: Optional ``time.monotonic()`` budget shared with retries

        Returns:
            Validated results keyed by cafe id; cafes that were skipped or
            failed are absent
        """
        eligible = [cafe for cafe in cafes if self.has_enough_text(cafe)]
        skipped = len(cafes) - len(eligible)
        if skipped:
            logger.info("Skipping %d cafes with insufficient review text", skipped)

        results: dict[str, AnalysisResult] = {}
        if not eligible:
            return results

        logger.info(
            "Analyzing %d cafes in batches of %d using %s",
            len(eligible),
            self._batch_size,
            self._scorer.model_name,
        )

        for start in range(0, len(eligible), self._batch_size):
            batch = eligible[start : start + self._batch_size]
            outcomes = await asyncio.gather(
                *(self._analyze_one(cafe, deadline) for cafe in batch)
            )
            succeeded = 0
            for cafe, outcome in zip(batch, outcomes):
                if outcome is not None:
                    results[cafe.id] = outcome
                    succeeded += 1
            logger.info("Batch complete: %d/%d successful", succeeded, len(batch))

        return results

    async def _analyze_one(
        self, cafe: CafeEntity, deadline: float | None
    ) -> AnalysisResult | None:
        request = build_scoring_request(
            cafe, max_reviews=self._max_reviews, char_budget=self._review_char_budget
        )

        try:
            raw = await self._retry.run(lambda: self._scorer.score(request), deadline=deadline)
        except UpstreamError as exc:
            logger.warning("Skipping analysis of %s: %s", cafe.id, exc)
            return None
        except Exception:
            logger.warning("Skipping analysis of %s after unexpected error", cafe.id, exc_info=True)
            return None

        outcome = validate_analysis(raw)
        if isinstance(outcome, InvalidResponse):
            logger.warning("Discarding malformed analysis for %s: %s", cafe.id, outcome.reason)
            return None

        try:
            await self._cache.record_analysis(
                cafe.id, outcome.vibe_scores, outcome.amenity_scores
            )
        except Exception:
            logger.warning("Could not persist analysis for %s", cafe.id, exc_info=True)
            return None

        return outcome
