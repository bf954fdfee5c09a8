"""
Result Ranker
Multi-criteria ranking with conditional boosts/penalties and recency tie-breaking
"""

import time
import logging
from typing import List, Optional, Sequence, Tuple

from ..core.config import RankingConfig, get_config
from ..core.models import (
    EnrichedResult,
    ProcessedQuery,
    RankedResult,
    RankingFactor,
    RankingStrategy,
    SearchOptions,
    fields_of,
)
from .conditions import ConditionContext, age_in_days, evaluate_condition

logger = logging.getLogger(__name__)

# (max age in days, score), first matching band wins
RECENCY_BANDS: Tuple[Tuple[float, float], ...] = (
    (7, 1.0),
    (30, 0.9),
    (90, 0.7),
    (180, 0.5),
    (365, 0.3),
)
STALE_RECENCY_SCORE = 0.1


def recency_score(timestamp: Optional[float], reference_time: float) -> float:
    """Banded decay of age; unknown timestamps count as stale"""
    age = age_in_days(timestamp, reference_time)
    if age is None:
        return STALE_RECENCY_SCORE
    for max_age, score in RECENCY_BANDS:
        if age <= max_age:
            return score
    return STALE_RECENCY_SCORE


class ResultRanker:
    """
    Scores results for a ranking strategy:

    - relevance / balanced: vector similarity
    - quality: similarity blended with overall quality score
    - recency: similarity blended with banded age decay
    - usage: similarity blended with usage frequency

    then multiplies in every boost and penalty whose condition holds.
    """

    def __init__(self, config: Optional[RankingConfig] = None):
        self.config = config or get_config().ranking

    def _strategy_base(self, result: EnrichedResult, strategy: RankingStrategy, ctx: ConditionContext) -> float:
        base = result.score
        if strategy == RankingStrategy.QUALITY:
            blend = self.config.quality_blend
            return base * (1 - blend) + (result.quality_metrics.overall_score / 100.0) * blend
        if strategy == RankingStrategy.RECENCY:
            blend = self.config.recency_blend
            return base * (1 - blend) + recency_score(result.timestamp, ctx.reference_time) * blend
        if strategy == RankingStrategy.USAGE:
            blend = self.config.usage_blend
            usage = max(0.0, min(1.0, result.enhanced_metadata.usage_frequency))
            return base * (1 - blend) + usage * blend
        return base

    def _apply_factors(
        self,
        score: float,
        factors: Sequence[RankingFactor],
        kind: str,
        result: EnrichedResult,
        ctx: ConditionContext,
        adjustments: List[str]
    ) -> float:
        for factor in factors:
            if evaluate_condition(factor.condition, result, ctx):
                score *= factor.multiplier
                adjustments.append(f"{kind}:{factor.condition} x{factor.multiplier}")
        return score

    def score_result(
        self,
        result: EnrichedResult,
        processed_query: ProcessedQuery,
        strategy: RankingStrategy,
        ctx: ConditionContext
    ) -> RankedResult:
        adjustments: List[str] = []
        score = self._strategy_base(result, strategy, ctx)
        score = self._apply_factors(
            score, processed_query.search_strategy.boost_factors, 'boost', result, ctx, adjustments
        )
        score = self._apply_factors(
            score, processed_query.search_strategy.penalty_factors, 'penalty', result, ctx, adjustments
        )
        return RankedResult(
            **fields_of(result, EnrichedResult),
            composite_score=max(0.0, score),
            applied_adjustments=adjustments,
        )

    @staticmethod
    def _sort_key(result: RankedResult) -> Tuple:
        """Total order used before tie-breaking"""
        return (
            -result.composite_score,
            -result.timestamp,
            -result.score,
            result.file_path,
            result.id,
            result.snapshot_id,
        )

    @staticmethod
    def _tie_key(result: RankedResult) -> Tuple:
        """Order inside a tie group: newest first"""
        return (
            -result.timestamp,
            -result.composite_score,
            -result.score,
            result.file_path,
            result.id,
            result.snapshot_id,
        )

    def _break_ties(self, ordered: List[RankedResult]) -> List[RankedResult]:
        """Group results within the threshold of each group's leading score and reorder by recency"""
        threshold = self.config.tie_break_threshold
        final: List[RankedResult] = []
        i = 0
        while i < len(ordered):
            leader = ordered[i].composite_score
            j = i + 1
            while j < len(ordered) and leader - ordered[j].composite_score < threshold:
                j += 1
            final.extend(sorted(ordered[i:j], key=self._tie_key))
            i = j
        return final

    async def rank_results(
        self,
        results: Sequence[EnrichedResult],
        processed_query: ProcessedQuery,
        options: Optional[SearchOptions] = None,
        reference_time: Optional[float] = None
    ) -> List[RankedResult]:
        """
        Rank results for the query's strategy (or the options override)

        Args:
            results: Enriched results
            processed_query: Output of query processing
            options: Optional search options; ranking_strategy overrides the query's
            reference_time: Epoch seconds used for recency; captured once if omitted

        Returns:
            Ranked results, best first
        """
        if not results:
            return []

        strategy = (options.ranking_strategy if options and options.ranking_strategy
                    else processed_query.search_strategy.ranking)
        ctx = ConditionContext(
            config=self.config,
            reference_time=time.time() if reference_time is None else reference_time,
        )

        scored: List[RankedResult] = []
        for result in results:
            try:
                scored.append(self.score_result(result, processed_query, strategy, ctx))
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Excluding result {result.id} from ranking: {e}")

        scored.sort(key=self._sort_key)
        ranked = self._break_ties(scored)

        logger.debug(f"Ranked {len(ranked)} results with strategy {strategy.value}")
        return ranked
