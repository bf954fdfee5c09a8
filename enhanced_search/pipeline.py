"""
Main Enhanced Search Pipeline Orchestrator
Coordinates query understanding, retrieval, ranking, diversification and explanation
"""

import asyncio
import time
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .core.models import (
    EnrichedResult,
    ExplainedResult,
    HydratedResult,
    ProcessedQuery,
    ProcessedResults,
    ProcessingStats,
    QueryContext,
    QueryIntentType,
    RankedResult,
    ResponseSuggestion,
    SearchOptions,
    SearchResponse,
    SubQuery,
    SubQueryOutcome,
)
from .core.config import get_config, Config
from .core.interfaces import ChunkMetadataProvider, ContentStore, EmbeddingProvider, VectorIndex
from .semantic.query_processor import QueryProcessor
from .semantic.lexicon import RELATED_QUERY_TEMPLATES
from .retrieval.diversifier import RetrievalDiversifier
from .retrieval.enrichment import ResultEnricher, ResultHydrator
from .ranking.result_ranker import ResultRanker
from .ranking.result_diversifier import ResultDiversifier
from .ranking.result_explainer import ExplanationSynthesizer
from .ranking.filter_manager import FilterManager
from .utils.performance_monitor import PerformanceMonitor
from .utils.error_handler import (
    StructuredError,
    ValidationError,
    classify_upstream_error,
)

logger = logging.getLogger(__name__)

LOW_RESULT_COUNT = 3


def intent_adjusted_threshold(intent: QueryIntentType, threshold: float) -> float:
    """Score threshold tightened (or relaxed) for the detected intent"""
    if intent == QueryIntentType.FIND_EXAMPLES:
        adjusted = max(0.7, threshold)
    elif intent == QueryIntentType.DEBUG_ISSUE:
        adjusted = max(0.6, threshold - 0.1)
    elif intent == QueryIntentType.FIND_SIMILAR:
        adjusted = max(0.75, threshold + 0.1)
    elif intent == QueryIntentType.ANALYZE_QUALITY:
        adjusted = max(0.8, threshold + 0.15)
    else:
        adjusted = threshold
    return min(adjusted, 1.0)


def diversity_score(results: Sequence[EnrichedResult]) -> float:
    """Mean of file, design-pattern and architectural-layer spread, in [0, 1]"""
    if not results:
        return 0.0
    files = {r.file_key for r in results}
    patterns = {p for r in results for p in r.enhanced_metadata.design_patterns}
    layers = {r.enhanced_metadata.architectural_layer for r in results}
    return (
        len(files) / len(results)
        + min(len(patterns) / 5, 1.0)
        + min(len(layers) / 3, 1.0)
    ) / 3


def average_quality_score(results: Sequence[EnrichedResult]) -> float:
    if not results:
        return 0.0
    return sum(r.quality_metrics.overall_score for r in results) / len(results)


def count_ranking_adjustments(before: Sequence[EnrichedResult], after: Sequence[RankedResult]) -> int:
    """Number of results whose position differs from the pre-ranking order"""
    original_positions = {(r.snapshot_id, r.id): i for i, r in enumerate(before)}
    return sum(
        1 for i, r in enumerate(after)
        if original_positions.get((r.snapshot_id, r.id)) != i
    )


class EnhancedSearchPipeline:
    """
    Main pipeline that orchestrates all enhanced search components

    This class coordinates:
    1. Query understanding (validation, intent, enhancement, decomposition)
    2. Diversified candidate retrieval (when collaborators are supplied)
    3. Enrichment and filtering
    4. Multi-criteria ranking
    5. Per-file and pattern diversification
    6. Explanation and suggestion synthesis

    No mutable state is kept between calls, so one instance can serve
    concurrent queries.
    """

    def __init__(
        self,
        config: Optional[Union[Config, Dict[str, Any]]] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        vector_index: Optional[VectorIndex] = None,
        content_store: Optional[ContentStore] = None,
        metadata_provider: Optional[ChunkMetadataProvider] = None,
    ):
        # Handle both Config object and dict
        if config is None:
            self.config = get_config()
        elif isinstance(config, dict):
            self.config = Config(**config)
        else:
            self.config = config

        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.content_store = content_store

        self.query_processor = QueryProcessor()
        self.retrieval_diversifier = RetrievalDiversifier(self.config.retrieval)
        self.hydrator = ResultHydrator(content_store, self.config.retrieval) if content_store else None
        self.enricher = ResultEnricher(metadata_provider)
        self.ranker = ResultRanker(self.config.ranking)
        self.result_diversifier = ResultDiversifier(self.config.diversification)
        self.explainer = ExplanationSynthesizer(self.config.explanation)

    # ------------------------------------------------------------------ #
    # Options
    # ------------------------------------------------------------------ #

    def coerce_options(self, options: Optional[Union[SearchOptions, Dict[str, Any]]]) -> SearchOptions:
        """Build SearchOptions from None, a dict or an existing instance"""
        if isinstance(options, SearchOptions):
            return options
        data = {'max_results_per_file': self.config.diversification.max_results_per_file}
        data.update(options or {})
        try:
            return SearchOptions.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid search options",
                {"errors": e.errors(include_url=False)},
            ) from e

    @staticmethod
    def apply_options(processed_query: ProcessedQuery, options: SearchOptions) -> ProcessedQuery:
        """Copy of the processed query with option overrides for mode, ranking and filters"""
        strategy_update = {}
        if options.search_mode is not None:
            strategy_update['mode'] = options.search_mode
        if options.ranking_strategy is not None:
            strategy_update['ranking'] = options.ranking_strategy

        update = {}
        if strategy_update:
            update['search_strategy'] = processed_query.search_strategy.model_copy(update=strategy_update)
        if options.filter_criteria is not None:
            update['filters'] = processed_query.filters.merged_with(options.filter_criteria)
        return processed_query.model_copy(update=update) if update else processed_query

    @staticmethod
    def context_radius_for(processed_query: ProcessedQuery, options: SearchOptions) -> int:
        """Lines of context around each chunk: the option, else the query's strategy"""
        if options.context_radius is not None:
            return options.context_radius
        return processed_query.search_strategy.context_radius

    @staticmethod
    def detail_flags(processed_query: ProcessedQuery, options: SearchOptions) -> Tuple[bool, bool]:
        """(include_quality_metrics, include_relationships), options over the intent's suggestions"""
        suggested = processed_query.intent.suggested_parameters
        include_quality = (options.include_quality_metrics
                           if options.include_quality_metrics is not None
                           else suggested.include_quality_metrics)
        include_relationships = (options.include_relationships
                                 if options.include_relationships is not None
                                 else suggested.include_relationships)
        return include_quality, include_relationships

    @staticmethod
    def trim_details(
        results: Sequence[ExplainedResult],
        include_quality: bool,
        include_relationships: bool
    ) -> List[ExplainedResult]:
        """Drop quality metrics and relationships the caller did not ask for"""
        update: Dict[str, Any] = {}
        if not include_quality:
            update['quality_metrics'] = None
        if not include_relationships:
            update['relationships'] = []
        if not update:
            return list(results)
        return [r.model_copy(update=update) for r in results]

    # ------------------------------------------------------------------ #
    # Stage entry points
    # ------------------------------------------------------------------ #

    async def process_query(self, query: str, context: Optional[QueryContext] = None) -> ProcessedQuery:
        """Understand a natural-language query"""
        return await self.query_processor.process_query(query, context)

    async def rank_results(
        self,
        enriched_results: Sequence[EnrichedResult],
        processed_query: ProcessedQuery,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None,
        reference_time: Optional[float] = None
    ) -> List[RankedResult]:
        options = self.coerce_options(options)
        return await self.ranker.rank_results(
            enriched_results, self.apply_options(processed_query, options), options, reference_time
        )

    async def diversify_results(
        self,
        ranked_results: Sequence[RankedResult],
        processed_query: ProcessedQuery,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None
    ) -> List[RankedResult]:
        options = self.coerce_options(options)
        return await self.result_diversifier.diversify_results(
            ranked_results, self.apply_options(processed_query, options), options
        )

    async def generate_explanations_and_suggestions(
        self,
        ranked_results: Sequence[RankedResult],
        processed_query: ProcessedQuery
    ) -> List[ExplainedResult]:
        return await self.explainer.generate_explanations_and_suggestions(ranked_results, processed_query)

    async def process_results(
        self,
        raw_results: Sequence[HydratedResult],
        processed_query: ProcessedQuery,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None
    ) -> ProcessedResults:
        """
        Enrich, filter, rank, diversify and explain retrieved results

        Args:
            raw_results: Hydrated results (location, score, content, timestamp)
            processed_query: Output of process_query
            options: Search options (limit, per-file cap, diversification, ...)

        Returns:
            ProcessedResults with at most ``options.limit`` results and stats
        """
        options = self.coerce_options(options)
        if not raw_results:
            return ProcessedResults()

        monitor = PerformanceMonitor("process_results")
        query = self.apply_options(processed_query, options)
        reference_time = time.time()

        with monitor.span('enrich'):
            enriched = await self.enricher.enrich(raw_results)

        with monitor.span('filter'):
            filtered = FilterManager.apply(enriched, query.filters)
            filtered = FilterManager.apply_score_threshold(filtered, options.score_threshold)
        monitor.increment_counter('dropped_in_enrichment', len(raw_results) - len(enriched))
        monitor.increment_counter('filtered_out', len(enriched) - len(filtered))

        with monitor.span('rank'):
            ranked = await self.ranker.rank_results(filtered, query, options, reference_time)

        with monitor.span('diversify'):
            diversified = await self.result_diversifier.diversify_results(ranked, query, options)

        with monitor.span('explain'):
            explained = await self.explainer.generate_explanations_and_suggestions(
                diversified, query, detailed=options.include_explanations
            )

        stats = ProcessingStats(
            original_count=len(raw_results),
            filtered_count=len(filtered),
            ranked_count=len(ranked),
            diversified_count=len(diversified),
            final_count=len(explained),
            processing_time_ms=monitor.elapsed_ms(),
            diversity_score=diversity_score(explained),
            average_quality_score=average_quality_score(explained),
            ranking_adjustments=count_ranking_adjustments(filtered, ranked),
            stage_timings_ms=dict(monitor.timings_ms),
        )
        logger.debug(f"Result processing metrics: {monitor.get_metrics()}")
        logger.info(
            f"Processed {stats.original_count} results -> {stats.final_count} "
            f"in {stats.processing_time_ms:.1f}ms (diversity {stats.diversity_score:.2f})"
        )
        explained = self.trim_details(explained, *self.detail_flags(query, options))
        return ProcessedResults(results=explained, stats=stats)

    # ------------------------------------------------------------------ #
    # End-to-end search
    # ------------------------------------------------------------------ #

    def _require_collaborators(self) -> None:
        missing = [
            name for name, value in (
                ('embedding_provider', self.embedding_provider),
                ('vector_index', self.vector_index),
                ('content_store', self.content_store),
            ) if value is None
        ]
        if missing:
            raise ValidationError(
                f"search requires collaborators: {', '.join(missing)}",
                {"missing": missing},
            )

    async def _retrieve(
        self,
        processed_query: ProcessedQuery,
        context: QueryContext,
        options: SearchOptions
    ) -> List[HydratedResult]:
        retrieval = self.config.retrieval
        base_threshold = (options.score_threshold if options.score_threshold is not None
                          else retrieval.score_threshold)
        threshold = intent_adjusted_threshold(processed_query.intent.primary, base_threshold)

        languages = options.languages or ([context.language] if context.language else [])
        language_hint = languages[0] if len(languages) == 1 else None
        snapshot_ids = options.snapshot_ids or context.available_snapshots

        try:
            vector = await self.embedding_provider.embed(processed_query.enhanced_query, language_hint)
        except Exception as e:
            raise classify_upstream_error(e, "embed") from e

        top_k = min(retrieval.max_top_k, options.limit * retrieval.oversampling_factor)
        try:
            candidates = await self.vector_index.query(
                vector, top_k, snapshot_ids or None, languages or None
            )
        except Exception as e:
            raise classify_upstream_error(e, "vector_index.query") from e

        # Hydrate before selecting so unreadable files do not take up slots
        floor = self.retrieval_diversifier.recall_floor(threshold)
        pool = [c for c in candidates if c.score >= floor]
        hydrated = {
            (h.snapshot_id, h.id): h
            for h in await self.hydrator.hydrate(pool, self.context_radius_for(processed_query, options))
        }
        available = [c for c in pool if (c.snapshot_id, c.id) in hydrated]

        selected = self.retrieval_diversifier.diversify(
            available, min(retrieval.max_top_k, 3 * options.limit), threshold
        )
        logger.debug(
            f"Retrieved {len(candidates)} candidates (top_k={top_k}), {len(available)} readable, "
            f"kept {len(selected)} at threshold {threshold:.2f}"
        )
        return [hydrated[(c.snapshot_id, c.id)] for c in selected]

    async def related_queries(self, processed_query: ProcessedQuery, context: QueryContext) -> List[str]:
        sub_queries = await self.query_processor.decompose_complex_query(processed_query.original_query, context)
        if sub_queries:
            return [sq.query for sq in sub_queries]
        query = processed_query.original_query.strip()
        return [
            template.format(query=query)
            for template in RELATED_QUERY_TEMPLATES[processed_query.intent.primary]
        ]

    @staticmethod
    def response_suggestions(processed_query: ProcessedQuery, stats: ProcessingStats, limit: int) -> List[ResponseSuggestion]:
        meta = processed_query.processing_metadata
        suggestions = [
            ResponseSuggestion(type='query_refinement', description=warning, priority='high')
            for warning in meta.warnings
        ]
        suggestions.extend(
            ResponseSuggestion(type='query_refinement', description=text, priority='medium')
            for text in meta.improvement_suggestions
        )
        if stats.final_count < min(LOW_RESULT_COUNT, limit):
            suggestions.append(ResponseSuggestion(
                type='follow_up_action',
                description='Few results found; broaden the query or relax filters',
                action='Remove filters or lower the score threshold',
                priority='medium',
                expected_benefit='More candidate results',
            ))
        return suggestions

    async def search(
        self,
        query: str,
        context: Optional[QueryContext] = None,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None
    ) -> SearchResponse:
        """
        Run the full pipeline against the configured collaborators

        Raises:
            ValidationError: malformed options or missing collaborators
            QueryProcessingError: query understanding failed
            UpstreamTransientError / UpstreamPermanentError: a collaborator failed
        """
        self._require_collaborators()
        context = context or QueryContext()
        options = self.coerce_options(options)
        start = time.perf_counter()

        processed_query = self.apply_options(await self.process_query(query, context), options)
        hydrated = await self._retrieve(processed_query, context, options)
        processed = await self.process_results(hydrated, processed_query, options)

        response = SearchResponse(
            processed_query=processed_query,
            results=processed.results,
            stats=processed.stats,
            related_queries=await self.related_queries(processed_query, context),
            suggestions=self.response_suggestions(processed_query, processed.stats, options.limit),
            candidates_retrieved=len(hydrated),
        )
        logger.info(
            f"Search '{query}' ({processed_query.intent.primary.value}) returned "
            f"{len(response.results)} results in {(time.perf_counter() - start) * 1000:.1f}ms"
        )
        return response

    async def _run_sub_query(
        self,
        sub_query: SubQuery,
        context: QueryContext,
        options: SearchOptions
    ) -> SubQueryOutcome:
        try:
            response = await self.search(sub_query.query, context, options)
        except StructuredError as e:
            logger.warning(f"Sub-query '{sub_query.query}' failed: {e}")
            return SubQueryOutcome(
                query=sub_query.query, priority=sub_query.priority,
                error=str(e), retryable=e.retryable,
            )
        except Exception as e:  # noqa: BLE001
            err = classify_upstream_error(e, "search")
            logger.warning(f"Sub-query '{sub_query.query}' failed: {err}")
            return SubQueryOutcome(
                query=sub_query.query, priority=sub_query.priority,
                error=str(err), retryable=err.retryable,
            )
        return SubQueryOutcome(query=sub_query.query, priority=sub_query.priority, response=response)

    async def search_decomposed(
        self,
        query: str,
        context: Optional[QueryContext] = None,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None
    ) -> List[SubQueryOutcome]:
        """
        Decompose a complex query and search every part concurrently

        A simple query runs as a single high-priority part. A failing part is
        reported in its outcome without affecting the others.
        """
        self._require_collaborators()
        context = context or QueryContext()
        options = self.coerce_options(options)

        sub_queries = await self.query_processor.decompose_complex_query(query, context)
        if not sub_queries:
            intent = await self.query_processor.classify_intent(query, context)
            sub_queries = [SubQuery(query=query, intent=intent, priority='high')]

        outcomes = await asyncio.gather(
            *(self._run_sub_query(sq, context, options) for sq in sub_queries)
        )
        failed = sum(1 for o in outcomes if not o.success)
        logger.info(f"Decomposed search ran {len(outcomes)} parts, {failed} failed")
        return list(outcomes)
