"""
Query Processor
Turns a raw natural-language query into a ProcessedQuery ready for retrieval
"""

import time
import logging
from typing import List, Optional

from ..core.models import (
    BoostFactor,
    EnhancedQuery,
    PenaltyFactor,
    ProcessedQuery,
    QueryContext,
    QueryIntent,
    QueryIntentType,
    QueryProcessingMetadata,
    QueryValidationResult,
    SearchFilterCriteria,
    SearchStrategy,
    SubQuery,
)
from ..utils.error_handler import QueryProcessingError
from .intent_classifier import IntentClassifier
from .query_enhancer import ContextualQueryEnhancer
from .query_decomposer import QueryDecomposer
from .query_validator import QueryValidator
from .lexicon import (
    COMPLEXITY_CONJUNCTIONS,
    COMPLEXITY_TECHNICAL_TERMS,
    EXPECTED_RESULT_TYPES,
    LANGUAGE_EXTENSIONS,
    TESTING_SECONDARY,
)

logger = logging.getLogger(__name__)

TEST_FILE_PATTERNS = ['*test*', '*spec*', '*.test.*', '*.spec.*']


def extension_for_language(language: str) -> str:
    return LANGUAGE_EXTENSIONS.get(language.lower(), '*')


def boost_factors_for(intent: QueryIntent) -> List[BoostFactor]:
    if intent.primary == QueryIntentType.FIND_EXAMPLES:
        return [BoostFactor(
            condition='hasTests', multiplier=1.3, weight=0.8,
            description='Code with tests is better for examples',
        )]
    if intent.primary == QueryIntentType.ANALYZE_QUALITY:
        return [BoostFactor(
            condition='highQualityScore', multiplier=1.5, weight=1.0,
            description='High quality code for quality analysis',
        )]
    if intent.primary == QueryIntentType.DEBUG_ISSUE:
        return [BoostFactor(
            condition='hasErrorHandling', multiplier=1.4, weight=0.9,
            description='Error handling code for debugging',
        )]
    return []


def penalty_factors_for(intent: QueryIntent) -> List[PenaltyFactor]:
    factors = [PenaltyFactor(
        condition='hasCodeSmells', multiplier=0.7, weight=0.6,
        description='Penalize code with detected smells',
    )]
    if intent.primary == QueryIntentType.FIND_EXAMPLES:
        factors.append(PenaltyFactor(
            condition='noDocumentation', multiplier=0.8, weight=0.7,
            description='Examples should be well documented',
        ))
    return factors


def search_strategy_for(intent: QueryIntent) -> SearchStrategy:
    params = intent.suggested_parameters
    return SearchStrategy(
        mode=params.search_mode,
        ranking=params.ranking_strategy,
        diversification=True,
        context_radius=params.context_radius,
        boost_factors=boost_factors_for(intent),
        penalty_factors=penalty_factors_for(intent),
    )


def filters_for(intent: QueryIntent, context: QueryContext) -> SearchFilterCriteria:
    criteria = {}
    if intent.primary == QueryIntentType.ANALYZE_QUALITY:
        criteria['quality_threshold'] = 0.7
    if context.language:
        criteria['include_file_patterns'] = [f"*.{extension_for_language(context.language)}"]
    if intent.primary == QueryIntentType.FIND_IMPLEMENTATION and TESTING_SECONDARY not in intent.secondary:
        criteria['exclude_file_patterns'] = list(TEST_FILE_PATTERNS)
    return SearchFilterCriteria(**criteria)


def query_complexity(query: str) -> float:
    """Score in [0, 1] from length, word count, technical terms and conjunctions"""
    lowered = query.lower()
    technical = sum(1 for term in COMPLEXITY_TECHNICAL_TERMS if term in lowered)
    conjunctions = len(COMPLEXITY_CONJUNCTIONS.findall(query))

    complexity = (
        0.3 * min(len(query) / 100, 1.0)
        + 0.3 * min(len(query.split()) / 10, 1.0)
        + 0.2 * min(technical / 5, 1.0)
        + 0.2 * min(conjunctions / 3, 1.0)
    )
    return max(0.0, min(complexity, 1.0))


class QueryProcessor:
    """
    Query understanding facade:
    validate -> classify -> enhance -> derive strategy, filters,
    expected result types and complexity.
    """

    def __init__(
        self,
        intent_classifier: Optional[IntentClassifier] = None,
        query_enhancer: Optional[ContextualQueryEnhancer] = None,
        query_decomposer: Optional[QueryDecomposer] = None,
        query_validator: Optional[QueryValidator] = None,
    ):
        self.intent_classifier = intent_classifier or IntentClassifier()
        self.query_enhancer = query_enhancer or ContextualQueryEnhancer()
        self.query_decomposer = query_decomposer or QueryDecomposer(self.intent_classifier)
        self.query_validator = query_validator or QueryValidator(self.intent_classifier)

    async def classify_intent(self, query: str, context: Optional[QueryContext] = None) -> QueryIntent:
        return await self.intent_classifier.classify_intent(query, context)

    async def enhance_query(
        self,
        query: str,
        intent: QueryIntent,
        context: Optional[QueryContext] = None
    ) -> EnhancedQuery:
        return await self.query_enhancer.enhance_query(query, intent, context)

    async def decompose_complex_query(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> List[SubQuery]:
        return await self.query_decomposer.decompose_complex_query(query, context)

    async def validate_query(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> QueryValidationResult:
        return await self.query_validator.validate_query(query, context)

    async def process_query(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> ProcessedQuery:
        """
        Process a query with full enhancement and analysis

        Raises:
            QueryProcessingError: if any step fails; no partial result is returned
        """
        if not isinstance(query, str):
            raise QueryProcessingError(
                "Query processing failed: query must be a string",
                {"type": type(query).__name__},
            )

        context = context or QueryContext()
        start = time.perf_counter()
        logger.debug(f"Processing query: '{query}'")

        try:
            validation = await self.validate_query(query, context)
            intent = await self.classify_intent(query, context)
            enhanced = await self.enhance_query(query, intent, context)

            filters = filters_for(intent, context)
            elapsed_ms = (time.perf_counter() - start) * 1000

            processed = ProcessedQuery(
                original_query=query,
                enhanced_query=enhanced.enhanced,
                intent=intent,
                search_strategy=search_strategy_for(intent),
                filters=filters,
                expected_result_types=list(EXPECTED_RESULT_TYPES.get(intent.primary, ('code',))),
                complexity_score=query_complexity(query),
                processing_metadata=QueryProcessingMetadata(
                    processing_time_ms=elapsed_ms,
                    enhancements_applied=enhanced.added_terms,
                    auto_filters_applied=filters.applied_keys(),
                    warnings=[i.description for i in validation.issues if i.severity == 'high'],
                    improvement_suggestions=[s.explanation for s in validation.suggestions],
                ),
            )
        except QueryProcessingError:
            raise
        except Exception as e:
            logger.error(f"Error processing query '{query}': {e}")
            raise QueryProcessingError(
                f"Query processing failed: {e}",
                {"query": query, "type": type(e).__name__},
            ) from e

        logger.debug(f"Query processed in {elapsed_ms:.2f}ms as {intent.primary.value}")
        return processed
