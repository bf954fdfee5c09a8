"""
Intent Classifier
Classifies user query intent to optimize search strategy
"""

import logging
from typing import List, Optional, Tuple

from ..core.models import QueryContext, QueryIntent, QueryIntentType, SuggestedParameters
from .lexicon import (
    INTENT_PATTERN_GROUPS,
    DEFAULT_INTENT,
    DEFAULT_INTENT_CONFIDENCE,
    TESTING_SECONDARY,
    LANGUAGE_MATCH_BONUS,
    AGENT_OVERRIDE_BONUS,
    AGENT_INTENT_OVERRIDES,
    SEARCH_MODE_BY_INTENT,
    RANKING_BY_INTENT,
)

logger = logging.getLogger(__name__)


def suggested_parameters_for(intent: QueryIntentType) -> SuggestedParameters:
    """Search parameters recommended for a primary intent"""
    return SuggestedParameters(
        search_mode=SEARCH_MODE_BY_INTENT[intent],
        ranking_strategy=RANKING_BY_INTENT[intent],
        include_quality_metrics=intent == QueryIntentType.ANALYZE_QUALITY,
        include_relationships=intent in (QueryIntentType.FIND_USAGE, QueryIntentType.FIND_SIMILAR),
        include_explanations=True,
        context_radius=10 if intent == QueryIntentType.UNDERSTAND_BEHAVIOR else 5,
    )


class IntentClassifier:
    """
    Classifies search queries into one of eight intents:
    - find_implementation: default when nothing more specific matches
    - find_examples / debug_issue / find_patterns / find_usage
    - find_similar / analyze_quality / understand_behavior

    A "testing" match never changes the primary intent, it only adds a
    secondary tag.
    """

    def __init__(self, groups=INTENT_PATTERN_GROUPS):
        self.groups = groups

    async def classify_intent(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> QueryIntent:
        """
        Classify the intent of a search query

        Args:
            query: The search query to classify
            context: Optional request context (language, agent type)

        Returns:
            QueryIntent with confidence in [0, 1]
        """
        context = context or QueryContext()
        query_lower = query.lower()

        secondary: List[str] = []
        context_keywords: List[str] = []
        best: Tuple[QueryIntentType, float] = (DEFAULT_INTENT, DEFAULT_INTENT_CONFIDENCE)

        for group in self.groups:
            if not any(p.search(query_lower) for p in group.patterns):
                continue
            context_keywords.extend(group.context_keywords)
            if group.target is None:
                if TESTING_SECONDARY not in secondary:
                    secondary.append(TESTING_SECONDARY)
                continue
            if group.confidence > best[1]:
                best = (group.target, group.confidence)

        primary, confidence = best

        # Adjust confidence based on context
        if context.language and context.language.lower() in query_lower:
            confidence += LANGUAGE_MATCH_BONUS

        if context.agent_type and primary == DEFAULT_INTENT:
            override = AGENT_INTENT_OVERRIDES.get(context.agent_type)
            if override is not None:
                primary = override
                confidence += AGENT_OVERRIDE_BONUS

        confidence = min(confidence, 1.0)
        logger.debug(f"Classified '{query}' as {primary.value} ({confidence:.2f})")

        return QueryIntent(
            primary=primary,
            secondary=secondary,
            confidence=confidence,
            context=context_keywords,
            suggested_parameters=suggested_parameters_for(primary),
        )
