"""
Query Decomposer
Splits multi-part queries into independently searchable sub-queries
"""

import logging
from typing import List, Optional

from ..core.models import QueryContext, SubQuery
from .intent_classifier import IntentClassifier
from .lexicon import (
    DECOMPOSITION_CONJUNCTIONS,
    SENTENCE_TERMINATORS,
    MIN_FRAGMENT_LENGTH,
    EXPECTED_RESULT_TYPES,
)

logger = logging.getLogger(__name__)


class QueryDecomposer:
    """Decomposes complex queries on conjunction keywords"""

    def __init__(self, intent_classifier: Optional[IntentClassifier] = None):
        self.intent_classifier = intent_classifier or IntentClassifier()

    @staticmethod
    def is_complex_query(query: str) -> bool:
        """A query is complex if it joins clauses, has several sentences, or is long and wordy"""
        if DECOMPOSITION_CONJUNCTIONS.search(query):
            return True
        if len(SENTENCE_TERMINATORS.findall(query)) >= 2:
            return True
        return len(query) > 100 and len(query.split()) > 15

    @staticmethod
    def split_fragments(query: str) -> List[str]:
        parts = (part.strip() for part in DECOMPOSITION_CONJUNCTIONS.split(query))
        return [part for part in parts if len(part) > MIN_FRAGMENT_LENGTH]

    async def decompose_complex_query(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> List[SubQuery]:
        """
        Decompose complex multi-part queries into sub-queries

        The first fragment is the anchor (priority high); later fragments
        have medium priority and depend on it. Returns an empty list when the
        query is simple or yields fewer than two usable fragments.
        """
        if not self.is_complex_query(query):
            return []

        fragments = self.split_fragments(query)
        if len(fragments) < 2:
            return []

        anchor = fragments[0]
        sub_queries: List[SubQuery] = []
        for i, fragment in enumerate(fragments):
            intent = await self.intent_classifier.classify_intent(fragment, context)
            expected = EXPECTED_RESULT_TYPES.get(intent.primary, ())
            sub_queries.append(SubQuery(
                query=fragment,
                intent=intent,
                priority='high' if i == 0 else 'medium',
                dependencies=[] if i == 0 else [anchor],
                expected_result_type=expected[0] if expected else 'code',
            ))

        logger.debug(f"Decomposed complex query into {len(sub_queries)} sub-queries")
        return sub_queries
