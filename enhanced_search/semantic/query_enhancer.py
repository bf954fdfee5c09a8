"""
Contextual Query Enhancer
Enhances queries based on current context and intent
"""

import logging
from typing import List, Optional

from ..core.models import EnhancedQuery, QueryContext, QueryIntent, QueryIntentType
from .lexicon import TECHNICAL_TERMS, CONTEXTUAL_ENHANCEMENTS

logger = logging.getLogger(__name__)

MAX_TECHNICAL_TERMS = 2
MAX_TERMS_PER_CATEGORY = 1


class ContextualQueryEnhancer:
    """
    Enhances search queries by appending:
    - The context language when the query lacks it
    - Technical terms associated with the detected intent
    - Related terms for recognized domain keywords (api, database, auth, ...)
    - Workspace frameworks the query refers to

    A term is never added when the enhanced text already contains it
    (case-insensitive substring).
    """

    def _technical_terms_for(self, intent: QueryIntentType, text: str) -> List[str]:
        lowered = text.lower()
        terms = [t for t in TECHNICAL_TERMS.get(intent, ()) if t.lower() not in lowered]
        return terms[:MAX_TECHNICAL_TERMS]

    def _contextual_terms_for(self, text: str) -> List[str]:
        lowered = text.lower()
        terms: List[str] = []
        for keyword, related in CONTEXTUAL_ENHANCEMENTS.items():
            if keyword in lowered:
                fresh = [t for t in related if t.lower() not in lowered]
                terms.extend(fresh[:MAX_TERMS_PER_CATEGORY])
        return terms

    @staticmethod
    def _confidence(original: str, enhanced: str, added_terms: List[str]) -> float:
        confidence = 0.8

        # Too many additions dilute the query
        if len(added_terms) > 5:
            confidence -= 0.2

        ratio = len(enhanced) / max(len(original), 1)
        if 1.2 < ratio < 2.0:
            confidence += 0.1
        elif ratio > 2.0:
            confidence -= 0.1

        return max(0.1, min(confidence, 1.0))

    async def enhance_query(
        self,
        query: str,
        intent: QueryIntent,
        context: Optional[QueryContext] = None
    ) -> EnhancedQuery:
        """
        Enhance a query with relevant technical terms and context

        Args:
            query: Original query text
            intent: Classified intent of the query
            context: Optional request context

        Returns:
            EnhancedQuery with the added terms listed in order
        """
        context = context or QueryContext()
        enhanced = query.strip()
        added_terms: List[str] = []
        context_keywords: List[str] = list(intent.context)

        def append(term: str) -> bool:
            nonlocal enhanced
            if term.lower() in enhanced.lower():
                return False
            enhanced = f"{enhanced} {term}" if enhanced else term
            added_terms.append(term)
            return True

        # Language goes in front
        if context.language and context.language.lower() not in enhanced.lower():
            enhanced = f"{context.language} {enhanced}".strip()
            added_terms.append(context.language)

        for term in self._technical_terms_for(intent.primary, enhanced):
            append(term)

        for term in self._contextual_terms_for(enhanced):
            if append(term):
                context_keywords.append(term)

        workspace = context.workspace_context
        if workspace and workspace.frameworks:
            query_lower = query.lower()
            for framework in workspace.frameworks:
                if 'framework' in query_lower or framework.lower() in query_lower:
                    append(framework)

        confidence = self._confidence(query, enhanced, added_terms)
        logger.debug(f"Enhanced '{query}' -> '{enhanced}' (+{len(added_terms)} terms)")

        return EnhancedQuery(
            original=query,
            enhanced=enhanced,
            added_terms=added_terms,
            context_keywords=context_keywords,
            confidence=confidence,
        )
