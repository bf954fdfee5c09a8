"""
Query Validator
Flags ambiguous or poorly scoped queries and suggests improvements
"""

import re
import logging
from typing import List, Optional

from ..core.models import (
    QueryContext,
    QuerySuggestion,
    QueryValidationResult,
    ValidationIssue,
)
from .intent_classifier import IntentClassifier
from .lexicon import (
    AMBIGUOUS_TERMS,
    AMBIGUOUS_QUERY_MAX_WORDS,
    KNOWN_LANGUAGES,
    MIN_QUERY_LENGTH,
    MAX_QUERY_LENGTH,
    UNCLEAR_INTENT_CONFIDENCE,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9_#+']+")


def has_language_context(query: str) -> bool:
    """True when the query names a known programming language"""
    lowered = query.lower()
    return any(lang in lowered for lang in KNOWN_LANGUAGES)


def estimate_quality(query: str, issues: List[ValidationIssue], context: QueryContext) -> float:
    quality = 0.8
    quality -= 0.3 * sum(1 for i in issues if i.severity == 'high')
    quality -= 0.15 * sum(1 for i in issues if i.severity == 'medium')

    if context.language:
        quality += 0.1
    if context.workspace_context is not None:
        quality += 0.1
    if context.recent_searches:
        quality += 0.05
    if 20 < len(query) < 100:
        quality += 0.1

    return max(0.1, min(quality, 1.0))


class QueryValidator:
    """Validates queries before search"""

    def __init__(self, intent_classifier: Optional[IntentClassifier] = None):
        self.intent_classifier = intent_classifier or IntentClassifier()

    async def validate_query(
        self,
        query: str,
        context: Optional[QueryContext] = None
    ) -> QueryValidationResult:
        """Validate a query and provide suggestions for improvement"""
        context = context or QueryContext()
        issues: List[ValidationIssue] = []
        suggestions: List[QuerySuggestion] = []

        if len(query) < MIN_QUERY_LENGTH:
            issues.append(ValidationIssue(
                type='too_narrow',
                severity='high',
                description='Query is too short to be meaningful',
                suggested_fix='Add more descriptive terms',
            ))

        if len(query) > MAX_QUERY_LENGTH:
            issues.append(ValidationIssue(
                type='too_broad',
                severity='medium',
                description='Query is very long and may be too broad',
                suggested_fix='Consider breaking into multiple specific queries',
            ))

        words = query.split()
        if len(words) < AMBIGUOUS_QUERY_MAX_WORDS:
            tokens = set(_WORD_RE.findall(query.lower()))
            found = [term for term in AMBIGUOUS_TERMS if term in tokens]
            if found:
                issues.append(ValidationIssue(
                    type='ambiguous',
                    severity='medium',
                    description=f"Query contains ambiguous terms: {', '.join(found)}",
                    suggested_fix="Be more specific about what you're looking for",
                ))

        if not context.language and not has_language_context(query):
            suggestions.append(QuerySuggestion(
                type='context_addition',
                suggested_query=f"{query} (specify programming language)",
                explanation='Adding language context will improve results',
                expected_improvement='More relevant language-specific results',
            ))

        intent = await self.intent_classifier.classify_intent(query, context)
        if intent.confidence < UNCLEAR_INTENT_CONFIDENCE:
            issues.append(ValidationIssue(
                type='unclear_intent',
                severity='medium',
                description='Query intent is unclear',
                suggested_fix='Be more specific about what you want to find or do',
            ))
            suggestions.append(QuerySuggestion(
                type='refinement',
                suggested_query=f"find implementation of {query}",
                explanation='Specify that you want to find implementation code',
                expected_improvement='More targeted search results',
            ))

        is_valid = not any(i.severity == 'high' for i in issues)
        if not is_valid:
            logger.debug(f"Query '{query}' failed validation: {[i.type for i in issues]}")

        return QueryValidationResult(
            is_valid=is_valid,
            issues=issues,
            suggestions=suggestions,
            estimated_quality=estimate_quality(query, issues, context),
        )
