"""
Tests for intent classification and the intent-keyed lexicon tables
"""

import pytest

from enhanced_search.core.models import QueryContext, QueryIntentType, RankingStrategy, SearchMode
from enhanced_search.semantic.intent_classifier import IntentClassifier, suggested_parameters_for
from enhanced_search.semantic.lexicon import (
    EXPECTED_RESULT_TYPES,
    RANKING_BY_INTENT,
    RELATED_QUERY_TEMPLATES,
    SEARCH_MODE_BY_INTENT,
    TECHNICAL_TERMS,
)
from enhanced_search.ranking.result_explainer import RELEVANCE_TEMPLATES


class TestIntentClassifier:

    @pytest.fixture
    def classifier(self):
        return IntentClassifier()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [
        "",
        "hi",
        "show me examples of authentication",
        "debug login issue",
        "where is the token parser used",
        "find code similar to the retry helper",
        "improve performance of the cache and refactor it",
        "what does the scheduler do",
        "singleton pattern in the config loader",
        "unit test for the parser",
        "x" * 500,
    ])
    async def test_always_returns_known_intent_with_bounded_confidence(self, classifier, query):
        intent = await classifier.classify_intent(query)
        assert intent.primary in set(QueryIntentType)
        assert 0.0 <= intent.confidence <= 1.0

    @pytest.mark.asyncio
    async def test_examples_query(self, classifier):
        intent = await classifier.classify_intent("show me examples of authentication")
        assert intent.primary == QueryIntentType.FIND_EXAMPLES
        assert intent.confidence > 0.8

    @pytest.mark.asyncio
    async def test_debug_query(self, classifier):
        intent = await classifier.classify_intent("debug login issue")
        assert intent.primary == QueryIntentType.DEBUG_ISSUE
        assert intent.confidence > 0.8

    @pytest.mark.asyncio
    async def test_default_is_find_implementation(self, classifier):
        intent = await classifier.classify_intent("payment gateway adapter")
        assert intent.primary == QueryIntentType.FIND_IMPLEMENTATION
        assert intent.confidence == pytest.approx(0.7)
        assert intent.secondary == []

    @pytest.mark.asyncio
    async def test_strictly_higher_confidence_wins(self, classifier):
        # examples (0.9) is evaluated first and beats debugging (0.85)
        intent = await classifier.classify_intent("example of how to fix a crash")
        assert intent.primary == QueryIntentType.FIND_EXAMPLES
        assert intent.confidence == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_equal_confidence_keeps_earlier_group(self, classifier):
        # patterns and usage both score 0.8; patterns comes first
        intent = await classifier.classify_intent("factory pattern usage")
        assert intent.primary == QueryIntentType.FIND_PATTERNS

    @pytest.mark.asyncio
    async def test_testing_only_adds_secondary(self, classifier):
        intent = await classifier.classify_intent("unit test for the parser")
        assert intent.primary == QueryIntentType.FIND_IMPLEMENTATION
        assert intent.secondary == ['testing']
        assert 'quality_assurance' in intent.context

    @pytest.mark.asyncio
    async def test_language_in_query_raises_confidence(self, classifier):
        context = QueryContext(language='python')
        intent = await classifier.classify_intent("python config loader", context)
        assert intent.confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_agent_type_overrides_default_intent(self, classifier):
        context = QueryContext(agent_type='code_review')
        intent = await classifier.classify_intent("payment gateway adapter", context)
        assert intent.primary == QueryIntentType.ANALYZE_QUALITY
        assert intent.confidence == pytest.approx(0.85)

    @pytest.mark.asyncio
    async def test_agent_type_does_not_override_specific_intent(self, classifier):
        context = QueryContext(agent_type='code_review')
        intent = await classifier.classify_intent("debug login issue", context)
        assert intent.primary == QueryIntentType.DEBUG_ISSUE

    @pytest.mark.asyncio
    async def test_confidence_is_capped(self, classifier):
        context = QueryContext(language='python')
        intent = await classifier.classify_intent("python example of how to use asyncio", context)
        assert intent.confidence == pytest.approx(1.0)

    def test_suggested_parameters(self):
        params = suggested_parameters_for(QueryIntentType.ANALYZE_QUALITY)
        assert params.search_mode == SearchMode.SEMANTIC
        assert params.ranking_strategy == RankingStrategy.QUALITY
        assert params.include_quality_metrics is True

        behavior = suggested_parameters_for(QueryIntentType.UNDERSTAND_BEHAVIOR)
        assert behavior.context_radius == 10


class TestIntentTables:

    @pytest.mark.parametrize("table", [
        SEARCH_MODE_BY_INTENT,
        RANKING_BY_INTENT,
        EXPECTED_RESULT_TYPES,
        RELATED_QUERY_TEMPLATES,
        TECHNICAL_TERMS,
        RELEVANCE_TEMPLATES,
    ])
    def test_every_intent_has_an_entry(self, table):
        assert set(table) == set(QueryIntentType)

    def test_relevance_templates_mention_intent(self):
        assert 'example' in RELEVANCE_TEMPLATES[QueryIntentType.FIND_EXAMPLES]
        assert 'error handling' in RELEVANCE_TEMPLATES[QueryIntentType.DEBUG_ISSUE]
        assert 'quality analysis' in RELEVANCE_TEMPLATES[QueryIntentType.ANALYZE_QUALITY]

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            SEARCH_MODE_BY_INTENT[QueryIntentType.FIND_USAGE] = SearchMode.SEMANTIC
