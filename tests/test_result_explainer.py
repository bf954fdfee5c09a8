"""
Tests for explanation, suggestion and alternative synthesis
"""

import pytest
import pytest_asyncio

from enhanced_search.core.config import ExplanationConfig
from enhanced_search.core.models import QualityMetrics, SecurityConsideration
from enhanced_search.ranking.result_explainer import ExplanationSynthesizer, result_similarity, similarity_level


class TestExplanationSynthesizer:

    @pytest.fixture
    def synthesizer(self):
        return ExplanationSynthesizer(ExplanationConfig())

    @pytest_asyncio.fixture
    async def implementation_query(self, processor):
        return await processor.process_query("token refresh handler")

    @pytest_asyncio.fixture
    async def examples_query(self, processor):
        return await processor.process_query("show me examples of authentication")

    @pytest.mark.asyncio
    async def test_every_result_has_confidence_factors(self, synthesizer, implementation_query, make_ranked):
        ranked = [make_ranked(f"r{i}", f"src/f{i}.py", 0.9 - i * 0.1) for i in range(4)]

        for detailed in (True, False):
            explained = await synthesizer.generate_explanations_and_suggestions(
                ranked, implementation_query, detailed=detailed
            )
            assert len(explained) == 4
            assert all(len(r.explanation.confidence_factors) >= 1 for r in explained)
            assert all(
                r.explanation.confidence_factors[0].factor == 'Semantic Similarity' for r in explained
            )

    @pytest.mark.asyncio
    async def test_explanation_content(self, synthesizer, implementation_query, make_ranked):
        [explained] = await synthesizer.generate_explanations_and_suggestions(
            [make_ranked('r0', 'src/auth/tokens.py', 0.85)], implementation_query
        )
        explanation = explained.explanation

        assert explanation.why_relevant.startswith("This result ranks #1 with high semantic similarity")
        assert 'handler' in explanation.key_features
        assert 'handler' in explanation.matched_concepts
        assert [f.factor for f in explanation.confidence_factors] == [
            'Semantic Similarity', 'Quality Score', 'Relevance Rank', 'Documentation'
        ]
        assert explanation.semantic_similarity.startswith("High semantic match (85.0%)")
        assert explanation.behavioral_similarity is None

    @pytest.mark.asyncio
    async def test_intent_specific_relevance(self, synthesizer, examples_query, processor, make_ranked):
        result = make_ranked('r0', 'src/a.py', 0.7)
        debug_query = await processor.process_query("debug login issue")
        quality_query = await processor.process_query("analyze quality of the billing module")

        assert 'example' in synthesizer.why_relevant(result, examples_query, 0)
        assert 'error handling' in synthesizer.why_relevant(result, debug_query, 0)
        assert 'quality analysis' in synthesizer.why_relevant(result, quality_query, 0)

    @pytest.mark.asyncio
    async def test_behavioral_mode_adds_behavioral_similarity(self, synthesizer, processor, make_ranked):
        behavior_query = await processor.process_query("what does the scheduler do")
        explanation = synthesizer.explain(make_ranked('r0', 'src/a.py', 0.7), behavior_query, 0)
        assert explanation.behavioral_similarity is not None

    @pytest.mark.asyncio
    async def test_minimal_explanation_when_not_detailed(self, synthesizer, examples_query, make_ranked):
        [explained] = await synthesizer.generate_explanations_and_suggestions(
            [make_ranked('r0', 'src/a.py', 0.7)], examples_query, detailed=False
        )
        assert explained.explanation.why_relevant == 'Semantic match found'
        assert explained.suggestions == []
        assert explained.alternatives == []

    @pytest.mark.asyncio
    async def test_suggestions(self, synthesizer, examples_query, make_ranked):
        weak = make_ranked(
            'weak', 'src/a.py', 0.7,
            quality=QualityMetrics(readability_score=0.4, documentation_ratio=0.1),
        )
        weak.enhanced_metadata.security_considerations.append(SecurityConsideration(
            type='vulnerability', severity='high', description='Potential XSS vulnerability detected',
        ))

        types = [s.type for s in synthesizer.suggestions(weak, examples_query)]
        assert types == ['improvement', 'testing', 'documentation', 'security', 'usage']

    @pytest.mark.asyncio
    async def test_no_suggestions_for_healthy_result(self, synthesizer, implementation_query, make_ranked):
        healthy = make_ranked(
            'ok', 'src/a.py', 0.7,
            content="def test_refresh():\n    assert refresh()",
            quality=QualityMetrics(readability_score=0.9, documentation_ratio=0.8),
        )
        assert synthesizer.suggestions(healthy, implementation_query) == []

    @pytest.mark.asyncio
    async def test_alternatives(self, synthesizer, implementation_query, make_ranked):
        main = make_ranked('main', 'src/auth/tokens.py', 0.9)
        twin = make_ranked(
            'twin', 'src/auth/refresh.py', 0.8,
            quality=QualityMetrics(readability_score=0.95),
        )
        unrelated = make_ranked(
            'other', 'docs/guide.md', 0.7,
            content="Installation steps for the command line tool",
            semantic_type='documentation',
        )

        explained = await synthesizer.generate_explanations_and_suggestions(
            [main, twin, unrelated], implementation_query
        )
        alternatives = explained[0].alternatives

        assert [a.chunk_id for a in alternatives] == ['twin']
        assert alternatives[0].similarity_score >= 0.5
        assert "Different files: src/auth/tokens.py vs src/auth/refresh.py" in alternatives[0].differences
        assert alternatives[0].prefer_when == 'When higher code quality is preferred'
        assert alternatives[0].description == 'Alternative function implementation with high quality'
        assert explained[2].alternatives == []

    def test_result_similarity_bounds(self, make_ranked):
        a = make_ranked('a', 'src/a.py', 0.9, design_patterns=['Factory'])
        assert result_similarity(a, a) == pytest.approx(1.0)

    def test_similarity_level(self):
        assert similarity_level(0.81) == 'high'
        assert similarity_level(0.7) == 'good'
        assert similarity_level(0.6) == 'moderate'
