"""
Tests for per-file caps and design-pattern diversification of ranked results
"""

import pytest
import pytest_asyncio

from enhanced_search.core.config import DiversificationConfig
from enhanced_search.core.models import QualityMetrics, SearchOptions
from enhanced_search.ranking.result_diversifier import ResultDiversifier, complexity_level, function_key


def with_layer(result, layer):
    metadata = result.enhanced_metadata.model_copy(update={'architectural_layer': layer})
    return result.model_copy(update={'enhanced_metadata': metadata})


class TestResultDiversifier:

    @pytest.fixture
    def diversifier(self):
        return ResultDiversifier(DiversificationConfig())

    @pytest_asyncio.fixture
    async def processed_query(self, processor):
        return await processor.process_query("token refresh handler")

    @pytest.mark.asyncio
    async def test_per_file_cap(self, diversifier, processed_query, make_ranked):
        ranked = [make_ranked(f"a{i}", 'src/a.py', 0.9 - i * 0.01) for i in range(6)]
        ranked += [make_ranked(f"b{i}", 'src/b.py', 0.7 - i * 0.01) for i in range(3)]

        result = await diversifier.diversify_results(
            ranked, processed_query, SearchOptions(limit=10, max_results_per_file=2)
        )
        assert [r.id for r in result] == ['a0', 'a1', 'b0', 'b1']

    @pytest.mark.asyncio
    async def test_limit_respected(self, diversifier, processed_query, make_ranked):
        ranked = [make_ranked(f"r{i}", f"src/f{i}.py", 0.9 - i * 0.01) for i in range(10)]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=4))
        assert [r.id for r in result] == ['r0', 'r1', 'r2', 'r3']

    @pytest.mark.asyncio
    async def test_disabled_returns_top_n(self, diversifier, processed_query, make_ranked):
        ranked = [make_ranked(f"a{i}", 'src/a.py', 0.9 - i * 0.01) for i in range(6)]
        options = SearchOptions(limit=5, max_results_per_file=1, enable_diversification=False)

        result = await diversifier.diversify_results(ranked, processed_query, options)
        assert [r.id for r in result] == ['a0', 'a1', 'a2', 'a3', 'a4']

    @pytest.mark.asyncio
    async def test_strategy_without_diversification(self, diversifier, processed_query, make_ranked):
        strategy = processed_query.search_strategy.model_copy(update={'diversification': False})
        query = processed_query.model_copy(update={'search_strategy': strategy})
        ranked = [make_ranked(f"a{i}", 'src/a.py', 0.9 - i * 0.01) for i in range(4)]

        result = await diversifier.diversify_results(ranked, query, SearchOptions(max_results_per_file=1))
        assert len(result) == 4

    @pytest.mark.asyncio
    async def test_new_pattern_preferred_within_lookahead(self, diversifier, processed_query, make_ranked):
        ranked = [
            make_ranked('s1', 'src/a.py', 0.95, design_patterns=['Singleton']),
            make_ranked('s2', 'src/b.py', 0.94, design_patterns=['Singleton']),
            make_ranked('plain', 'src/c.py', 0.93),
            make_ranked('f1', 'src/d.py', 0.92, design_patterns=['Factory']),
        ]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=4))

        # s2 only repeats Singleton, so results within the window that do not are admitted first
        assert [r.id for r in result] == ['s1', 'plain', 'f1', 's2']

    @pytest.mark.asyncio
    async def test_lookahead_is_bounded(self, processed_query, make_ranked):
        diversifier = ResultDiversifier(DiversificationConfig(pattern_lookahead=2))
        ranked = [
            make_ranked('s1', 'src/a.py', 0.95, design_patterns=['Singleton']),
            make_ranked('s2', 'src/b.py', 0.94, design_patterns=['Singleton']),
            make_ranked('s3', 'src/c.py', 0.93, design_patterns=['Singleton']),
            make_ranked('f1', 'src/d.py', 0.92, design_patterns=['Factory']),
        ]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=2))
        assert [r.id for r in result] == ['s1', 's2']

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,cap", [(1, 1), (3, 1), (5, 2), (8, 3), (20, 2)])
    async def test_invariants(self, diversifier, processed_query, make_ranked, limit, cap):
        ranked = [
            make_ranked(f"r{i}", f"src/f{i % 3}.py", 0.99 - i * 0.01,
                        design_patterns=[['Singleton'], ['Factory'], []][i % 3])
            for i in range(15)
        ]
        result = await diversifier.diversify_results(
            ranked, processed_query, SearchOptions(limit=limit, max_results_per_file=cap)
        )

        assert len(result) <= limit
        counts = {}
        for r in result:
            counts[r.file_path] = counts.get(r.file_path, 0) + 1
        assert max(counts.values()) <= cap
        assert len({r.id for r in result}) == len(result)

    @pytest.mark.asyncio
    async def test_empty(self, diversifier, processed_query):
        assert await diversifier.diversify_results([], processed_query, SearchOptions()) == []

    @pytest.mark.asyncio
    async def test_per_function_cap(self, diversifier, processed_query, make_ranked):
        ranked = [make_ranked(f"h{i}", 'src/a.py', 0.9 - i * 0.01) for i in range(3)]
        ranked.append(make_ranked('other', 'src/a.py', 0.8, content="def other(request):\n    return None"))

        result = await diversifier.diversify_results(
            ranked, processed_query, SearchOptions(limit=10, max_results_per_file=5)
        )
        assert [r.id for r in result] == ['h0', 'h1', 'other']

    @pytest.mark.asyncio
    async def test_per_function_cap_is_configurable(self, processed_query, make_ranked):
        diversifier = ResultDiversifier(DiversificationConfig(max_results_per_function=1))
        ranked = [make_ranked(f"h{i}", 'src/a.py', 0.9 - i * 0.01) for i in range(3)]
        ranked.append(make_ranked('other', 'src/a.py', 0.8, content="def other(request):\n    return None"))

        result = await diversifier.diversify_results(
            ranked, processed_query, SearchOptions(limit=10, max_results_per_file=5)
        )
        assert [r.id for r in result] == ['h0', 'other']

    @pytest.mark.asyncio
    async def test_layer_cap_after_enough_results(self, diversifier, processed_query, make_ranked):
        ranked = [
            with_layer(make_ranked(f"b{i}", f"src/b{i}.py", 0.99 - i * 0.01), 'business')
            for i in range(12)
        ]
        ranked += [
            with_layer(make_ranked(f"d{i}", f"src/d{i}.py", 0.8 - i * 0.01), 'data')
            for i in range(4)
        ]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=20))

        # Nine business results fill the set before the cap starts to apply
        assert [r.id for r in result] == [f"b{i}" for i in range(9)] + ['d0', 'd1', 'd2']

    @pytest.mark.asyncio
    async def test_layer_cap_is_configurable(self, processed_query, make_ranked):
        diversifier = ResultDiversifier(
            DiversificationConfig(layer_diversity_after=2, max_results_per_layer=1)
        )
        ranked = [
            with_layer(make_ranked(f"b{i}", f"src/b{i}.py", 0.99 - i * 0.01), 'business')
            for i in range(6)
        ]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=20))
        assert [r.id for r in result] == ['b0', 'b1', 'b2']

    @pytest.mark.asyncio
    async def test_complexity_levels_spread_in_large_sets(self, diversifier, processed_query, make_ranked):
        readability = [0.9, 0.7, 0.5] + [0.7] * 10 + [0.3]
        ranked = [
            with_layer(
                make_ranked(f"r{i}", f"src/f{i}.py", 0.99 - i * 0.01,
                            quality=QualityMetrics(readability_score=score)),
                f"layer{i}",
            )
            for i, score in enumerate(readability)
        ]
        result = await diversifier.diversify_results(ranked, processed_query, SearchOptions(limit=20))

        # Past eleven results only a new complexity level is admitted
        assert [r.id for r in result] == [f"r{i}" for i in range(11)] + ['r13']


class TestDiversityKeys:

    def test_function_key(self, make_ranked):
        assert function_key(make_ranked('a', 'src/a.py', 0.9)) == ('snap-1', 'src/a.py', 'handler')
        anonymous = make_ranked('b', 'src/a.py', 0.9, content="return process(request)")
        assert function_key(anonymous) == ('snap-1', 'src/a.py', 'anonymous')

    @pytest.mark.parametrize("readability,level", [
        (0.95, 'simple'),
        (0.8, 'moderate'),
        (0.61, 'moderate'),
        (0.6, 'complex'),
        (0.4, 'very_complex'),
    ])
    def test_complexity_level(self, make_ranked, readability, level):
        result = make_ranked('a', 'src/a.py', 0.9, quality=QualityMetrics(readability_score=readability))
        assert complexity_level(result) == level
