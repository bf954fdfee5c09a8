"""
Result Diversifier
Caps results per file, function and architectural layer, and spreads design
patterns and complexity levels across the final set
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from ..core.config import DiversificationConfig, get_config
from ..core.models import ProcessedQuery, RankedResult, SearchOptions
from .result_explainer import SYMBOL_RE

logger = logging.getLogger(__name__)


def function_key(result: RankedResult) -> Tuple[str, str, str]:
    """File key plus the first declared symbol of the chunk ('anonymous' when none)"""
    match = SYMBOL_RE.search(result.content)
    return (result.snapshot_id, result.file_path, match.group(1) if match else 'anonymous')


def complexity_level(result: RankedResult) -> str:
    readability = result.quality_metrics.readability_score
    if readability > 0.8:
        return 'simple'
    if readability > 0.6:
        return 'moderate'
    if readability > 0.4:
        return 'complex'
    return 'very_complex'


@dataclass
class _Accepted:
    """Running counts over the accepted results"""
    count: int = 0
    per_file: Counter = field(default_factory=Counter)
    per_function: Counter = field(default_factory=Counter)
    per_layer: Counter = field(default_factory=Counter)
    patterns: Set[str] = field(default_factory=set)
    levels: Set[str] = field(default_factory=set)

    def add(self, result: RankedResult) -> None:
        self.count += 1
        self.per_file[result.file_key] += 1
        self.per_function[function_key(result)] += 1
        self.per_layer[result.enhanced_metadata.architectural_layer] += 1
        self.patterns.update(result.enhanced_metadata.design_patterns)
        self.levels.add(complexity_level(result))


class ResultDiversifier:
    """
    Walks the ranked list admitting results while they pass every cap:

    - per file (``max_results_per_file``)
    - per function within a file (``max_results_per_function``)
    - per architectural layer, once the set is large enough
    - complexity levels, once the set is large enough and already varied

    A result that fails a cap can never pass it later, so it is discarded.
    When the next admissible result only repeats design patterns already
    represented, a result within the look-ahead window that brings a new
    pattern is admitted first.
    """

    def __init__(self, config: Optional[DiversificationConfig] = None):
        self.config = config or get_config().diversification

    @staticmethod
    def _is_redundant(result: RankedResult, represented: Set[str]) -> bool:
        patterns = result.enhanced_metadata.design_patterns
        return bool(patterns) and all(p in represented for p in patterns)

    def _admissible(self, result: RankedResult, accepted: _Accepted, max_per_file: int) -> bool:
        config = self.config
        if accepted.per_file[result.file_key] >= max_per_file:
            return False
        if accepted.per_function[function_key(result)] >= config.max_results_per_function:
            return False
        if (accepted.count > config.layer_diversity_after
                and accepted.per_layer[result.enhanced_metadata.architectural_layer] >= config.max_results_per_layer):
            return False
        if (accepted.count > config.complexity_diversity_after
                and len(accepted.levels) >= config.min_complexity_levels
                and complexity_level(result) in accepted.levels):
            return False
        return True

    async def diversify_results(
        self,
        ranked_results: Sequence[RankedResult],
        processed_query: ProcessedQuery,
        options: Optional[SearchOptions] = None
    ) -> List[RankedResult]:
        """
        Args:
            ranked_results: Results in ranked order
            processed_query: Output of query processing
            options: limit, max_results_per_file and enable_diversification

        Returns:
            At most ``options.limit`` results
        """
        options = options or SearchOptions(max_results_per_file=self.config.max_results_per_file)
        limit = options.limit

        if not (options.enable_diversification and processed_query.search_strategy.diversification):
            return list(ranked_results[:limit])

        max_per_file = options.max_results_per_file
        window = self.config.pattern_lookahead

        pending = list(ranked_results)
        accepted = _Accepted()
        selected: List[RankedResult] = []

        while pending and len(selected) < limit:
            pending = [r for r in pending if self._admissible(r, accepted, max_per_file)]
            if not pending:
                break

            choice = 0
            if self._is_redundant(pending[0], accepted.patterns):
                for idx, candidate in enumerate(pending[:window]):
                    if not self._is_redundant(candidate, accepted.patterns):
                        choice = idx
                        break

            chosen = pending.pop(choice)
            selected.append(chosen)
            accepted.add(chosen)

        logger.debug(
            f"Diversified {len(ranked_results)} ranked results -> {len(selected)} "
            f"from {len(accepted.per_file)} files, {len(accepted.per_layer)} layers"
        )
        return selected
