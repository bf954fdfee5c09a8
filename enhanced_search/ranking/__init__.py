"""
Enhanced Search Ranking Module

Post-retrieval result curation with:
- Named boost/penalty conditions
- Strategy-specific composite scoring
- Recency tie-breaking
- Per-file caps and design-pattern diversification
- Result explanations, suggestions and alternatives
- Criteria-based filtering
"""

from .conditions import CONDITIONS, ConditionContext, evaluate_condition
from .result_ranker import ResultRanker, recency_score
from .result_diversifier import ResultDiversifier
from .result_explainer import ExplanationSynthesizer, RELEVANCE_TEMPLATES
from .filter_manager import FilterManager

__all__ = [
    'CONDITIONS',
    'ConditionContext',
    'evaluate_condition',
    'ResultRanker',
    'recency_score',
    'ResultDiversifier',
    'ExplanationSynthesizer',
    'RELEVANCE_TEMPLATES',
    'FilterManager'
]
