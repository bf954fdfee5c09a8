"""
Enhanced Search Retrieval Module

Candidate selection and result preparation:
- File-diverse candidate selection
- Content hydration
- Quality and metadata enrichment
"""

from .diversifier import RetrievalDiversifier
from .enrichment import ResultHydrator, ResultEnricher
from ..pattern_registry import get_pattern_registry, PatternType, PatternMatch

__all__ = [
    'RetrievalDiversifier',
    'ResultHydrator',
    'ResultEnricher',
    'get_pattern_registry',
    'PatternMatch',
    'PatternType'
]
