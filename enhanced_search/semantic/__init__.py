"""
Semantic processing module
Provides intent classification, query enhancement, decomposition and validation
"""

from .intent_classifier import IntentClassifier
from .query_enhancer import ContextualQueryEnhancer
from .query_decomposer import QueryDecomposer
from .query_validator import QueryValidator
from .query_processor import QueryProcessor

__all__ = [
    'IntentClassifier',
    'ContextualQueryEnhancer',
    'QueryDecomposer',
    'QueryValidator',
    'QueryProcessor',
]
