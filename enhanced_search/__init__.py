"""
Enhanced Semantic Code Search

Augments raw vector-similarity code search with natural-language query
understanding and multi-criteria result curation for AI-agent consumers.

Core modules:
- semantic: Intent classification, query enhancement, decomposition and validation
- retrieval: File-diverse candidate selection, hydration and enrichment
- ranking: Multi-criteria ranking, diversification, explanation and filtering
- pipeline: End-to-end orchestration
"""

__version__ = "1.0.0"
__author__ = "Enhanced Search Team"

from .core.config import Config, get_config
from .core.models import (
    QueryContext,
    QueryIntentType,
    SearchOptions,
    ProcessedQuery,
    ProcessedResults,
    SearchResponse,
)
from .pipeline import EnhancedSearchPipeline

__all__ = [
    'Config',
    'get_config',
    'QueryContext',
    'QueryIntentType',
    'SearchOptions',
    'ProcessedQuery',
    'ProcessedResults',
    'SearchResponse',
    'EnhancedSearchPipeline',
]
