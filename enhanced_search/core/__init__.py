"""
Enhanced Search Core Module
Provides collaborator interfaces, models, and configuration for the entire system
"""

from .config import Config, get_config, set_config, reset_config
from .interfaces import (
    EmbeddingProvider,
    VectorIndex,
    ContentStore,
    ChunkMetadataProvider
)
from .models import (
    QueryIntentType,
    SearchMode,
    RankingStrategy,
    QueryContext,
    QueryIntent,
    ProcessedQuery,
    SearchOptions,
    CandidateMatch,
    HydratedResult,
    EnrichedResult,
    RankedResult,
    ExplainedResult,
    ProcessedResults,
    SearchResponse,
    SubQueryOutcome
)

__all__ = [
    # Config
    'Config',
    'get_config',
    'set_config',
    'reset_config',

    # Interfaces
    'EmbeddingProvider',
    'VectorIndex',
    'ContentStore',
    'ChunkMetadataProvider',

    # Models
    'QueryIntentType',
    'SearchMode',
    'RankingStrategy',
    'QueryContext',
    'QueryIntent',
    'ProcessedQuery',
    'SearchOptions',
    'CandidateMatch',
    'HydratedResult',
    'EnrichedResult',
    'RankedResult',
    'ExplainedResult',
    'ProcessedResults',
    'SearchResponse',
    'SubQueryOutcome'
]
