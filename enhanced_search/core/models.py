"""
Pydantic models for the Enhanced Search system
Provides type-safe data structures shared by query understanding, ranking and explanation
"""

from typing import List, Dict, Any, Optional, Literal, Tuple
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator


class QueryIntentType(str, Enum):
    """Primary intent behind a natural-language code query"""
    FIND_IMPLEMENTATION = "find_implementation"
    FIND_USAGE = "find_usage"
    FIND_SIMILAR = "find_similar"
    ANALYZE_QUALITY = "analyze_quality"
    FIND_PATTERNS = "find_patterns"
    UNDERSTAND_BEHAVIOR = "understand_behavior"
    FIND_EXAMPLES = "find_examples"
    DEBUG_ISSUE = "debug_issue"


class SearchMode(str, Enum):
    """Search modes available for enhanced semantic search"""
    SEMANTIC = "semantic"
    SYNTACTIC = "syntactic"
    BEHAVIORAL = "behavioral"
    HYBRID = "hybrid"


class RankingStrategy(str, Enum):
    """Ranking strategies for search results"""
    RELEVANCE = "relevance"
    QUALITY = "quality"
    RECENCY = "recency"
    USAGE = "usage"
    BALANCED = "balanced"


Severity = Literal['low', 'medium', 'high']
Priority = Literal['low', 'medium', 'high', 'critical']


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


# ============================================================================
# Query understanding
# ============================================================================

class WorkspaceInfo(BaseModel):
    """Workspace information for query context"""
    primary_languages: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    project_type: Optional[str] = None
    architecture_patterns: List[str] = Field(default_factory=list)


class QueryContext(BaseModel):
    """Context for query processing"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    language: Optional[str] = None
    current_file: Optional[str] = None
    recent_searches: List[str] = Field(default_factory=list)
    agent_type: Optional[str] = None  # code_review / debugging / ...
    workspace_context: Optional[WorkspaceInfo] = None
    available_snapshots: List[str] = Field(default_factory=list)


class SuggestedParameters(BaseModel):
    """Search parameters recommended for a classified intent"""
    model_config = ConfigDict(frozen=True)

    search_mode: SearchMode
    ranking_strategy: RankingStrategy
    include_quality_metrics: bool = False
    include_relationships: bool = False
    include_explanations: bool = True
    context_radius: int = 5


class QueryIntent(BaseModel):
    """Query intent classification"""
    model_config = ConfigDict(frozen=True)

    primary: QueryIntentType
    secondary: List[str] = Field(default_factory=list)
    confidence: float
    context: List[str] = Field(default_factory=list)
    suggested_parameters: SuggestedParameters

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v):
        return _clamp_unit(v)


class EnhancedQuery(BaseModel):
    """Enhanced query with expansion and context"""
    original: str
    enhanced: str
    added_terms: List[str] = Field(default_factory=list)
    context_keywords: List[str] = Field(default_factory=list)
    confidence: float


class SubQuery(BaseModel):
    """Sub-query produced by complex query decomposition"""
    query: str
    intent: QueryIntent
    priority: Literal['high', 'medium', 'low']
    dependencies: List[str] = Field(default_factory=list)
    expected_result_type: str = "code"


class ValidationIssue(BaseModel):
    """Issue found while validating a query"""
    type: Literal['ambiguous', 'too_broad', 'too_narrow', 'unclear_intent', 'missing_context']
    severity: Severity
    description: str
    suggested_fix: Optional[str] = None


class QuerySuggestion(BaseModel):
    """Suggestion for improving a query"""
    type: Literal['refinement', 'expansion', 'alternative', 'context_addition']
    suggested_query: str
    explanation: str
    expected_improvement: str


class QueryValidationResult(BaseModel):
    """Outcome of query validation"""
    is_valid: bool
    issues: List[ValidationIssue] = Field(default_factory=list)
    suggestions: List[QuerySuggestion] = Field(default_factory=list)
    estimated_quality: float


class RankingFactor(BaseModel):
    """Conditional score multiplier applied during ranking"""
    model_config = ConfigDict(frozen=True)

    condition: str
    multiplier: float
    description: str = ""
    weight: float = 1.0


class BoostFactor(RankingFactor):
    """Boost factor (multiplier > 1.0)"""


class PenaltyFactor(RankingFactor):
    """Penalty factor (multiplier < 1.0)"""


class SearchStrategy(BaseModel):
    """Search strategy configuration"""
    model_config = ConfigDict(frozen=True)

    mode: SearchMode = SearchMode.SEMANTIC
    ranking: RankingStrategy = RankingStrategy.RELEVANCE
    diversification: bool = True
    context_radius: int = 5
    boost_factors: List[BoostFactor] = Field(default_factory=list)
    penalty_factors: List[PenaltyFactor] = Field(default_factory=list)


class SearchFilterCriteria(BaseModel):
    """Filter criteria for refining search results"""
    complexity_range: Optional[Tuple[float, float]] = None
    quality_threshold: Optional[float] = None
    semantic_types: List[str] = Field(default_factory=list)
    design_patterns: List[str] = Field(default_factory=list)
    exclude_code_smells: List[str] = Field(default_factory=list)
    include_file_patterns: List[str] = Field(default_factory=list)
    exclude_file_patterns: List[str] = Field(default_factory=list)
    min_test_coverage: Optional[float] = None

    def applied_keys(self) -> List[str]:
        """Names of the criteria that are actually set"""
        return [name for name, value in self if value not in (None, [], ())]

    def merged_with(self, other: Optional["SearchFilterCriteria"]) -> "SearchFilterCriteria":
        """Overlay the criteria set on ``other`` on top of this one"""
        if other is None:
            return self
        return self.model_copy(update={key: getattr(other, key) for key in other.applied_keys()})


class QueryProcessingMetadata(BaseModel):
    """Query processing metadata"""
    processing_time_ms: float = 0.0
    enhancements_applied: List[str] = Field(default_factory=list)
    auto_filters_applied: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    improvement_suggestions: List[str] = Field(default_factory=list)


class ProcessedQuery(BaseModel):
    """Processed query with enhanced understanding"""
    model_config = ConfigDict(frozen=True)

    original_query: str
    enhanced_query: str
    intent: QueryIntent
    search_strategy: SearchStrategy
    filters: SearchFilterCriteria = Field(default_factory=SearchFilterCriteria)
    expected_result_types: List[str] = Field(default_factory=list)
    complexity_score: float = 0.0
    processing_metadata: QueryProcessingMetadata = Field(default_factory=QueryProcessingMetadata)

    @field_validator("complexity_score", mode="before")
    @classmethod
    def _clamp_complexity(cls, v):
        return _clamp_unit(v)


class SearchOptions(BaseModel):
    """Options recognized by result processing and end-to-end search"""
    search_mode: Optional[SearchMode] = None
    ranking_strategy: Optional[RankingStrategy] = None
    filter_criteria: Optional[SearchFilterCriteria] = None
    limit: int = Field(default=20, ge=1)
    enable_diversification: bool = True
    max_results_per_file: int = Field(default=3, ge=1)
    include_explanations: bool = True
    # Unset detail options fall back to the intent's suggested parameters
    include_relationships: Optional[bool] = None
    include_quality_metrics: Optional[bool] = None
    context_radius: Optional[int] = Field(default=None, ge=0)
    score_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    snapshot_ids: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)


# ============================================================================
# Retrieval and result records
# ============================================================================

class CandidateMetadata(BaseModel):
    """Minimal metadata stored alongside an indexed chunk"""
    language: Optional[str] = None
    start_line: int = 0
    end_line: int = 0
    timestamp: Optional[float] = None  # epoch seconds
    symbols: List[str] = Field(default_factory=list)


class CandidateMatch(BaseModel):
    """Single scored match from vector retrieval"""
    id: str
    file_path: str
    snapshot_id: str
    score: float
    metadata: CandidateMetadata = Field(default_factory=CandidateMetadata)

    @property
    def file_key(self) -> Tuple[str, str]:
        return (self.snapshot_id, self.file_path)


class HydratedResult(BaseModel):
    """Candidate with its chunk content loaded from the content store"""
    id: str
    snapshot_id: str
    file_path: str
    start_line: int = 0
    end_line: int = 0
    score: float
    content: str = ""
    timestamp: float = 0.0  # epoch seconds
    language: Optional[str] = None
    # Whole-file facts; zero when the result was not loaded from a content store
    surrounding_context: str = ""
    total_lines: int = 0
    file_size: int = 0

    @property
    def file_key(self) -> Tuple[str, str]:
        return (self.snapshot_id, self.file_path)


class QualityMetrics(BaseModel):
    """Quality metrics for a code chunk"""
    overall_score: float = 70.0  # 0-100
    readability_score: float = 0.7  # 0-1
    test_coverage: Optional[float] = None  # 0-1
    documentation_ratio: float = 0.5
    duplication_risk: float = 0.3
    performance_risk: float = 0.2
    security_risk: float = 0.15
    maintainability_score: float = 75.0
    technical_debt_severity: Literal['low', 'medium', 'high', 'critical'] = 'low'
    style_compliance_score: float = 80.0
    code_smells: List[str] = Field(default_factory=list)


class ComplexityMetrics(BaseModel):
    """Code complexity metrics"""
    cyclomatic_complexity: int = 1
    cognitive_complexity: int = 0
    lines_of_code: int = 0
    parameter_count: Optional[int] = None
    nesting_depth: int = 0
    maintainability_index: float = 100.0


class SecurityConsideration(BaseModel):
    """Security consideration for code"""
    type: Literal['vulnerability', 'best_practice', 'compliance', 'data_handling']
    severity: Literal['info', 'low', 'medium', 'high', 'critical']
    description: str
    recommendation: Optional[str] = None


class EnhancedResultMetadata(BaseModel):
    """Enhanced metadata for search results"""
    semantic_type: Literal[
        'function', 'class', 'interface', 'module', 'config', 'test', 'documentation'
    ] = 'function'
    design_patterns: List[str] = Field(default_factory=list)
    architectural_layer: str = 'unknown'
    business_domain: Optional[str] = None
    framework_context: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    usage_frequency: float = 0.5  # 0-1
    last_modified: Optional[float] = None  # epoch seconds
    complexity_metrics: ComplexityMetrics = Field(default_factory=ComplexityMetrics)
    security_considerations: List[SecurityConsideration] = Field(default_factory=list)


class ContextInfo(BaseModel):
    """Context information around a result"""
    surrounding_context: str = ""
    architectural_layer: str = 'unknown'
    framework_context: List[str] = Field(default_factory=list)
    business_context: Optional[str] = None
    total_lines: int = 0
    file_size: int = 0


class ChunkMetadata(BaseModel):
    """Partial metadata supplied by a ChunkMetadataProvider; unset parts fall back to defaults"""
    quality_metrics: Optional[QualityMetrics] = None
    enhanced_metadata: Optional[EnhancedResultMetadata] = None
    relationships: List[Dict[str, Any]] = Field(default_factory=list)


class EnrichedResult(HydratedResult):
    """Hydrated result with quality and enhanced metadata"""
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    enhanced_metadata: EnhancedResultMetadata = Field(default_factory=EnhancedResultMetadata)
    context_info: ContextInfo = Field(default_factory=ContextInfo)
    relationships: List[Dict[str, Any]] = Field(default_factory=list)


class RankedResult(EnrichedResult):
    """Enriched result carrying its composite ranking score"""
    composite_score: float
    applied_adjustments: List[str] = Field(default_factory=list)


class ConfidenceFactor(BaseModel):
    """Confidence factor contributing to result relevance"""
    factor: str
    weight: float
    description: str
    value: float


class SearchResultExplanation(BaseModel):
    """Detailed explanation of search result relevance"""
    why_relevant: str
    key_features: List[str] = Field(default_factory=list)
    matched_concepts: List[str] = Field(default_factory=list)
    confidence_factors: List[ConfidenceFactor] = Field(min_length=1)
    semantic_similarity: str
    behavioral_similarity: Optional[str] = None


class ActionableSuggestion(BaseModel):
    """Actionable suggestion based on a search result"""
    type: Literal['improvement', 'usage', 'refactoring', 'testing', 'documentation', 'security']
    description: str
    priority: Priority
    effort: Literal['minimal', 'moderate', 'significant', 'major']
    action: Optional[str] = None
    expected_benefit: Optional[str] = None


class AlternativeResult(BaseModel):
    """Alternative result similar to the main result"""
    chunk_id: str
    similarity_score: float
    description: str
    differences: List[str] = Field(default_factory=list)
    prefer_when: Optional[str] = None


class ExplainedResult(RankedResult):
    """Ranked result with explanation, suggestions and alternatives"""
    # None when quality metrics were not requested
    quality_metrics: Optional[QualityMetrics] = Field(default_factory=QualityMetrics)
    explanation: SearchResultExplanation
    suggestions: List[ActionableSuggestion] = Field(default_factory=list)
    alternatives: List[AlternativeResult] = Field(default_factory=list)


# ============================================================================
# Pipeline outputs
# ============================================================================

class ProcessingStats(BaseModel):
    """Result processing statistics"""
    original_count: int = 0
    filtered_count: int = 0
    ranked_count: int = 0
    diversified_count: int = 0
    final_count: int = 0
    processing_time_ms: float = 0.0
    diversity_score: float = 0.0
    average_quality_score: float = 0.0
    ranking_adjustments: int = 0
    stage_timings_ms: Dict[str, float] = Field(default_factory=dict)


class ProcessedResults(BaseModel):
    """Results of post-retrieval processing"""
    results: List[ExplainedResult] = Field(default_factory=list)
    stats: ProcessingStats = Field(default_factory=ProcessingStats)


class ResponseSuggestion(BaseModel):
    """Follow-up suggestion for AI agents"""
    type: Literal[
        'query_refinement', 'related_search', 'code_improvement',
        'workflow_optimization', 'follow_up_action'
    ]
    description: str
    action: Optional[str] = None
    priority: Severity = 'medium'
    expected_benefit: Optional[str] = None


class SearchResponse(BaseModel):
    """Structured response of an end-to-end search, for agent consumption"""
    processed_query: ProcessedQuery
    results: List[ExplainedResult] = Field(default_factory=list)
    stats: ProcessingStats = Field(default_factory=ProcessingStats)
    related_queries: List[str] = Field(default_factory=list)
    suggestions: List[ResponseSuggestion] = Field(default_factory=list)
    candidates_retrieved: int = 0


class SubQueryOutcome(BaseModel):
    """Outcome of one decomposed sub-query run through the pipeline"""
    query: str
    priority: Literal['high', 'medium', 'low']
    response: Optional[SearchResponse] = None
    error: Optional[str] = None
    retryable: bool = False

    @property
    def success(self) -> bool:
        return self.error is None


def fields_of(instance: BaseModel, model_cls: type) -> Dict[str, Any]:
    """Values of ``model_cls``'s fields taken from ``instance`` (a subclass or the class itself)"""
    return {name: getattr(instance, name) for name in model_cls.model_fields}
