"""
Result explanation module for Enhanced Search system
Explains why search results are relevant and what an agent can do with them
"""

import re
import logging
import posixpath
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Set

from ..core.config import ExplanationConfig, get_config
from ..core.models import (
    ActionableSuggestion,
    AlternativeResult,
    ConfidenceFactor,
    ExplainedResult,
    ProcessedQuery,
    QueryIntentType,
    RankedResult,
    SearchMode,
    SearchResultExplanation,
    fields_of,
)
from ..utils.error_handler import with_safe_default

logger = logging.getLogger(__name__)

# One sentence fragment per intent
RELEVANCE_TEMPLATES: Mapping[QueryIntentType, str] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: 'It contains relevant implementation code',
    QueryIntentType.FIND_EXAMPLES: 'It appears to be a good example implementation',
    QueryIntentType.DEBUG_ISSUE: 'It contains relevant error handling or debugging code',
    QueryIntentType.FIND_PATTERNS: 'It demonstrates relevant design patterns',
    QueryIntentType.FIND_USAGE: 'It shows where and how the requested code is used',
    QueryIntentType.FIND_SIMILAR: 'It implements functionality similar to what you described',
    QueryIntentType.ANALYZE_QUALITY: 'It provides code suitable for quality analysis',
    QueryIntentType.UNDERSTAND_BEHAVIOR: 'It shows the logic behind the requested behavior',
})

SYMBOL_RE = re.compile(r'\b(?:function|class|def|const|let|var)\s+([A-Za-z_$][\w$]*)')
_TOKEN_RE = re.compile(r'[a-z0-9_]+')


def similarity_level(score: float) -> str:
    if score > 0.8:
        return 'high'
    if score > 0.6:
        return 'good'
    return 'moderate'


def _tokens(text: str) -> Set[str]:
    return {t for t in _TOKEN_RE.findall(text.lower()) if len(t) > 2}


def _jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def _path_proximity(path_a: str, path_b: str) -> float:
    if path_a == path_b:
        return 1.0
    if posixpath.dirname(path_a) == posixpath.dirname(path_b):
        return 0.5
    return 0.0


def result_similarity(a: RankedResult, b: RankedResult) -> float:
    """Content/metadata similarity in [0, 1] between two results"""
    meta_a, meta_b = a.enhanced_metadata, b.enhanced_metadata
    return (
        0.5 * _jaccard(_tokens(a.content), _tokens(b.content))
        + 0.2 * (1.0 if meta_a.semantic_type == meta_b.semantic_type else 0.0)
        + 0.15 * _jaccard(set(meta_a.design_patterns), set(meta_b.design_patterns))
        + 0.15 * _path_proximity(a.file_path, b.file_path)
    )


class ExplanationSynthesizer:
    """
    Produces, for every accepted result:
    - an explanation (why relevant, key features, matched concepts, confidence factors)
    - actionable suggestions derived from quality metadata and intent
    - alternatives among the other accepted results
    """

    def __init__(self, config: Optional[ExplanationConfig] = None):
        self.config = config or get_config().explanation

    # ------------------------------------------------------------------ #
    # Explanation
    # ------------------------------------------------------------------ #

    def key_features(self, result: RankedResult) -> List[str]:
        features = SYMBOL_RE.findall(result.content)
        features += result.enhanced_metadata.design_patterns
        features += result.enhanced_metadata.framework_context
        return list(dict.fromkeys(features))[:self.config.max_key_features]

    @staticmethod
    def matched_concepts(result: RankedResult, processed_query: ProcessedQuery) -> List[str]:
        """Query and enhancement terms found in the result's content or metadata"""
        meta = result.enhanced_metadata
        haystack = ' '.join([
            result.content,
            result.file_path,
            meta.semantic_type,
            ' '.join(meta.design_patterns),
            ' '.join(meta.framework_context),
            ' '.join(meta.dependencies),
        ]).lower()
        terms = processed_query.original_query.split() + processed_query.enhanced_query.split()
        matched = [t.lower() for t in terms if len(t) > 2 and t.lower() in haystack]
        return list(dict.fromkeys(matched))

    @staticmethod
    def why_relevant(result: RankedResult, processed_query: ProcessedQuery, rank: int) -> str:
        template = RELEVANCE_TEMPLATES[processed_query.intent.primary]
        return (
            f"This result ranks #{rank + 1} with {similarity_level(result.score)} semantic "
            f"similarity to your query. {template} based on the detected semantic type: "
            f"{result.enhanced_metadata.semantic_type}."
        )

    @staticmethod
    def confidence_factors(result: RankedResult, rank: int) -> List[ConfidenceFactor]:
        return [
            ConfidenceFactor(
                factor='Semantic Similarity', weight=0.4,
                description='Semantic similarity to query', value=result.score,
            ),
            ConfidenceFactor(
                factor='Quality Score', weight=0.3,
                description='Code quality metrics', value=result.quality_metrics.readability_score,
            ),
            ConfidenceFactor(
                factor='Relevance Rank', weight=0.2,
                description='Position in search results', value=max(0.0, 1 - rank / 20),
            ),
            ConfidenceFactor(
                factor='Documentation', weight=0.1,
                description='Documentation quality', value=result.quality_metrics.documentation_ratio,
            ),
        ]

    def explain(self, result: RankedResult, processed_query: ProcessedQuery, rank: int) -> SearchResultExplanation:
        level = similarity_level(result.score).capitalize()
        behavioral = None
        if processed_query.search_strategy.mode == SearchMode.BEHAVIORAL:
            behavioral = (
                'Behavioral analysis indicates this code performs similar operations '
                'to what was requested in the query.'
            )
        return SearchResultExplanation(
            why_relevant=self.why_relevant(result, processed_query, rank),
            key_features=self.key_features(result),
            matched_concepts=self.matched_concepts(result, processed_query),
            confidence_factors=self.confidence_factors(result, rank),
            semantic_similarity=(
                f"{level} semantic match ({result.score * 100:.1f}%) with the enhanced query: "
                f"\"{processed_query.enhanced_query}\""
            ),
            behavioral_similarity=behavioral,
        )

    @staticmethod
    def minimal_explanation(result: RankedResult) -> SearchResultExplanation:
        return SearchResultExplanation(
            why_relevant='Semantic match found',
            confidence_factors=[ConfidenceFactor(
                factor='Semantic Similarity', weight=1.0,
                description='Semantic similarity to query', value=result.score,
            )],
            semantic_similarity=f"Semantic match ({result.score * 100:.1f}%)",
        )

    # ------------------------------------------------------------------ #
    # Suggestions
    # ------------------------------------------------------------------ #

    def suggestions(self, result: RankedResult, processed_query: ProcessedQuery) -> List[ActionableSuggestion]:
        metrics = result.quality_metrics
        suggestions: List[ActionableSuggestion] = []

        if metrics.readability_score < self.config.readability_bar:
            suggestions.append(ActionableSuggestion(
                type='improvement',
                description='Consider refactoring for better readability',
                priority='medium',
                effort='moderate',
                action='Review variable names, function structure, and comments',
                expected_benefit='Improved code maintainability and understanding',
            ))

        if 'test' not in result.content.lower() and metrics.test_coverage is None:
            suggestions.append(ActionableSuggestion(
                type='testing',
                description='Add unit tests for this code',
                priority='high',
                effort='moderate',
                action='Create test cases covering main functionality',
                expected_benefit='Better code reliability and regression prevention',
            ))

        if metrics.documentation_ratio < self.config.documentation_bar:
            suggestions.append(ActionableSuggestion(
                type='documentation',
                description='Add more comprehensive documentation',
                priority='medium',
                effort='minimal',
                action='Add docstrings or inline documentation',
                expected_benefit='Better code understanding for team members',
            ))

        for concern in result.enhanced_metadata.security_considerations:
            if concern.severity in ('high', 'critical'):
                suggestions.append(ActionableSuggestion(
                    type='security',
                    description=concern.description,
                    priority='critical' if concern.severity == 'critical' else 'high',
                    effort='moderate',
                    action=concern.recommendation,
                    expected_benefit='Reduced security risk',
                ))

        if processed_query.intent.primary == QueryIntentType.FIND_EXAMPLES:
            suggestions.append(ActionableSuggestion(
                type='usage',
                description='This code can serve as a good example for similar implementations',
                priority='low',
                effort='minimal',
                action='Study the implementation pattern and adapt for your use case',
                expected_benefit='Faster development with proven patterns',
            ))

        return suggestions

    # ------------------------------------------------------------------ #
    # Alternatives
    # ------------------------------------------------------------------ #

    @staticmethod
    def differences(result: RankedResult, other: RankedResult) -> List[str]:
        diffs = []
        if result.file_path != other.file_path:
            diffs.append(f"Different files: {result.file_path} vs {other.file_path}")
        type_a = result.enhanced_metadata.semantic_type
        type_b = other.enhanced_metadata.semantic_type
        if type_a != type_b:
            diffs.append(f"Different types: {type_a} vs {type_b}")
        q_a = result.quality_metrics.readability_score
        q_b = other.quality_metrics.readability_score
        if abs(q_a - q_b) > 0.2:
            diffs.append(f"Different quality scores: {q_a:.2f} vs {q_b:.2f}")
        return diffs

    @staticmethod
    def describe_alternative(other: RankedResult) -> str:
        description = f"Alternative {other.enhanced_metadata.semantic_type} implementation"
        quality = other.quality_metrics.readability_score
        if quality > 0.8:
            description += ' with high quality'
        elif quality < 0.5:
            description += ' with lower quality'
        return description

    @staticmethod
    def prefer_when(result: RankedResult, other: RankedResult) -> str:
        original = result.quality_metrics.readability_score
        alternative = other.quality_metrics.readability_score
        if alternative > original + 0.1:
            return 'When higher code quality is preferred'
        if alternative < original - 0.1:
            return 'When simpler implementation is acceptable'
        return 'When alternative approach is needed'

    def alternatives(self, result: RankedResult, accepted: Sequence[RankedResult]) -> List[AlternativeResult]:
        scored = []
        for other in accepted:
            if other.id == result.id and other.snapshot_id == result.snapshot_id:
                continue
            similarity = result_similarity(result, other)
            if similarity >= self.config.alternative_similarity_bar:
                scored.append((similarity, other))

        # sorted() is stable, so equal similarities keep ranked order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)[:self.config.max_alternatives]
        return [
            AlternativeResult(
                chunk_id=other.id,
                similarity_score=round(similarity, 4),
                description=self.describe_alternative(other),
                differences=self.differences(result, other),
                prefer_when=self.prefer_when(result, other),
            )
            for similarity, other in scored
        ]

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    async def generate_explanations_and_suggestions(
        self,
        ranked_results: Sequence[RankedResult],
        processed_query: ProcessedQuery,
        detailed: bool = True
    ) -> List[ExplainedResult]:
        """
        Attach explanation, suggestions and alternatives to each accepted result

        Args:
            ranked_results: Final (diversified) results in order
            processed_query: Output of query processing
            detailed: When False only a minimal explanation is attached
        """
        explained: List[ExplainedResult] = []
        for rank, result in enumerate(ranked_results):
            if detailed:
                explanation = with_safe_default(
                    lambda: self.explain(result, processed_query, rank),
                    lambda: self.minimal_explanation(result),
                    op_name=f"explanation for {result.id}",
                )
                suggestions = with_safe_default(
                    lambda: self.suggestions(result, processed_query),
                    list,
                    op_name=f"suggestions for {result.id}",
                )
                alternatives = with_safe_default(
                    lambda: self.alternatives(result, ranked_results),
                    list,
                    op_name=f"alternatives for {result.id}",
                )
            else:
                explanation, suggestions, alternatives = self.minimal_explanation(result), [], []

            explained.append(ExplainedResult(
                **fields_of(result, RankedResult),
                explanation=explanation,
                suggestions=suggestions,
                alternatives=alternatives,
            ))

        logger.debug(f"Explained {len(explained)} results")
        return explained
