"""
FilterManager: applies SearchFilterCriteria to enriched results.
"""
import logging
import posixpath
from fnmatch import fnmatchcase
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from ..core.models import EnrichedResult, SearchFilterCriteria

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=EnrichedResult)


class FilterManager:
    """Centralized result filtering on quality, structure and path criteria"""

    @staticmethod
    def matches_path(file_path: str, pattern: str) -> bool:
        """Case-insensitive glob match against the full path or the basename"""
        path = file_path.lower()
        pattern = pattern.lower()
        return fnmatchcase(path, pattern) or fnmatchcase(posixpath.basename(path), pattern)

    @classmethod
    def predicates(cls, criteria: SearchFilterCriteria) -> List[Tuple[str, Callable[[EnrichedResult], bool]]]:
        """(criterion name, keep-predicate) for every criterion that is set"""
        checks: List[Tuple[str, Callable[[EnrichedResult], bool]]] = []

        if criteria.quality_threshold is not None:
            threshold = criteria.quality_threshold
            checks.append(('quality_threshold',
                           lambda r: r.quality_metrics.readability_score >= threshold))

        if criteria.complexity_range is not None:
            low, high = criteria.complexity_range
            checks.append(('complexity_range',
                           lambda r: low <= r.enhanced_metadata.complexity_metrics.cyclomatic_complexity <= high))

        if criteria.semantic_types:
            wanted = {t.lower() for t in criteria.semantic_types}
            checks.append(('semantic_types',
                           lambda r: r.enhanced_metadata.semantic_type.lower() in wanted))

        if criteria.design_patterns:
            wanted_patterns = {p.lower() for p in criteria.design_patterns}
            checks.append(('design_patterns',
                           lambda r: any(p.lower() in wanted_patterns for p in r.enhanced_metadata.design_patterns)))

        if criteria.exclude_code_smells:
            smells = {s.lower() for s in criteria.exclude_code_smells}
            checks.append(('exclude_code_smells',
                           lambda r: not any(s.lower() in smells for s in r.quality_metrics.code_smells)))

        if criteria.include_file_patterns:
            include = list(criteria.include_file_patterns)
            checks.append(('include_file_patterns',
                           lambda r: any(cls.matches_path(r.file_path, p) for p in include)))

        if criteria.exclude_file_patterns:
            exclude = list(criteria.exclude_file_patterns)
            checks.append(('exclude_file_patterns',
                           lambda r: not any(cls.matches_path(r.file_path, p) for p in exclude)))

        if criteria.min_test_coverage is not None:
            minimum = criteria.min_test_coverage
            checks.append(('min_test_coverage',
                           lambda r: r.quality_metrics.test_coverage is not None
                           and r.quality_metrics.test_coverage >= minimum))

        return checks

    @classmethod
    def apply(cls, results: Sequence[R], criteria: Optional[SearchFilterCriteria]) -> List[R]:
        """Keep the results satisfying every criterion that is set"""
        if criteria is None:
            return list(results)
        checks = cls.predicates(criteria)
        if not checks:
            return list(results)

        kept = []
        for result in results:
            failed = next((name for name, keep in checks if not keep(result)), None)
            if failed is None:
                kept.append(result)
            else:
                logger.debug(f"Filtered out {result.file_path} on {failed}")
        return kept

    @staticmethod
    def apply_score_threshold(results: Sequence[R], threshold: Optional[float]) -> List[R]:
        if threshold is None:
            return list(results)
        return [r for r in results if r.score >= threshold]
