"""
Ranking conditions
Pure predicates over a result's content and metadata, referenced by name from boost and penalty factors
"""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from ..core.config import RankingConfig
from ..core.models import EnrichedResult

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class ConditionContext:
    """Inputs shared by every predicate evaluated within one ranking call"""
    config: RankingConfig = field(default_factory=RankingConfig)
    reference_time: float = field(default_factory=time.time)


Condition = Callable[[EnrichedResult, ConditionContext], bool]


def age_in_days(timestamp: Optional[float], reference_time: float) -> Optional[float]:
    """Age of a timestamp (epoch seconds); None when the timestamp is unknown"""
    if not timestamp:
        return None
    return max(0.0, (reference_time - timestamp) / SECONDS_PER_DAY)


def has_tests(result: EnrichedResult, ctx: ConditionContext) -> bool:
    if 'test' in result.file_path.lower():
        return True
    content = result.content.lower()
    return 'test' in content or 'spec' in content


def has_code_smells(result: EnrichedResult, ctx: ConditionContext) -> bool:
    return bool(result.quality_metrics.code_smells)


def has_error_handling(result: EnrichedResult, ctx: ConditionContext) -> bool:
    content = result.content.lower()
    return any(token in content for token in ('try', 'catch', 'except', 'error'))


def high_quality_score(result: EnrichedResult, ctx: ConditionContext) -> bool:
    return result.quality_metrics.readability_score > ctx.config.high_quality_readability


def no_documentation(result: EnrichedResult, ctx: ConditionContext) -> bool:
    return result.quality_metrics.documentation_ratio < ctx.config.low_documentation_ratio


def well_documented(result: EnrichedResult, ctx: ConditionContext) -> bool:
    return result.quality_metrics.documentation_ratio >= ctx.config.well_documented_ratio


def is_recent(result: EnrichedResult, ctx: ConditionContext) -> bool:
    age = age_in_days(result.timestamp, ctx.reference_time)
    return age is not None and age <= ctx.config.recent_days


def has_security_concerns(result: EnrichedResult, ctx: ConditionContext) -> bool:
    return any(
        c.severity in ('high', 'critical')
        for c in result.enhanced_metadata.security_considerations
    )


CONDITIONS: Mapping[str, Condition] = MappingProxyType({
    'hasTests': has_tests,
    'hasCodeSmells': has_code_smells,
    'hasErrorHandling': has_error_handling,
    'highQualityScore': high_quality_score,
    'noDocumentation': no_documentation,
    'wellDocumented': well_documented,
    'isRecent': is_recent,
    'hasSecurityConcerns': has_security_concerns,
})


def evaluate_condition(name: str, result: EnrichedResult, ctx: ConditionContext) -> bool:
    """Evaluate a named condition; unknown names never hold"""
    predicate = CONDITIONS.get(name)
    return predicate(result, ctx) if predicate is not None else False
