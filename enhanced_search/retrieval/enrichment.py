"""
Result hydration and enrichment

Hydration loads chunk text for retrieved candidates; enrichment attaches
quality metrics and structural metadata, taking what a metadata provider
supplies and deriving the rest from the chunk itself.
"""

import re
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.config import RetrievalConfig, get_config
from ..core.interfaces import ChunkMetadataProvider, ContentStore
from ..core.models import (
    CandidateMatch,
    ChunkMetadata,
    ComplexityMetrics,
    ContextInfo,
    EnhancedResultMetadata,
    EnrichedResult,
    HydratedResult,
    QualityMetrics,
    SecurityConsideration,
    fields_of,
)
from ..pattern_registry import PatternType, get_pattern_registry
from ..utils.error_handler import classify_upstream_error, with_safe_default

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "// Context before:"

_IMPORT_FROM_RE = re.compile(r"""import\s.*?from\s+['"]([^'"]+)['"]""")
_REQUIRE_RE = re.compile(r"""require\(\s*['"]([^'"]+)['"]\s*\)""")
_PY_IMPORT_RE = re.compile(r"^\s*(?:from\s+([\w.]+)\s+import|import\s+([\w.]+))", re.MULTILINE)
_BRANCH_KEYWORDS_RE = re.compile(r"\b(if|elif|else|while|for|switch|case|catch|except)\b")
_BRANCH_OPERATORS_RE = re.compile(r"&&|\|\||\?")
_LOGICAL_OPERATORS_RE = re.compile(r"&&|\|\||\band\b|\bor\b")
_NESTING_START_RE = re.compile(r"\b(if|for|while)\b")
_COMMENT_RE = re.compile(r"//|/\*|#")

# (path fragments, layer) checked in order
_LAYER_RULES = (
    (('controller', 'api', 'route'), 'presentation'),
    (('service', 'business', 'logic'), 'business'),
    (('repository', 'dao', 'database'), 'data'),
    (('model', 'entity'), 'domain'),
    (('util', 'helper'), 'utility'),
    (('config', 'setting'), 'configuration'),
)


# ============================================================================
# Content heuristics
# ============================================================================

def infer_semantic_type(content: str) -> str:
    if 'class ' in content:
        return 'class'
    if 'interface ' in content:
        return 'interface'
    if 'test(' in content or 'describe(' in content or re.search(r'def\s+test_', content):
        return 'test'
    if any(token in content for token in ('function ', 'def ', 'const ', 'let ')):
        return 'function'
    if 'module.exports' in content or 'export ' in content:
        return 'module'
    if '//' in content or '/*' in content or '"""' in content:
        return 'documentation'
    return 'function'


def detect_design_patterns(content: str) -> List[str]:
    registry = get_pattern_registry()
    return (
        registry.labels_for(content, PatternType.DESIGN_PATTERN)
        + registry.labels_for(content, PatternType.ARCHITECTURAL)
    )


def infer_architectural_layer(file_path: str) -> str:
    path = file_path.lower()
    for fragments, layer in _LAYER_RULES:
        if any(fragment in path for fragment in fragments):
            return layer
    return 'unknown'


def detect_framework_context(content: str) -> List[str]:
    return get_pattern_registry().labels_for(content, PatternType.FRAMEWORK_SPECIFIC)


def extract_dependencies(content: str) -> List[str]:
    """Modules referenced by import / require statements, first occurrence order"""
    found: List[str] = []
    found.extend(_IMPORT_FROM_RE.findall(content))
    found.extend(_REQUIRE_RE.findall(content))
    for from_module, import_module in _PY_IMPORT_RE.findall(content):
        found.append(from_module or import_module)
    return list(dict.fromkeys(dep for dep in found if dep))


def cyclomatic_complexity(content: str) -> int:
    return (
        1
        + len(_BRANCH_KEYWORDS_RE.findall(content))
        + len(_BRANCH_OPERATORS_RE.findall(content))
    )


def cognitive_complexity(content: str) -> int:
    complexity = 0
    nesting = 0
    for line in content.split('\n'):
        stripped = line.strip()
        if _NESTING_START_RE.search(stripped):
            complexity += 1 + nesting
            nesting += 1
        if stripped == '}':
            nesting = max(0, nesting - 1)
        complexity += len(_LOGICAL_OPERATORS_RE.findall(stripped))
    return complexity


def nesting_depth(content: str) -> int:
    """Brace depth, or indentation depth for brace-less code"""
    max_depth = 0
    depth = 0
    for char in content:
        if char == '{':
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == '}':
            depth = max(0, depth - 1)
    if max_depth:
        return max_depth

    levels = []
    for line in content.split('\n'):
        if not line.strip():
            continue
        expanded = line.expandtabs(4)
        levels.append((len(expanded) - len(expanded.lstrip(' '))) // 4)
    return max(levels, default=0)


def maintainability_index(content: str) -> float:
    lines = content.split('\n')
    loc = len(lines)
    comment_ratio = len(_COMMENT_RE.findall(content)) / loc
    mi = max(0.0, 100 - cyclomatic_complexity(content) * 2 - loc * 0.1 + comment_ratio * 10)
    return min(100.0, mi)


def security_considerations(content: str) -> List[SecurityConsideration]:
    considerations = []
    if 'eval(' in content or 'innerHTML' in content:
        considerations.append(SecurityConsideration(
            type='vulnerability',
            severity='high',
            description='Potential XSS vulnerability detected',
            recommendation='Avoid using eval() or innerHTML with user input',
        ))
    lowered = content.lower()
    if 'password' in lowered and 'hash' not in lowered:
        considerations.append(SecurityConsideration(
            type='data_handling',
            severity='medium',
            description='Password handling detected',
            recommendation='Ensure passwords are properly hashed and secured',
        ))
    return considerations


def derive_metadata(result: HydratedResult) -> EnhancedResultMetadata:
    content = result.content
    return EnhancedResultMetadata(
        semantic_type=infer_semantic_type(content),
        design_patterns=detect_design_patterns(content),
        architectural_layer=infer_architectural_layer(result.file_path),
        framework_context=detect_framework_context(content),
        dependencies=extract_dependencies(content),
        last_modified=result.timestamp,
        complexity_metrics=ComplexityMetrics(
            cyclomatic_complexity=cyclomatic_complexity(content),
            cognitive_complexity=cognitive_complexity(content),
            lines_of_code=len(content.split('\n')),
            nesting_depth=nesting_depth(content),
            maintainability_index=maintainability_index(content),
        ),
        security_considerations=security_considerations(content),
    )


def _overlay(defaults, provided):
    """Replace default fields with the ones the provider explicitly set"""
    if provided is None:
        return defaults
    return defaults.model_copy(
        update={name: getattr(provided, name) for name in provided.model_fields_set}
    )


# ============================================================================
# Hydration
# ============================================================================

class ResultHydrator:
    """Loads chunk content for candidates from a ContentStore"""

    def __init__(self, content_store: ContentStore, config: Optional[RetrievalConfig] = None):
        self.content_store = content_store
        self.config = config or get_config().retrieval

    def slice_chunk(
        self,
        content: str,
        start_line: int,
        end_line: int,
        context_radius: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Cut ``start_line..end_line`` out of a file.

        Up to ``context_radius`` preceding lines are prepended as a context
        block, and the chunk widened by the radius on both sides is kept as
        ``surrounding_context``. The radius defaults to ``context_lines``.
        """
        radius = self.config.context_lines if context_radius is None else context_radius
        lines = content.split('\n')
        start = max(0, start_line)
        end = min(len(lines) - 1, end_line)
        chunk = '\n'.join(lines[start:end + 1])

        if radius and start > radius:
            before = '\n'.join(lines[start - radius:start])
            if before.strip():
                chunk = f"{CONTEXT_HEADER}\n{before}\n\n{chunk}"

        surrounding = '\n'.join(lines[max(0, start - radius):min(len(lines) - 1, end + radius) + 1])

        return {
            'content': chunk,
            'start_line': start,
            'end_line': end,
            'surrounding_context': surrounding,
            'total_lines': len(lines),
            'file_size': len(content),
        }

    async def _fetch(self, candidate: CandidateMatch) -> Optional[str]:
        try:
            content = await self.content_store.get_file_content(
                candidate.snapshot_id, candidate.file_path
            )
        except Exception as e:  # noqa: BLE001
            err = classify_upstream_error(e, "get_file_content")
            logger.warning(
                f"Skipping {candidate.file_path}@{candidate.snapshot_id}: {err}"
            )
            return None

        if content is None:
            logger.warning(
                f"Content not found for {candidate.file_path} in snapshot {candidate.snapshot_id}"
            )
        return content

    async def hydrate(
        self,
        candidates: Sequence[CandidateMatch],
        context_radius: Optional[int] = None
    ) -> List[HydratedResult]:
        """
        Fetch content for each candidate.

        Each file is fetched once per call. A missing file or a failing fetch
        skips only the candidates of that file.
        """
        files: Dict[Tuple[str, str], Optional[str]] = {}
        hydrated: List[HydratedResult] = []
        for candidate in candidates:
            if candidate.file_key not in files:
                files[candidate.file_key] = await self._fetch(candidate)
            content = files[candidate.file_key]
            if content is None:
                continue

            piece = self.slice_chunk(
                content, candidate.metadata.start_line, candidate.metadata.end_line, context_radius
            )
            hydrated.append(HydratedResult(
                id=candidate.id,
                snapshot_id=candidate.snapshot_id,
                file_path=candidate.file_path,
                score=candidate.score,
                timestamp=candidate.metadata.timestamp or 0.0,
                language=candidate.metadata.language,
                **piece,
            ))
        return hydrated


# ============================================================================
# Enrichment
# ============================================================================

class ResultEnricher:
    """Attaches quality metrics, enhanced metadata and context info"""

    def __init__(self, metadata_provider: Optional[ChunkMetadataProvider] = None):
        self.metadata_provider = metadata_provider

    async def _provided_metadata(self, result: HydratedResult) -> Optional[ChunkMetadata]:
        if self.metadata_provider is None:
            return None
        try:
            return await self.metadata_provider.get_chunk_metadata(
                result.snapshot_id, result.file_path, result.start_line, result.end_line
            )
        except Exception as e:  # noqa: BLE001
            err = classify_upstream_error(e, "get_chunk_metadata")
            logger.warning(f"Metadata unavailable for {result.file_path}, using defaults: {err}")
            return None

    async def enrich_one(self, result: HydratedResult) -> EnrichedResult:
        provided = await self._provided_metadata(result)

        derived = with_safe_default(
            lambda: derive_metadata(result),
            lambda: EnhancedResultMetadata(last_modified=result.timestamp),
            op_name=f"metadata heuristics for {result.file_path}",
        )
        quality = _overlay(QualityMetrics(), provided.quality_metrics if provided else None)
        metadata = _overlay(derived, provided.enhanced_metadata if provided else None)

        # Results built without a content store only know their own chunk
        context_info = ContextInfo(
            surrounding_context=result.surrounding_context,
            architectural_layer=metadata.architectural_layer,
            framework_context=list(metadata.framework_context),
            business_context=metadata.business_domain,
            total_lines=result.total_lines or len(result.content.split('\n')),
            file_size=result.file_size or len(result.content),
        )

        return EnrichedResult(
            **fields_of(result, HydratedResult),
            quality_metrics=quality,
            enhanced_metadata=metadata,
            context_info=context_info,
            relationships=list(provided.relationships) if provided else [],
        )

    async def enrich(self, results: Sequence[HydratedResult]) -> List[EnrichedResult]:
        """Enrich each result; a result that cannot be enriched is dropped and logged"""
        enriched: List[EnrichedResult] = []
        for result in results:
            try:
                enriched.append(await self.enrich_one(result))
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Dropping result {result.id} ({result.file_path}): {e}")
        return enriched
