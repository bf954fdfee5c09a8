"""
Shared fixtures: in-memory collaborators and result builders
"""

from types import SimpleNamespace
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from enhanced_search.core.config import Config
from enhanced_search.core.interfaces import (
    ChunkMetadataProvider,
    ContentStore,
    EmbeddingProvider,
    VectorIndex,
)
from enhanced_search.core.models import (
    CandidateMatch,
    CandidateMetadata,
    ChunkMetadata,
    EnhancedResultMetadata,
    EnrichedResult,
    HydratedResult,
    QualityMetrics,
    RankedResult,
)
from enhanced_search.pipeline import EnhancedSearchPipeline
from enhanced_search.semantic.query_processor import QueryProcessor

NOW = 1_700_000_000.0
DAY = 86400.0


class FakeEmbeddingProvider(EmbeddingProvider):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[Tuple[str, Optional[str]]] = []

    async def embed(self, text: str, language_hint: Optional[str] = None) -> List[float]:
        self.calls.append((text, language_hint))
        if self.error is not None:
            raise self.error
        return [float(len(text)), 1.0, 0.0]


class FakeVectorIndex(VectorIndex):
    def __init__(self, candidates: Sequence[CandidateMatch] = (), error: Optional[Exception] = None):
        self.candidates = list(candidates)
        self.error = error
        self.queries: List[Dict] = []

    async def query(self, vector, top_k, snapshot_ids=None, languages=None) -> List[CandidateMatch]:
        self.queries.append({
            'vector': vector, 'top_k': top_k,
            'snapshot_ids': snapshot_ids, 'languages': languages,
        })
        if self.error is not None:
            raise self.error
        return sorted(self.candidates, key=lambda c: c.score, reverse=True)[:top_k]

    async def upsert(self, batch: Sequence[CandidateMatch]) -> None:
        self.candidates.extend(batch)


class FakeContentStore(ContentStore):
    def __init__(self, files: Optional[Dict[Tuple[str, str], str]] = None, failing: Sequence[str] = ()):
        self.files = dict(files or {})
        self.failing = set(failing)

    async def get_file_content(self, snapshot_id: str, file_path: str) -> Optional[str]:
        if file_path in self.failing:
            raise ConnectionError(f"connection reset reading {file_path}")
        return self.files.get((snapshot_id, file_path))


class FakeMetadataProvider(ChunkMetadataProvider):
    def __init__(self, by_path: Optional[Dict[str, ChunkMetadata]] = None, error: Optional[Exception] = None):
        self.by_path = dict(by_path or {})
        self.error = error

    async def get_chunk_metadata(self, snapshot_id, file_path, start_line, end_line) -> Optional[ChunkMetadata]:
        if self.error is not None:
            raise self.error
        return self.by_path.get(file_path)


def build_candidate(
    id: str,
    file_path: str,
    score: float,
    snapshot_id: str = 'snap-1',
    start_line: int = 0,
    end_line: int = 2,
    timestamp: Optional[float] = None,
    language: Optional[str] = 'python',
) -> CandidateMatch:
    return CandidateMatch(
        id=id,
        file_path=file_path,
        snapshot_id=snapshot_id,
        score=score,
        metadata=CandidateMetadata(
            language=language, start_line=start_line, end_line=end_line, timestamp=timestamp
        ),
    )


def build_hydrated(
    id: str,
    file_path: str,
    score: float,
    content: str = "def handler(request):\n    return process(request)",
    timestamp: float = NOW - 10 * DAY,
    snapshot_id: str = 'snap-1',
) -> HydratedResult:
    return HydratedResult(
        id=id,
        snapshot_id=snapshot_id,
        file_path=file_path,
        start_line=0,
        end_line=len(content.split('\n')) - 1,
        score=score,
        content=content,
        timestamp=timestamp,
        language='python',
    )


def build_ranked(
    id: str,
    file_path: str,
    composite_score: float,
    design_patterns: Sequence[str] = (),
    content: str = "def handler(request):\n    return process(request)",
    quality: Optional[QualityMetrics] = None,
    timestamp: float = NOW - 10 * DAY,
    semantic_type: str = 'function',
) -> RankedResult:
    return RankedResult(
        id=id,
        snapshot_id='snap-1',
        file_path=file_path,
        start_line=0,
        end_line=len(content.split('\n')) - 1,
        score=composite_score,
        content=content,
        timestamp=timestamp,
        language='python',
        quality_metrics=quality or QualityMetrics(),
        enhanced_metadata=EnhancedResultMetadata(
            semantic_type=semantic_type,
            design_patterns=list(design_patterns),
        ),
        composite_score=composite_score,
    )


def build_enriched(
    id: str,
    file_path: str,
    score: float,
    content: str = "def handler(request):\n    return process(request)",
    timestamp: float = NOW - 10 * DAY,
    quality: Optional[QualityMetrics] = None,
    metadata: Optional[EnhancedResultMetadata] = None,
) -> EnrichedResult:
    return EnrichedResult(
        id=id,
        snapshot_id='snap-1',
        file_path=file_path,
        start_line=0,
        end_line=len(content.split('\n')) - 1,
        score=score,
        content=content,
        timestamp=timestamp,
        language='python',
        quality_metrics=quality or QualityMetrics(),
        enhanced_metadata=metadata or EnhancedResultMetadata(),
    )


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def processor() -> QueryProcessor:
    return QueryProcessor()


@pytest.fixture
def pipeline(config) -> EnhancedSearchPipeline:
    return EnhancedSearchPipeline(config=config)


@pytest.fixture
def make_candidate():
    return build_candidate


@pytest.fixture
def make_hydrated():
    return build_hydrated


@pytest.fixture
def make_enriched():
    return build_enriched


@pytest.fixture
def make_ranked():
    return build_ranked


@pytest.fixture
def now() -> float:
    return NOW


@pytest.fixture
def fakes() -> SimpleNamespace:
    """In-memory collaborator classes"""
    return SimpleNamespace(
        embedding=FakeEmbeddingProvider,
        index=FakeVectorIndex,
        content=FakeContentStore,
        metadata=FakeMetadataProvider,
    )
