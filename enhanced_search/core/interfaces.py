"""
Core interfaces for Enhanced Search system
Defines abstract base classes for the external collaborators the pipeline consumes
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from .models import CandidateMatch, ChunkMetadata


class EmbeddingProvider(ABC):
    """Interface for turning query text into a vector"""

    @abstractmethod
    async def embed(
        self,
        text: str,
        language_hint: Optional[str] = None
    ) -> List[float]:
        """Embed text, optionally hinting the programming language"""
        pass


class VectorIndex(ABC):
    """Interface for approximate nearest-neighbour search over code chunks"""

    @abstractmethod
    async def query(
        self,
        vector: List[float],
        top_k: int,
        snapshot_ids: Optional[Sequence[str]] = None,
        languages: Optional[Sequence[str]] = None
    ) -> List[CandidateMatch]:
        """Return up to top_k candidates ordered by similarity"""
        pass

    @abstractmethod
    async def upsert(self, batch: Sequence[CandidateMatch]) -> None:
        """Insert or replace indexed chunks"""
        pass


class ContentStore(ABC):
    """Interface for reading file content from a snapshot"""

    @abstractmethod
    async def get_file_content(
        self,
        snapshot_id: str,
        file_path: str
    ) -> Optional[str]:
        """Return the full file text, or None when the file is missing"""
        pass


class ChunkMetadataProvider(ABC):
    """Interface for pre-computed quality and structural metadata"""

    @abstractmethod
    async def get_chunk_metadata(
        self,
        snapshot_id: str,
        file_path: str,
        start_line: int,
        end_line: int
    ) -> Optional[ChunkMetadata]:
        """Return metadata for a chunk; None means defaults are used"""
        pass
