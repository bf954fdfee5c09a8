"""
Retrieval Diversifier
Selects a file-diverse candidate set from raw vector-index matches
"""

import math
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import RetrievalConfig, get_config
from ..core.models import CandidateMatch

logger = logging.getLogger(__name__)

FileKey = Tuple[str, str]


class RetrievalDiversifier:
    """
    Two-phase candidate selection:

    - Phase A takes the best candidate of each file, best files first,
      until half the limit (rounded up) is reached.
    - Phase B fills the rest with the best remaining candidates regardless
      of file.

    The output is sorted by score (stable, descending).
    """

    def __init__(self, config: Optional[RetrievalConfig] = None):
        self.config = config or get_config().retrieval

    def recall_floor(self, threshold: float) -> float:
        return max(self.config.recall_floor, threshold - self.config.recall_margin)

    def diversify(
        self,
        candidates: Sequence[CandidateMatch],
        limit: int,
        threshold: Optional[float] = None
    ) -> List[CandidateMatch]:
        """
        Args:
            candidates: Raw matches from the vector index
            limit: Maximum number of candidates to return
            threshold: Score threshold; defaults to the configured one

        Returns:
            At most ``limit`` candidates
        """
        if not candidates or limit <= 0:
            return []

        threshold = self.config.score_threshold if threshold is None else threshold
        floor = self.recall_floor(threshold)
        pool = [c for c in candidates if c.score >= floor]

        # file key -> indices into pool, best first
        groups: Dict[FileKey, List[int]] = defaultdict(list)
        for idx, candidate in enumerate(pool):
            groups[candidate.file_key].append(idx)
        for members in groups.values():
            members.sort(key=lambda i: pool[i].score, reverse=True)

        group_order = sorted(groups, key=lambda key: pool[groups[key][0]].score, reverse=True)

        selected: List[CandidateMatch] = []
        taken_ids = set()

        # Phase A: one per file
        first_round = math.ceil(limit / 2)
        for key in group_order:
            if len(selected) >= first_round:
                break
            best = groups[key].pop(0)
            selected.append(pool[best])
            taken_ids.add(pool[best].id)

        # Phase B: best remaining
        remaining = sorted(
            (pool[i] for members in groups.values() for i in members),
            key=lambda c: c.score,
            reverse=True,
        )
        for candidate in remaining:
            if len(selected) >= limit:
                break
            if candidate.id in taken_ids:
                continue
            selected.append(candidate)
            taken_ids.add(candidate.id)

        selected.sort(key=lambda c: c.score, reverse=True)
        logger.debug(
            f"Diversified {len(candidates)} candidates -> {len(selected)} "
            f"across {len(groups)} files (floor {floor:.2f})"
        )
        return selected
