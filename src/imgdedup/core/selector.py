"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/selector.py
Threshold selection over scored pairs.
"""

import logging
from typing import List, Sequence

from imgdedup.core.interfaces import DuplicateSelector
from imgdedup.core.models import DuplicateSelection, ScoredPair

logger = logging.getLogger(__name__)


class DuplicateSelectorImpl(DuplicateSelector):
    """
    Keeps pairs whose distance is at or below the threshold (inclusive).
    Pure function of its input: selecting twice gives the same result, and a
    larger threshold never drops a pair a smaller one kept.
    """

    def select(self, pairs: Sequence[ScoredPair], threshold: int) -> DuplicateSelection:
        if threshold < 0:
            raise ValueError("Threshold cannot be negative")

        # sorted() is stable: equal distances keep their input order
        similar = sorted(
            (pair for pair in pairs if pair.distance <= threshold),
            key=lambda pair: pair.distance
        )

        logger.info(
            f"Found {len(similar)} similar pair(s) with a hamming distance of ≤{threshold}"
        )

        return DuplicateSelection(
            threshold=threshold,
            pairs_compared=len(pairs),
            pairs=similar,
            duplicate_paths=self.implicated_paths(similar),
        )

    @staticmethod
    def implicated_paths(pairs: Sequence[ScoredPair]) -> List[str]:
        """Distinct paths appearing in any pair, in first-seen order."""
        seen = {}
        for pair in pairs:
            seen.setdefault(pair.first, None)
            seen.setdefault(pair.second, None)
        return list(seen)
