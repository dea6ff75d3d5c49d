"""Capacity-bounded ranked list of candidate PENs."""

import logging
from typing import Iterator

from penmatch import Candidate, PenAlgorithm

log = logging.getLogger(__name__)

MAX_CANDIDATES = 20
UNKNOWN_ALGORITHM_WEIGHT = 9999

# (weight, score) for algorithms with a fixed ranking
FIXED_WEIGHTS: dict[PenAlgorithm, tuple[int, int]] = {
    PenAlgorithm.ALG_S1: (100, 100),
    PenAlgorithm.ALG_S2: (110, 100),
    PenAlgorithm.ALG_SP: (190, 100),
    PenAlgorithm.ALG_00: (0, 1),
}

# Algorithms ranked by (number * 10, accumulated total points)
SCORED_ALGORITHMS = frozenset({
    PenAlgorithm.ALG_20,
    PenAlgorithm.ALG_30,
    PenAlgorithm.ALG_40,
    PenAlgorithm.ALG_50,
    PenAlgorithm.ALG_51,
})


def weight_and_score(algorithm: PenAlgorithm, total_points: int) -> tuple[int, int]:
    """Map a matching algorithm to its ranking weight and score.

    Args:
        algorithm: The PenAlgorithm that produced the match.
        total_points: Points accumulated by the scored rules.

    Returns:
        (weight, score). Lower weights rank first. Unknown algorithms get
        a very large weight so they never outrank a real match.
    """
    if algorithm in FIXED_WEIGHTS:
        return FIXED_WEIGHTS[algorithm]
    if algorithm in SCORED_ALGORITHMS:
        return int(algorithm.value) * 10, total_points
    log.warning("Unconvertible algorithm code: %r", algorithm)
    return UNKNOWN_ALGORITHM_WEIGHT, 0


class CandidateList:
    """Candidates ordered by ascending weight, then descending score.

    Insertion shifts entries the way an ordered insert does: the new entry
    moves up past every neighbour with a larger weight, or the same weight
    and a lower score. Entries with equal keys keep insertion order. An
    entry that would land beyond `capacity` is dropped; one landing inside
    pushes the last entry out.
    """

    def __init__(self, capacity: int = MAX_CANDIDATES) -> None:
        self.capacity = capacity
        self._entries: list[Candidate] = []

    def insert_sorted(self, candidate: Candidate) -> bool:
        """Insert a candidate at its ranked position.

        Returns:
            True if the candidate was stored, False if it ranked beyond
            capacity.
        """
        index = len(self._entries)
        while index > 0 and _ranks_before(candidate, self._entries[index - 1]):
            index -= 1

        if index >= self.capacity:
            log.debug("Candidate %s dropped, list is full", candidate.label)
            return False

        self._entries.insert(index, candidate)
        if len(self._entries) > self.capacity:
            evicted = self._entries.pop()
            log.debug("Candidate %s evicted by %s", evicted.label, candidate.label)
        return True

    def add(self, pen: str, algorithm: PenAlgorithm, total_points: int = 0,
            questionable: bool = False) -> bool:
        weight, score = weight_and_score(algorithm, total_points)
        return self.insert_sorted(Candidate(pen, weight, score, questionable))

    def labels(self) -> list[str]:
        return [c.label for c in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> Candidate:
        return self._entries[index]


def _ranks_before(new: Candidate, existing: Candidate) -> bool:
    return new.weight < existing.weight or (
        new.weight == existing.weight and new.score > existing.score
    )
