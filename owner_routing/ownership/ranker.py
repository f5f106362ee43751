"""
Ranker - Orders owners by aggregate score.

Scores are integer point totals accumulated over a whole request. The
ranker sorts, applies a strict minimum, and caps the list.
"""

from dataclasses import dataclass, field

import structlog

from owner_routing.ownership.rules import Contribution, OwnerCandidate

logger = structlog.get_logger()


@dataclass
class ScoreAccumulator:
    """Per-request running totals keyed by canonical handle.

    Insertion order is first-discovery order, which the ranker uses to
    break ties.
    """

    totals: dict[str, int] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)

    def add(self, contribution: Contribution) -> None:
        handle = contribution.handle
        self.totals[handle] = self.totals.get(handle, 0) + contribution.points
        self.counts[handle] = self.counts.get(handle, 0) + 1

    def extend(self, contributions: list[Contribution]) -> None:
        for contribution in contributions:
            self.add(contribution)

    def candidates(self) -> list[OwnerCandidate]:
        return [
            OwnerCandidate(
                canonical_handle=handle,
                aggregate_score=total,
                contributing_rule_count=self.counts.get(handle, 0),
            )
            for handle, total in self.totals.items()
        ]


class Ranker:
    """Sorts, thresholds and caps owner candidates."""

    def __init__(self, min_score: int = 50, max_candidates: int = 3):
        self.min_score = min_score
        self.max_candidates = max_candidates

    def rank(self, totals: dict[str, int] | ScoreAccumulator) -> list[OwnerCandidate]:
        """
        Rank candidates.

        Args:
            totals: Handle -> aggregate score, in first-discovery order,
                or the accumulator that produced them

        Returns:
            At most ``max_candidates`` owners scoring strictly above
            ``min_score``, highest first; ties keep discovery order.
        """
        if isinstance(totals, ScoreAccumulator):
            candidates = totals.candidates()
        else:
            candidates = [
                OwnerCandidate(canonical_handle=handle, aggregate_score=score)
                for handle, score in totals.items()
            ]

        # sorted() is stable, so equal scores stay in discovery order
        ranked = sorted(candidates, key=lambda c: c.aggregate_score, reverse=True)
        kept = [c for c in ranked if c.aggregate_score > self.min_score]

        logger.debug(
            "Candidates ranked",
            considered=len(candidates),
            above_threshold=len(kept),
        )
        return kept[: self.max_candidates]
