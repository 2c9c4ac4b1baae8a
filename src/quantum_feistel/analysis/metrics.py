"""Metric extraction from batches of detection results."""

from __future__ import annotations

import numpy as np

from quantum_feistel.utils.types import Classification, DecisionReason, DetectionResult


class MetricExtractor:
    """Aggregate sampling effort and outcomes over detection attempts."""

    def __init__(self, results: list[DetectionResult]) -> None:
        self.results = results

    def sampling_stats(self) -> dict:
        """Rounds used and contradictions seen per attempt."""
        if not self.results:
            return {
                "count": 0,
                "rounds_mean": 0.0,
                "rounds_std": 0.0,
                "rounds_max": 0,
                "rejected_mean": 0.0,
                "rejected_total": 0,
            }

        rounds = np.array([r.rounds for r in self.results])
        rejected = np.array([r.rejected for r in self.results])
        return {
            "count": len(self.results),
            "rounds_mean": float(np.mean(rounds)),
            "rounds_std": float(np.std(rounds)),
            "rounds_max": int(np.max(rounds)),
            "rejected_mean": float(np.mean(rejected)),
            "rejected_total": int(np.sum(rejected)),
        }

    def outcome_counts(self) -> dict:
        counts = {c.value: 0 for c in Classification}
        counts.update({reason.value: 0 for reason in DecisionReason})
        for r in self.results:
            counts[r.classification.value] += 1
            counts[r.reason.value] += 1
        return counts

    def first_full_rank_rounds(self) -> list[int]:
        """Accepted round at which each attempt reached full rank.

        Attempts that exhausted their budget are left out.
        """
        firsts = []
        for r in self.results:
            for i, rank in enumerate(r.rank_history):
                if rank == r.width:
                    firsts.append(i + 1)
                    break
        return firsts

    def mean_rank_trajectory(self) -> np.ndarray:
        """Mean rank after each accepted round; finished attempts hold their last rank."""
        if not self.results:
            return np.zeros(0)
        length = max((len(r.rank_history) for r in self.results), default=0)
        if length == 0:
            return np.zeros(0)
        padded = np.zeros((len(self.results), length))
        for i, r in enumerate(self.results):
            history = r.rank_history or [0]
            padded[i, : len(history)] = history
            padded[i, len(history):] = history[-1]
        return padded.mean(axis=0)

    def full_report(self) -> dict:
        firsts = self.first_full_rank_rounds()
        return {
            "sampling": self.sampling_stats(),
            "outcomes": self.outcome_counts(),
            "full_rank_round_mean": float(np.mean(firsts)) if firsts else None,
        }
