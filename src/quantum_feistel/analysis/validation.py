"""Repeated detection trials and their statistical validation."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from scipy.stats import binom

from quantum_feistel.core.detector import run_feistel_detect
from quantum_feistel.core.feistel import make_feistel_network, make_random_permutation
from quantum_feistel.utils.constants import CONFIDENCE_LEVEL
from quantum_feistel.utils.types import (
    Classification,
    DecisionReason,
    DetectionConfig,
    DetectionResult,
)


class TrialRunner:
    """Run many detection attempts with one seeded generator.

    Each Feistel or random-permutation trial gets freshly generated tables
    and round keys.
    """

    def __init__(self, config: DetectionConfig | None = None) -> None:
        self.config = config or DetectionConfig()
        self.rng = np.random.default_rng(self.config.seed)

    def run(self, permutation: Callable[[int], int], trials: int) -> list[DetectionResult]:
        """Repeat detection against one fixed permutation."""
        return [self._detect(permutation) for _ in range(trials)]

    def run_feistel(self, trials: int) -> list[DetectionResult]:
        cfg = self.config
        results = []
        for _ in range(trials):
            network = make_feistel_network(
                cfg.half_bits, cfg.rounds, self.rng, swaps=cfg.permutation_swaps
            )
            results.append(self._detect(network))
        return results

    def run_random(self, trials: int) -> list[DetectionResult]:
        cfg = self.config
        results = []
        for _ in range(trials):
            permutation = make_random_permutation(
                cfg.half_bits, self.rng, swaps=cfg.permutation_swaps
            )
            results.append(self._detect(permutation))
        return results

    def _detect(self, permutation: Callable[[int], int]) -> DetectionResult:
        return run_feistel_detect(
            permutation,
            self.config.half_bits,
            self.rng,
            budget_factor=self.config.budget_factor,
        )


class Validator:
    """Compare a batch of detection results against the expected label.

    Computes classification rates, binomial confidence intervals and the
    rate at which solved attempts recovered the true hidden period.
    """

    def __init__(self, results: list[DetectionResult], expected: Classification) -> None:
        self.results = results
        self.expected = expected

    def correct_count(self) -> int:
        return sum(r.classification is self.expected for r in self.results)

    def classification_rate(self) -> float:
        """Fraction of attempts labelled as expected (0.0 to 1.0)."""
        if not self.results:
            return 0.0
        return self.correct_count() / len(self.results)

    def confidence_interval(self, alpha: float = CONFIDENCE_LEVEL) -> tuple[float, float]:
        """Binomial confidence interval on the classification rate.

        Returns (lower, upper) bounds as fractions in [0, 1].
        """
        n = len(self.results)
        if n == 0:
            return (0.0, 0.0)
        p_hat = self.correct_count() / n
        lo, hi = binom.interval(alpha, n, p_hat)
        return (float(lo) / n, float(hi) / n)

    def mask_recovery_rate(self) -> float:
        """Among solved attempts with a known period, fraction that found it."""
        checked = [
            r for r in self.results
            if r.reason is DecisionReason.SOLVED and "expected_mask" in r.metadata
        ]
        if not checked:
            return 0.0
        hits = sum(r.mask == r.metadata["expected_mask"] for r in checked)
        return hits / len(checked)

    def summary(self, alpha: float = CONFIDENCE_LEVEL) -> dict:
        return {
            "expected": self.expected.value,
            "trials": len(self.results),
            "classification_rate": self.classification_rate(),
            "confidence_interval": self.confidence_interval(alpha),
            "mask_recovery_rate": self.mask_recovery_rate(),
        }
