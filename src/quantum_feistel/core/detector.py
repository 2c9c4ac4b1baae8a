"""Sample-driven decision procedure: 3-round Feistel vs. random permutation.

The detector draws equations from an oracle into a fresh GF2Solver. A
contradiction discards the round without charging the budget. As soon as
the rank equals the width the system is solved for a candidate period
``s``, and one random probe ``u`` decides: ``f(u) == f(u ^ s)`` means the
oracle is structured (a Feistel network), otherwise it is a random
permutation. If ``budget_factor * width`` accepted rounds pass without
reaching full rank, the oracle is classified as structured.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from quantum_feistel.core.feistel import FeistelNetwork, expected_period, period_function
from quantum_feistel.core.gf2_solver import GF2Solver
from quantum_feistel.core.oracle import EquationOracle, SimonSampler
from quantum_feistel.utils.constants import BUDGET_FACTOR
from quantum_feistel.utils.types import (
    Classification,
    DecisionReason,
    DetectionResult,
    DetectorState,
)

logger = logging.getLogger(__name__)


class FeistelDetector:
    """One detection attempt against one oracle.

    A detector instance owns its solver and runs exactly once; build a new
    detector for the next attempt.
    """

    def __init__(
        self,
        width: int,
        budget_factor: int = BUDGET_FACTOR,
        rng: np.random.Generator | None = None,
    ) -> None:
        if width < 1:
            raise ValueError(f"Width must be positive, got {width}")
        if budget_factor < 1:
            raise ValueError(f"Budget factor must be positive, got {budget_factor}")
        self.width = width
        self.budget_factor = budget_factor
        self.rng = rng if rng is not None else np.random.default_rng()
        self.solver = GF2Solver(width)
        self.state = DetectorState.SAMPLING
        self.state_history: list[DetectorState] = [DetectorState.SAMPLING]
        self.rank_history: list[int] = []

    @property
    def budget(self) -> int:
        """Accepted sampling rounds allowed before guessing."""
        return self.budget_factor * self.width

    def detect(self, oracle: EquationOracle) -> DetectionResult:
        if self.state.terminal or self.rank_history:
            raise RuntimeError("Detector already used; create a new one per attempt")
        if oracle.width != self.width:
            raise ValueError(f"Oracle width {oracle.width} != detector width {self.width}")

        rounds = 0
        while rounds < self.budget:
            sample = oracle.sample(self.rng)
            if not self.solver.try_add_packed(sample).accepted:
                logger.debug("round %d: discarded inconsistent sample %#x", rounds, sample)
                continue
            rounds += 1
            self.rank_history.append(self.solver.rank())
            if self.solver.is_full_rank:
                return self._solve_and_verify(oracle, rounds)

        self._enter(DetectorState.BUDGET_EXHAUSTED)
        logger.debug("budget of %d rounds exhausted at rank %d", self.budget, self.solver.rank())
        self._enter(DetectorState.STRUCTURED)
        return self._result(Classification.STRUCTURED, DecisionReason.BUDGET_EXHAUSTED, rounds)

    def _solve_and_verify(self, oracle: EquationOracle, rounds: int) -> DetectionResult:
        self._enter(DetectorState.SOLVING)
        mask = self.solver.solve_packed()

        self._enter(DetectorState.VERIFYING)
        probe = int(self.rng.integers(0, 1 << (self.width + 1)))
        f_u = oracle.evaluate(probe)
        f_u_s = oracle.evaluate(probe ^ mask)
        logger.debug("mask %#x, probe %#x: f(u)=%#x f(u^s)=%#x", mask, probe, f_u, f_u_s)

        if f_u == f_u_s:
            self._enter(DetectorState.STRUCTURED)
            classification = Classification.STRUCTURED
        else:
            self._enter(DetectorState.UNSTRUCTURED)
            classification = Classification.UNSTRUCTURED
        return self._result(classification, DecisionReason.SOLVED, rounds, mask, probe)

    def _enter(self, state: DetectorState) -> None:
        self.state = state
        self.state_history.append(state)

    def _result(
        self,
        classification: Classification,
        reason: DecisionReason,
        rounds: int,
        mask: int | None = None,
        probe: int | None = None,
    ) -> DetectionResult:
        return DetectionResult(
            classification=classification,
            reason=reason,
            state=self.state,
            state_history=list(self.state_history),
            width=self.width,
            mask=mask,
            probe=probe,
            rounds=rounds,
            rejected=self.solver.rejected,
            rank_history=list(self.rank_history),
        )


def run_feistel_detect(
    permutation: Callable[[int], int],
    bits: int,
    rng: np.random.Generator,
    budget_factor: int = BUDGET_FACTOR,
) -> DetectionResult:
    """Full distinguisher run against a ``2 * bits`` permutation.

    Draws random ``alpha`` and ``beta``, builds the period function and its
    Simon sampler, and runs one detection attempt.
    """
    alpha = int(rng.integers(0, 1 << bits))
    beta = int(rng.integers(0, 1 << bits))
    function = period_function(permutation, bits, alpha, beta)
    oracle = SimonSampler(function, n_inputs=bits + 1, n_outputs=bits)

    result = FeistelDetector(bits, budget_factor=budget_factor, rng=rng).detect(oracle)
    result.metadata["alpha"] = alpha
    result.metadata["beta"] = beta
    if isinstance(permutation, FeistelNetwork):
        result.metadata["expected_mask"] = expected_period(permutation, alpha, beta)
    return result
