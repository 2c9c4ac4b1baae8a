"""Dataclass and enum definitions for the Feistel distinguisher."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from quantum_feistel.utils.constants import (
    BUDGET_FACTOR,
    FEISTEL_ROUNDS,
    HALF_BITS,
    PERMUTATION_SWAPS,
)


class AddResult(Enum):
    """Outcome of offering one equation to the solver."""

    INDEPENDENT = "independent"
    DEPENDENT = "dependent"
    INCONSISTENT = "inconsistent"

    @property
    def accepted(self) -> bool:
        return self is not AddResult.INCONSISTENT


class Classification(Enum):
    """Terminal label of a detection attempt."""

    STRUCTURED = "3-round Feistel"
    UNSTRUCTURED = "Random permutation"


class DecisionReason(Enum):
    SOLVED = "solved equation"
    BUDGET_EXHAUSTED = "sampling budget exhausted"


class DetectorState(Enum):
    """States of one detection attempt.

    SAMPLING -> SOLVING -> VERIFYING -> {STRUCTURED, UNSTRUCTURED}
    SAMPLING -> BUDGET_EXHAUSTED -> STRUCTURED
    """

    SAMPLING = "sampling"
    SOLVING = "solving"
    VERIFYING = "verifying"
    BUDGET_EXHAUSTED = "budget_exhausted"
    STRUCTURED = "structured"
    UNSTRUCTURED = "unstructured"

    @property
    def terminal(self) -> bool:
        return self in (DetectorState.STRUCTURED, DetectorState.UNSTRUCTURED)


@dataclass(frozen=True)
class Equation:
    """One row ``coefficients . x = target`` over GF(2)."""

    coefficients: tuple[int, ...]
    target: int

    @property
    def width(self) -> int:
        return len(self.coefficients)


@dataclass(frozen=True)
class SimonMeasurement:
    """Both registers measured after one run of Simon's circuit."""

    x: int  # first register: packed equation
    y: int  # second register: function output


@dataclass
class DetectionConfig:
    """Configuration for a detection run."""

    half_bits: int = HALF_BITS
    rounds: int = FEISTEL_ROUNDS
    budget_factor: int = BUDGET_FACTOR
    permutation_swaps: int = PERMUTATION_SWAPS
    seed: int | None = None


@dataclass
class DetectionResult:
    """Complete record of one detection attempt."""

    classification: Classification
    reason: DecisionReason
    state: DetectorState
    width: int
    mask: int | None = None  # packed candidate, marker bit set
    probe: int | None = None
    rounds: int = 0
    rejected: int = 0
    rank_history: list[int] = field(default_factory=list)
    state_history: list[DetectorState] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)  # type: ignore[type-arg]

    @property
    def structured(self) -> bool:
        return self.classification is Classification.STRUCTURED

    @property
    def label(self) -> str:
        return f"{self.classification.value} ({self.reason.value})"
