"""Online linear-system solver over GF(2).

Equations ``c . x = t`` arrive one at a time. Each is reduced against the
current independent set; independent rows extend that set, dependent rows
are kept aside and contradictions (``0 = 1`` after elimination) are
rejected. Once the independent set has ``width`` rows the system is solved
by elimination and back-substitution.

Packed-integer convention: bit 0 holds the target, bit ``i + 1`` holds the
coefficient of ``x_i``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from quantum_feistel.utils.bits import as_bit_vector, bitmask, bits_to_int, int_to_bits
from quantum_feistel.utils.types import AddResult, Equation

logger = logging.getLogger(__name__)


class GF2Error(ArithmeticError):
    """Base class for solver errors."""


class InconsistentEquationError(GF2Error):
    """Equation reduces to ``0 = 1`` against the independent set."""

    def __init__(self, equation: Equation) -> None:
        self.equation = equation
        super().__init__(f"Inconsistent equation: {equation}")


class UnsolvedSystemError(GF2Error):
    """solve() called before the rank reached the unknown's width."""


# -- packing ---------------------------------------------------------------


def pack_equation(coefficients: Sequence[int] | NDArray[np.integer], target: int) -> int:
    return (bits_to_int(coefficients) << 1) | (int(target) & 1)


def unpack_equation(value: int, width: int) -> Equation:
    if value < 0 or value >> (width + 1):
        raise ValueError(f"Packed equation {value} wider than {width + 1} bits")
    coeffs = tuple(int(b) for b in int_to_bits(value >> 1, width))
    return Equation(coefficients=coeffs, target=value & 1)


def pack_solution(solution: Sequence[int] | NDArray[np.integer]) -> int:
    """Pack a solution vector with the marker bit 0 set."""
    return (bits_to_int(solution) << 1) | 1


def unpack_solution(value: int, width: int) -> NDArray[np.uint8]:
    return int_to_bits((value >> 1) & bitmask(width), width)


def gf2_rank(rows: list[int], n_cols: int) -> int:
    """Rank of int-bitset rows over GF(2) via full Gaussian elimination."""
    work = rows[:]
    rank = 0
    row_idx = 0
    for col in range(n_cols):
        pivot = None
        for r in range(row_idx, len(work)):
            if (work[r] >> col) & 1:
                pivot = r
                break
        if pivot is None:
            continue
        work[row_idx], work[pivot] = work[pivot], work[row_idx]
        for r in range(len(work)):
            if r != row_idx and ((work[r] >> col) & 1):
                work[r] ^= work[row_idx]
        rank += 1
        row_idx += 1
        if row_idx == len(work):
            break
    return rank


# -- solver ----------------------------------------------------------------


class GF2Solver:
    """Incremental GF(2) solver for a fixed number of unknowns.

    Rows are stored as uint8 arrays of length ``width + 1``: the
    coefficients followed by the target column. Stored rows are never
    modified; elimination always runs on copies.
    """

    def __init__(self, width: int) -> None:
        if width < 1:
            raise ValueError(f"Width must be positive, got {width}")
        self.width = width
        self._independent: list[NDArray[np.uint8]] = []
        self._dependent: list[NDArray[np.uint8]] = []
        self._rejected = 0

    def __len__(self) -> int:
        return len(self._independent) + len(self._dependent)

    def __repr__(self) -> str:
        return (
            f"GF2Solver(width={self.width}, rank={self.rank()}, "
            f"dependent={len(self._dependent)}, rejected={self._rejected})"
        )

    # -- state ---------------------------------------------------------------

    def rank(self) -> int:
        """Number of linearly independent equations accepted so far."""
        return len(self._independent)

    @property
    def is_full_rank(self) -> bool:
        return self.rank() == self.width

    @property
    def rejected(self) -> int:
        """Number of equations refused as inconsistent."""
        return self._rejected

    @property
    def independent_equations(self) -> list[Equation]:
        return [self._to_equation(row) for row in self._independent]

    @property
    def dependent_equations(self) -> list[Equation]:
        return [self._to_equation(row) for row in self._dependent]

    @property
    def equations(self) -> list[Equation]:
        """Accepted equations: the independent prefix, then the dependent suffix."""
        return self.independent_equations + self.dependent_equations

    # -- ingestion -----------------------------------------------------------

    def try_add_equation(self, coefficients: Sequence[int] | NDArray[np.integer] | int, target: int) -> AddResult:
        """Offer one equation; report how it relates to the independent set.

        Inconsistent equations are counted and dropped, nothing is raised.
        """
        row = self._make_row(coefficients, target)
        reduced = self._reduce(row)
        if not reduced.any():
            self._dependent.append(row)
            result = AddResult.DEPENDENT
        elif not reduced[: self.width].any():
            self._rejected += 1
            result = AddResult.INCONSISTENT
        else:
            self._independent.append(row)
            result = AddResult.INDEPENDENT
        logger.debug("equation %s -> %s (rank %d)", self._to_equation(row), result.value, self.rank())
        return result

    def add_equation(self, coefficients: Sequence[int] | NDArray[np.integer] | int, target: int) -> AddResult:
        """Like try_add_equation, but raise on a contradiction."""
        result = self.try_add_equation(coefficients, target)
        if result is AddResult.INCONSISTENT:
            raise InconsistentEquationError(
                self._to_equation(self._make_row(coefficients, target))
            )
        return result

    def try_add_packed(self, value: int) -> AddResult:
        equation = unpack_equation(value, self.width)
        return self.try_add_equation(equation.coefficients, equation.target)

    def add_packed(self, value: int) -> AddResult:
        equation = unpack_equation(value, self.width)
        return self.add_equation(equation.coefficients, equation.target)

    # -- solving -------------------------------------------------------------

    def solve(self) -> NDArray[np.uint8]:
        """Return the unique solution of the independent subsystem.

        Raises:
            UnsolvedSystemError: if the rank is below the width.
        """
        if not self.is_full_rank:
            raise UnsolvedSystemError(
                f"Could not solve: rank {self.rank()} < width {self.width}"
            )
        work = self._row_echelon(np.array(self._independent, dtype=np.uint8))
        return self._back_substitute(work)

    def solve_packed(self) -> int:
        """Solve and pack the result with the marker bit 0 set."""
        return pack_solution(self.solve())

    # -- internals -----------------------------------------------------------

    def _make_row(self, coefficients: Sequence[int] | NDArray[np.integer] | int, target: int) -> NDArray[np.uint8]:
        if isinstance(coefficients, (int, np.integer)):
            if coefficients < 0 or int(coefficients) >> self.width:
                raise ValueError(
                    f"Coefficient value {coefficients} wider than {self.width} bits"
                )
            coeffs = int_to_bits(int(coefficients), self.width)
        else:
            coeffs = as_bit_vector(coefficients, self.width)
        if int(target) not in (0, 1):
            raise ValueError(f"Target must be 0 or 1, got {target}")
        row = np.empty(self.width + 1, dtype=np.uint8)
        row[: self.width] = coeffs
        row[self.width] = int(target)
        return row

    def _to_equation(self, row: NDArray[np.uint8]) -> Equation:
        return Equation(
            coefficients=tuple(int(b) for b in row[: self.width]),
            target=int(row[self.width]),
        )

    def _reduce(self, row: NDArray[np.uint8]) -> NDArray[np.uint8]:
        """Eliminate the augmented independent set plus ``row``; return the last row."""
        work = np.vstack(self._independent + [row])
        n_rows = work.shape[0]
        offset = 0
        for col in range(self.width + 1):
            candidates = np.nonzero(work[offset:, col])[0]
            if candidates.size == 0:
                continue
            pivot = offset + int(candidates[0])
            if pivot != offset:
                work[[offset, pivot]] = work[[pivot, offset]]
            below = np.nonzero(work[offset + 1 :, col])[0] + offset + 1
            work[below] ^= work[offset]
            offset += 1
            if offset == n_rows:
                break
        return work[-1]

    def _row_echelon(self, work: NDArray[np.uint8]) -> NDArray[np.uint8]:
        for col in range(self.width):
            candidates = np.nonzero(work[col:, col])[0]
            if candidates.size == 0:
                raise UnsolvedSystemError(f"No pivot for column {col}")
            pivot = col + int(candidates[0])
            if pivot != col:
                work[[col, pivot]] = work[[pivot, col]]
            below = np.nonzero(work[col + 1 :, col])[0] + col + 1
            work[below] ^= work[col]
        return work

    def _back_substitute(self, work: NDArray[np.uint8]) -> NDArray[np.uint8]:
        n = self.width
        result = np.zeros(n, dtype=np.uint8)
        for index in range(n - 1, -1, -1):
            resolved = int(np.bitwise_and(work[index, index + 1 : n], result[index + 1 :]).sum()) & 1
            result[index] = resolved ^ int(work[index, n])
        return result
