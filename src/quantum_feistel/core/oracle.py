"""Equation oracles for the detector.

An oracle produces raw measurements of ``width + 1`` bits which decode
into one GF(2) equation each (bit 0 = target, bits ``1..width`` =
coefficients), and evaluates the classical function behind it.

``SimonSampler`` stands in for a quantum backend. Instead of applying
gates to a register it computes the exact output distribution of Simon's
circuit (Hadamard, U_f, Hadamard, measure):

    P(y, z) = | 2^-n * sum_{x : f(x) = z} (-1)^(x . y) |^2

Sampling measures the second register first: a uniform input fixes
``z``, then ``y`` is drawn from the fast Walsh-Hadamard spectrum of the
preimage of ``z``. The joint table is never built.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from quantum_feistel.utils.bits import bitmask
from quantum_feistel.utils.constants import DISTRIBUTION_BLOCK_CELLS, MAX_SAMPLER_INPUT_BITS
from quantum_feistel.utils.types import SimonMeasurement

logger = logging.getLogger(__name__)


@runtime_checkable
class EquationOracle(Protocol):
    """What the detector needs from an oracle."""

    width: int

    def sample(self, rng: np.random.Generator) -> int:
        """One raw measurement: bit 0 = target, bits 1..width = coefficients."""
        ...

    def evaluate(self, x: int) -> int:
        """The classical function the samples are drawn from."""
        ...


def walsh_hadamard(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Unnormalised Walsh-Hadamard transform along the last axis.

    The last axis length must be a power of two. Output index y holds
    sum_x (-1)^(x . y) * values[..., x].
    """
    out = np.array(values, dtype=np.float64)
    lead = out.shape[:-1]
    n = out.shape[-1]
    if n & (n - 1):
        raise ValueError(f"Transform length must be a power of two, got {n}")
    h = 1
    while h < n:
        out = out.reshape(*lead, n // (2 * h), 2, h)
        low = out[..., 0, :]
        high = out[..., 1, :]
        out = np.stack((low + high, low - high), axis=-2).reshape(*lead, n)
        h *= 2
    return out


class SimonSampler:
    """Exact sampler for Simon's circuit over a tabulated function.

    Measuring the second register first gives ``z = f(x)`` for a uniform
    ``x``; the first register then collapses onto the Walsh spectrum of
    the preimage ``f^{-1}(z)``. Each draw transforms one indicator row of
    length ``2^n_inputs``, so memory stays linear in the input space.

    Args:
        function: classical map on ``n_inputs`` bits, outputs below ``2^n_outputs``.
        n_inputs: input register width (the packed equation width, ``width + 1``).
        n_outputs: output register width.
    """

    def __init__(
        self,
        function: Callable[[int], int],
        n_inputs: int,
        n_outputs: int,
    ) -> None:
        if n_inputs < 2:
            raise ValueError(f"Need at least 2 input bits, got {n_inputs}")
        if n_inputs > MAX_SAMPLER_INPUT_BITS or n_outputs > MAX_SAMPLER_INPUT_BITS:
            raise ValueError(
                f"Register widths ({n_inputs}, {n_outputs}) exceed "
                f"{MAX_SAMPLER_INPUT_BITS} bits"
            )
        self.function = function
        self.n_inputs = n_inputs
        self.n_outputs = n_outputs
        self.width = n_inputs - 1
        self._table: NDArray[np.int64] | None = None

    @property
    def size(self) -> int:
        return 1 << self.n_inputs

    @property
    def table(self) -> NDArray[np.int64]:
        """f evaluated on every input."""
        if self._table is None:
            table = np.fromiter(
                (self.function(x) for x in range(self.size)), dtype=np.int64, count=self.size
            )
            if np.any(table < 0) or np.any(table > bitmask(self.n_outputs)):
                raise ValueError(f"Function outputs exceed {self.n_outputs} bits")
            self._table = table
            logger.debug("tabulated %d-bit function", self.n_inputs)
        return self._table

    @property
    def output_distribution(self) -> NDArray[np.float64]:
        """P(second register = z): the preimage size of z over 2^n_inputs."""
        counts = np.bincount(self.table, minlength=1 << self.n_outputs)
        return counts / self.size

    def conditional_distribution(self, z: int) -> NDArray[np.float64]:
        """P(first register = y | second register = z)."""
        indicator = (self.table == z).astype(np.float64)
        if not indicator.any():
            raise ValueError(f"Output {z} is not in the image of the function")
        probs = walsh_hadamard(indicator) ** 2
        return probs / probs.sum()

    @property
    def distribution(self) -> NDArray[np.float64]:
        """Marginal distribution of the first register.

        Sums the squared spectra of every preimage, in blocks of rows.
        Cost grows with the number of distinct outputs; meant for small
        registers (plots, self-checks).
        """
        outputs = np.unique(self.table)
        block = max(1, DISTRIBUTION_BLOCK_CELLS >> self.n_inputs)
        total = np.zeros(self.size, dtype=np.float64)
        for start in range(0, outputs.size, block):
            chunk = outputs[start : start + block]
            indicator = (self.table[np.newaxis, :] == chunk[:, np.newaxis]).astype(np.float64)
            total += (walsh_hadamard(indicator) ** 2).sum(axis=0)
        return total / total.sum()

    def measure(self, rng: np.random.Generator) -> SimonMeasurement:
        """One run of the circuit: both registers measured."""
        z = int(self.table[rng.integers(0, self.size)])
        y = int(rng.choice(self.size, p=self.conditional_distribution(z)))
        return SimonMeasurement(x=y, y=z)

    def sample(self, rng: np.random.Generator) -> int:
        return self.measure(rng).x

    def sample_many(self, rng: np.random.Generator, count: int) -> NDArray[np.int64]:
        """``count`` independent first-register outcomes."""
        outputs = self.table[rng.integers(0, self.size, size=count)]
        samples = np.empty(count, dtype=np.int64)
        for z in np.unique(outputs):
            hits = outputs == z
            samples[hits] = rng.choice(
                self.size, size=int(hits.sum()), p=self.conditional_distribution(int(z))
            )
        return samples

    def evaluate(self, x: int) -> int:
        return self.function(x)


class ScriptedOracle:
    """Replays a fixed sequence of raw measurements."""

    def __init__(
        self,
        samples: Iterable[int],
        width: int,
        function: Callable[[int], int] | None = None,
    ) -> None:
        self.width = width
        self._samples = list(samples)
        self._position = 0
        self._function = function

    @property
    def consumed(self) -> int:
        return self._position

    def sample(self, rng: np.random.Generator) -> int:
        if self._position >= len(self._samples):
            raise RuntimeError(f"Scripted oracle exhausted after {self._position} samples")
        value = self._samples[self._position]
        self._position += 1
        return value

    def evaluate(self, x: int) -> int:
        if self._function is None:
            raise RuntimeError("Scripted oracle has no backing function")
        return self._function(x)
