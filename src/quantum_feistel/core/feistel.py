"""Balanced Feistel networks, random permutations and the period function.

A block of ``2 * bits`` bits is split into a left half (high bits) and a
right half (low bits). One encryption round maps ``(l, r)`` to
``(r, l ^ F(r, k))``.

``period_function`` builds the map from the Kuwakado-Morii distinguisher:
for a 3-round Feistel network it is 2-to-1 with the hidden period
``((F1(alpha) ^ F1(beta)) << 1) | 1``, while for a random permutation it
has no period at all.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from quantum_feistel.utils.bits import bitmask
from quantum_feistel.utils.constants import PERMUTATION_SWAPS

RoundFunction = Callable[[int, int], int]


def feistel_encrypt(
    value: int,
    round_function: RoundFunction,
    keys: Sequence[int],
    bits: int,
) -> int:
    mask = bitmask(bits)
    right = value & mask
    left = (value >> bits) & mask
    for key in keys:
        left, right = right, left ^ round_function(right, key)
    return right | (left << bits)


def feistel_decrypt(
    value: int,
    round_function: RoundFunction,
    keys: Sequence[int],
    bits: int,
) -> int:
    mask = bitmask(bits)
    right = value & mask
    left = (value >> bits) & mask
    for key in reversed(keys):
        left, right = right ^ round_function(left, key), left
    return right | (left << bits)


class FeistelNetwork:
    """Feistel cipher with fixed round function and round keys.

    Calling the instance encrypts one block.
    """

    def __init__(self, round_function: RoundFunction, keys: Sequence[int], bits: int) -> None:
        if bits < 1:
            raise ValueError(f"Half width must be positive, got {bits}")
        self.round_function = round_function
        self.keys = tuple(keys)
        self.bits = bits

    @property
    def rounds(self) -> int:
        return len(self.keys)

    @property
    def block_bits(self) -> int:
        return 2 * self.bits

    def encrypt(self, value: int) -> int:
        return feistel_encrypt(value, self.round_function, self.keys, self.bits)

    def decrypt(self, value: int) -> int:
        return feistel_decrypt(value, self.round_function, self.keys, self.bits)

    def first_round_output(self, half: int) -> int:
        """F1 applied to ``half``; fixes the hidden period of period_function."""
        return self.round_function(half, self.keys[0]) & bitmask(self.bits)

    def __call__(self, value: int) -> int:
        return self.encrypt(value)

    def __repr__(self) -> str:
        return f"FeistelNetwork(bits={self.bits}, rounds={self.rounds})"


def generate_permutation_map(
    size: int,
    rng: np.random.Generator,
    swaps: int = PERMUTATION_SWAPS,
) -> NDArray[np.int64]:
    """Lookup table holding every value in [0, size) once.

    Starts from the identity and applies ``swaps`` random transpositions.
    """
    if size < 1:
        raise ValueError(f"Table size must be positive, got {size}")
    table = np.arange(size, dtype=np.int64)
    xs = rng.integers(0, size, size=swaps)
    ys = rng.integers(0, size, size=swaps)
    for x, y in zip(xs, ys):
        table[x], table[y] = table[y], table[x]
    return table


def pearson_round_function(table: NDArray[np.int64]) -> RoundFunction:
    """Round function ``F(x, k) = table[x ^ k]`` (a minimal Pearson hash)."""

    def round_function(value: int, key: int) -> int:
        return int(table[value ^ key])

    return round_function


class TablePermutation:
    """Permutation given by an explicit lookup table."""

    def __init__(self, table: NDArray[np.int64]) -> None:
        self.table = table

    @property
    def size(self) -> int:
        return int(self.table.shape[0])

    def __call__(self, value: int) -> int:
        return int(self.table[value])


def make_feistel_network(
    bits: int,
    rounds: int,
    rng: np.random.Generator,
    keys: Sequence[int] | None = None,
    swaps: int = PERMUTATION_SWAPS,
) -> FeistelNetwork:
    """Feistel network with a random Pearson round function and round keys."""
    table = generate_permutation_map(1 << bits, rng, swaps)
    if keys is None:
        keys = [int(k) for k in rng.integers(0, 1 << bits, size=rounds)]
    elif len(keys) != rounds:
        raise ValueError(f"Expected {rounds} round keys, got {len(keys)}")
    return FeistelNetwork(pearson_round_function(table), keys, bits)


def make_random_permutation(
    bits: int,
    rng: np.random.Generator,
    swaps: int = PERMUTATION_SWAPS,
) -> TablePermutation:
    """Random permutation over ``2 * bits`` bits."""
    return TablePermutation(generate_permutation_map(1 << (2 * bits), rng, swaps))


def period_function(
    permutation: Callable[[int], int],
    bits: int,
    alpha: int,
    beta: int,
) -> Callable[[int], int]:
    """Map on ``bits + 1`` input bits built from a ``2 * bits`` permutation.

    Input bit 0 selects ``m = beta`` (set) or ``m = alpha`` (clear); the
    remaining bits form ``a``. The output is the left half of
    ``permutation(a || m)`` XORed with ``m``.
    """
    mask = bitmask(bits)
    alpha &= mask
    beta &= mask

    def f(value: int) -> int:
        a = value >> 1
        m = beta if value & 1 else alpha
        return ((permutation((a << bits) | m) >> bits) & mask) ^ m

    return f


def expected_period(network: FeistelNetwork, alpha: int, beta: int) -> int:
    """Packed hidden period of ``period_function`` over a 3-round network."""
    shift = network.first_round_output(alpha) ^ network.first_round_output(beta)
    return (shift << 1) | 1
