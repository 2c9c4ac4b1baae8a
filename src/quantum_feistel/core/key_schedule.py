"""Round-key input: accept, validate and generate Feistel subkeys."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from quantum_feistel.utils.bits import parse_int
from quantum_feistel.utils.constants import FEISTEL_ROUNDS, HALF_BITS


class KeySchedule:
    """Round keys for a Feistel network with ``bits``-bit halves.

    Supports a comma-separated string of integer literals
    (``"1,2,3"``, ``"0x1f,0x02,7"``) or a sequence of integers.
    """

    def __init__(self, keys: str | Sequence[int], bits: int = HALF_BITS) -> None:
        if bits < 1:
            raise ValueError(f"Half width must be positive, got {bits}")
        self.bits = bits

        if isinstance(keys, str):
            parts = [p for p in keys.split(",") if p.strip()]
            if not parts:
                raise ValueError("Key string holds no round keys")
            values = [parse_int(p) for p in parts]
        elif isinstance(keys, Sequence):
            values = []
            for k in keys:
                if not isinstance(k, (int, np.integer)):
                    raise TypeError(f"Round key must be int, got {type(k).__name__}")
                values.append(int(k))
            if not values:
                raise ValueError("Key sequence holds no round keys")
        else:
            raise TypeError(f"Keys must be str or a sequence of int, got {type(keys).__name__}")

        for value in values:
            if value < 0 or value >> bits:
                raise ValueError(f"Round key {value} does not fit in {bits} bits")
        self._keys = tuple(values)

    @property
    def keys(self) -> tuple[int, ...]:
        return self._keys

    @property
    def rounds(self) -> int:
        return len(self._keys)

    @property
    def as_hex(self) -> str:
        digits = (self.bits + 3) // 4
        return ",".join(f"0x{k:0{digits}x}" for k in self._keys)

    @staticmethod
    def random(
        rng: np.random.Generator,
        rounds: int = FEISTEL_ROUNDS,
        bits: int = HALF_BITS,
    ) -> KeySchedule:
        """Draw ``rounds`` uniform subkeys from ``rng``."""
        return KeySchedule([int(k) for k in rng.integers(0, 1 << bits, size=rounds)], bits)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self):
        return iter(self._keys)

    def __repr__(self) -> str:
        return f"KeySchedule({self.as_hex}, bits={self.bits})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeySchedule):
            return NotImplemented
        return self._keys == other._keys and self.bits == other.bits

    def __hash__(self) -> int:
        return hash((self._keys, self.bits))
