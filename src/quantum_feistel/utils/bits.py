"""Bit-vector helpers shared by the solver, oracles and fixtures."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray


def bitmask(bits: int) -> int:
    """All-ones mask of the given width."""
    return (1 << bits) - 1


def parity(value: int) -> int:
    """XOR of all bits of a non-negative integer."""
    return bin(value).count("1") & 1


def dot(a: int, b: int) -> int:
    """Inner product of two packed bit-vectors over GF(2)."""
    return parity(a & b)


def int_to_bits(value: int, width: int) -> NDArray[np.uint8]:
    """Unpack ``value`` into ``width`` bits, entry i = bit i (LSB first)."""
    if value < 0 or value >> width:
        raise ValueError(f"Value {value} does not fit in {width} bits")
    return np.array([(value >> i) & 1 for i in range(width)], dtype=np.uint8)


def bits_to_int(bits: Sequence[int] | NDArray[np.integer]) -> int:
    """Pack a bit sequence (entry i = bit i) into an integer."""
    result = 0
    for i, b in enumerate(bits):
        if int(b):
            result |= 1 << i
    return result


def as_bit_vector(bits: Sequence[int] | NDArray[np.integer], width: int) -> NDArray[np.uint8]:
    """Validate and convert a bit sequence of exact length ``width``."""
    arr = np.asarray(bits)
    if arr.ndim != 1 or arr.shape[0] != width:
        raise ValueError(f"Expected {width} bits, got shape {arr.shape}")
    if arr.dtype == np.bool_:
        return arr.astype(np.uint8)
    if not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Bit vector must hold integers or booleans, got {arr.dtype}")
    if np.any((arr != 0) & (arr != 1)):
        raise ValueError("Bit vector entries must be 0 or 1")
    return arr.astype(np.uint8)


def format_bits(value: int, width: int) -> str:
    """Render ``value`` as a bit string, x0 first."""
    return "".join(str((value >> i) & 1) for i in range(width))


def parse_int(text: str) -> int:
    """Parse a decimal, 0x-hex or 0b-binary literal."""
    cleaned = text.strip().lower()
    try:
        if cleaned.startswith("0x"):
            return int(cleaned, 16)
        if cleaned.startswith("0b"):
            return int(cleaned, 2)
        return int(cleaned, 10)
    except ValueError:
        raise ValueError(f"Invalid integer literal: {text!r}")
