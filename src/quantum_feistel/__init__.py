"""Quantum Feistel distinguisher: Simon sampling plus an online GF(2) solver."""

__version__ = "0.1.0"
