"""Modular arithmetic primitives: ring elements and matrices over Z/qZ."""

from regevpir.ring.element import (
    MAX_UINT64,
    RingElement,
    resolve_rng,
)
from regevpir.ring.matrix import Matrix

__all__ = [
    "MAX_UINT64",
    "RingElement",
    "resolve_rng",
    "Matrix",
]
