"""Ring elements of Z/qZ.

A RingElement is an integer value tagged with its modulus. Arithmetic is
only defined between elements that share a modulus; anything else raises
ModulusMismatch instead of silently producing a value in the wrong ring.

Sampling:
- Uniform: rejection sampling over full-width 64-bit draws, so every
  residue in [0, q) is equally likely.
- Gaussian: continuous normal draw centred at q // 2, truncated to an
  integer. Callers must keep std_dev well below q.

Every sampler takes an optional ``numpy.random.Generator``. Passing one
explicitly is the normal mode of operation (sessions, tests); when it is
omitted a fresh generator is seeded from the OS for that single call.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import operator
import secrets

import numpy as np

from regevpir.exceptions import ModulusMismatch, OutOfRange


MAX_UINT64 = 2**64 - 1


def resolve_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Return ``rng`` or a fresh OS-seeded generator."""
    if rng is not None:
        return rng
    return np.random.default_rng(secrets.randbits(128))


def _as_int(x, name: str) -> int:
    """Exact integer value of ``x``; floats and bools are rejected."""
    if isinstance(x, bool):
        raise OutOfRange(f"{name} must be an integer, got {x!r}")
    try:
        return operator.index(x)
    except TypeError:
        raise OutOfRange(f"{name} must be an integer, got {x!r}") from None


def _num_digits(modulus: int, radix: int) -> int:
    """Number of base-``radix`` digits needed for every value below ``modulus``."""
    largest = modulus - 1
    count = 0
    while largest > 0:
        largest //= radix
        count += 1
    return count


@dataclass(frozen=True)
class RingElement:
    """An element of Z/qZ.

    Attributes:
        modulus: The ring modulus q, 1 <= q < 2**64 - 1
        value: Canonical representative, 0 <= value < q
    """
    modulus: int
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "modulus", _as_int(self.modulus, "Modulus"))
        object.__setattr__(self, "value", _as_int(self.value, "Value"))
        if self.modulus < 1 or self.modulus >= MAX_UINT64:
            raise OutOfRange(f"Modulus {self.modulus} out of range [1, {MAX_UINT64})")
        if self.value < 0 or self.value >= self.modulus:
            raise OutOfRange(f"Value {self.value} out of range [0, {self.modulus})")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_int(cls, modulus: int, value: int) -> "RingElement":
        """Create an element, failing if ``value`` is not already reduced."""
        return cls(modulus, value)

    @classmethod
    def zero(cls, modulus: int) -> "RingElement":
        return cls(modulus, 0)

    @classmethod
    def uniform(
        cls,
        modulus: int,
        rng: Optional[np.random.Generator] = None,
    ) -> "RingElement":
        """Sample uniformly from [0, modulus).

        Draws below ``(MAX_UINT64 - modulus) % modulus`` are rejected so
        that reducing the accepted draw mod ``modulus`` is unbiased.

        Args:
            modulus: Ring modulus
            rng: Random generator to draw from

        Returns:
            Uniformly distributed element
        """
        if modulus < 1 or modulus >= MAX_UINT64:
            raise OutOfRange(f"Modulus {modulus} out of range [1, {MAX_UINT64})")

        rng = resolve_rng(rng)
        threshold = (MAX_UINT64 - modulus) % modulus
        while True:
            r = int(rng.integers(0, MAX_UINT64, dtype=np.uint64, endpoint=True))
            if r >= threshold:
                break
        return cls(modulus, r % modulus)

    @classmethod
    def gaussian(
        cls,
        modulus: int,
        std_dev: float,
        rng: Optional[np.random.Generator] = None,
    ) -> "RingElement":
        """Sample from a normal distribution centred at ``modulus // 2``.

        The continuous sample is truncated toward zero. A draw landing
        outside [0, modulus) raises OutOfRange. The mean is passed to numpy
        as a float, so for moduli above 2**53 it is only approximately
        ``modulus // 2``.

        Args:
            modulus: Ring modulus
            std_dev: Standard deviation, in [0, modulus)
            rng: Random generator to draw from

        Returns:
            Sampled element
        """
        if std_dev < 0 or std_dev >= modulus:
            raise OutOfRange(
                f"Standard deviation {std_dev} out of range [0, {modulus})"
            )
        rng = resolve_rng(rng)
        sample = rng.normal(float(modulus // 2), std_dev)
        return cls.from_int(modulus, int(sample))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check(self, other: "RingElement") -> None:
        if self.modulus != other.modulus:
            raise ModulusMismatch(self.modulus, other.modulus)

    def __add__(self, other: "RingElement") -> "RingElement":
        if not isinstance(other, RingElement):
            return NotImplemented
        self._check(other)
        return RingElement(self.modulus, (self.value + other.value) % self.modulus)

    def __sub__(self, other: "RingElement") -> "RingElement":
        if not isinstance(other, RingElement):
            return NotImplemented
        self._check(other)
        if self.value < other.value:
            return RingElement(self.modulus, self.modulus - (other.value - self.value))
        return RingElement(self.modulus, self.value - other.value)

    def __mul__(self, other: "RingElement") -> "RingElement":
        if not isinstance(other, RingElement):
            return NotImplemented
        self._check(other)
        return RingElement(self.modulus, (self.value * other.value) % self.modulus)

    def __neg__(self) -> "RingElement":
        return RingElement.zero(self.modulus) - self

    def is_zero(self) -> bool:
        return self.value == 0

    def lift(self, modulus: int) -> "RingElement":
        """Re-tag this value under another modulus (e.g. mod p into mod q)."""
        return RingElement.from_int(modulus, self.value)

    def centered(self) -> int:
        """Signed representative in (-q/2, q/2]."""
        if self.value > self.modulus // 2:
            return self.value - self.modulus
        return self.value

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def partial_cmp(self, other: "RingElement") -> Optional[int]:
        """Compare values, or return None when the moduli differ."""
        if self.modulus != other.modulus:
            return None
        return (self.value > other.value) - (self.value < other.value)

    def _cmp(self, other: "RingElement") -> int:
        if not isinstance(other, RingElement):
            raise TypeError(f"Cannot compare RingElement with {type(other).__name__}")
        result = self.partial_cmp(other)
        if result is None:
            raise ModulusMismatch(self.modulus, other.modulus, "ordering")
        return result

    def __lt__(self, other: "RingElement") -> bool:
        return self._cmp(other) < 0

    def __le__(self, other: "RingElement") -> bool:
        return self._cmp(other) <= 0

    def __gt__(self, other: "RingElement") -> bool:
        return self._cmp(other) > 0

    def __ge__(self, other: "RingElement") -> bool:
        return self._cmp(other) >= 0

    # ------------------------------------------------------------------
    # Mixed-radix decomposition
    # ------------------------------------------------------------------

    def decomposed(self, radix: int) -> List[int]:
        """Split the value into base-``radix`` digits, least significant first.

        The digit count depends only on the modulus, so every element of
        a ring decomposes to the same length.

        Example:
            >>> RingElement(101, 100).decomposed(2)
            [0, 0, 1, 0, 0, 1, 1]
        """
        if radix < 2:
            raise OutOfRange(f"Radix must be at least 2, got {radix}")

        digits = [0] * _num_digits(self.modulus, radix)
        n = self.value
        i = 0
        while n > 0:
            digits[i] = n % radix
            n //= radix
            i += 1
        return digits

    @classmethod
    def recompose(cls, radix: int, modulus: int, digits: Sequence[int]) -> "RingElement":
        """Inverse of :meth:`decomposed`."""
        if radix < 2:
            raise OutOfRange(f"Radix must be at least 2, got {radix}")

        result = 0
        weight = 1
        for digit in digits:
            if digit < 0 or digit >= radix:
                raise OutOfRange(f"Digit {digit} out of range [0, {radix})")
            result += weight * digit
            weight *= radix
        return cls.from_int(modulus, result)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)
