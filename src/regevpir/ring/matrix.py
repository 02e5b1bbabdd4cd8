"""Matrices over Z/qZ.

Entries are RingElement objects held in a numpy object array. All
entries are expected to share one modulus; this is enforced lazily by
element arithmetic rather than at construction time.
"""

from functools import reduce
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from regevpir.exceptions import DimensionMismatch
from regevpir.ring.element import RingElement, resolve_rng


class Matrix:
    """A ``rows x cols`` grid of ring elements.

    Supports elementwise add/subtract, matrix-vector products and
    broadcasting a single element (a 1x1 "scalar" matrix) across all
    entries.
    """

    def __init__(self, rows: Sequence[Sequence[RingElement]] = ()):
        """Initialize from nested rows.

        Args:
            rows: Sequence of equal-length rows of RingElement
        """
        rows = [list(row) for row in rows]
        num_cols = len(rows[0]) if rows else 0
        for i, row in enumerate(rows):
            if len(row) != num_cols:
                raise DimensionMismatch(num_cols, len(row), f"row {i} length")

        self._data = np.empty((len(rows), num_cols), dtype=object)
        for i, row in enumerate(rows):
            for j, element in enumerate(row):
                self._data[i, j] = element

    @classmethod
    def _wrap(cls, data: np.ndarray) -> "Matrix":
        matrix = cls.__new__(cls)
        matrix._data = data
        return matrix

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_single(cls, element: RingElement) -> "Matrix":
        """Embed one element as a 1x1 matrix."""
        return cls([[element]])

    @classmethod
    def column(cls, elements: Sequence[RingElement]) -> "Matrix":
        """Build an ``n x 1`` column vector."""
        return cls([[e] for e in elements])

    @classmethod
    def zeros(cls, modulus: int, num_rows: int, num_cols: int) -> "Matrix":
        zero = RingElement.zero(modulus)
        return cls([[zero] * num_cols for _ in range(num_rows)])

    @classmethod
    def uniform(
        cls,
        modulus: int,
        num_rows: int,
        num_cols: int,
        rng: Optional[np.random.Generator] = None,
    ) -> "Matrix":
        """Matrix with every entry sampled uniformly mod ``modulus``."""
        rng = resolve_rng(rng)
        return cls([
            [RingElement.uniform(modulus, rng) for _ in range(num_cols)]
            for _ in range(num_rows)
        ])

    @classmethod
    def gaussian(
        cls,
        modulus: int,
        std_dev: float,
        num_rows: int,
        num_cols: int,
        rng: Optional[np.random.Generator] = None,
    ) -> "Matrix":
        """Matrix with every entry drawn from ``RingElement.gaussian``."""
        rng = resolve_rng(rng)
        return cls([
            [RingElement.gaussian(modulus, std_dev, rng) for _ in range(num_cols)]
            for _ in range(num_rows)
        ])

    # ------------------------------------------------------------------
    # Shape and access
    # ------------------------------------------------------------------

    @property
    def num_rows(self) -> int:
        return self._data.shape[0]

    @property
    def num_cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.num_rows, self.num_cols)

    @property
    def modulus(self) -> Optional[int]:
        """Modulus of the first entry, or None for an empty matrix."""
        if self._data.size == 0:
            return None
        return self._data[0, 0].modulus

    def __getitem__(self, key: Union[int, Tuple[int, int]]):
        if isinstance(key, tuple):
            i, j = key
            return self._data[i, j]
        return list(self._data[key])

    def row(self, i: int) -> List[RingElement]:
        return list(self._data[i])

    def column_at(self, j: int) -> List[RingElement]:
        return list(self._data[:, j])

    def push_row(self, row: Sequence[RingElement]) -> "Matrix":
        """Return a new matrix with ``row`` appended."""
        return Matrix([self.row(i) for i in range(self.num_rows)] + [list(row)])

    def values(self) -> List[List[int]]:
        """Entries as plain integers."""
        return [[e.value for e in row] for row in self._data]

    def __iter__(self) -> Iterator[List[RingElement]]:
        for i in range(self.num_rows):
            yield self.row(i)

    def __len__(self) -> int:
        return self.num_rows

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check_shape(self, other: "Matrix", op: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatch(self.shape, other.shape, f"matrix {op}")

    def __add__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_shape(other, "add")
        return Matrix._wrap(self._data + other._data)

    def __sub__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_shape(other, "subtract")
        return Matrix._wrap(self._data - other._data)

    def __mul__(self, other: Union["Matrix", RingElement]) -> "Matrix":
        """Elementwise product.

        A RingElement or a 1x1 matrix on either side is broadcast across
        every entry of the other operand.
        """
        if isinstance(other, RingElement):
            return self.scale(other)
        if not isinstance(other, Matrix):
            return NotImplemented
        if other.shape == (1, 1):
            return self.scale(other[0, 0])
        if self.shape == (1, 1):
            return other.scale(self[0, 0])
        self._check_shape(other, "multiply")
        return Matrix._wrap(self._data * other._data)

    def __rmul__(self, other: RingElement) -> "Matrix":
        if isinstance(other, RingElement):
            return self.scale(other)
        return NotImplemented

    def scale(self, scalar: RingElement) -> "Matrix":
        """Multiply every entry by ``scalar``."""
        data = np.empty(self.shape, dtype=object)
        for index, element in np.ndenumerate(self._data):
            data[index] = element * scalar
        return Matrix._wrap(data)

    def mul_vec(self, vector: Sequence[RingElement]) -> "Matrix":
        """Matrix-vector product.

        Args:
            vector: Sequence of ``num_cols`` elements

        Returns:
            ``num_rows x 1`` column matrix
        """
        if len(vector) != self.num_cols:
            raise DimensionMismatch(self.num_cols, len(vector), "vector length")
        if self.num_cols == 0:
            raise DimensionMismatch("at least 1 column", 0, "matrix-vector product")

        result = []
        for row in self._data:
            terms = [a * s for a, s in zip(row, vector)]
            result.append([reduce(lambda x, y: x + y, terms)])
        return Matrix(result)

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.all(self._data == other._data))

    __hash__ = None

    def copy(self) -> "Matrix":
        """Independent copy (entries are immutable, so a shallow copy suffices)."""
        return Matrix._wrap(self._data.copy())

    def __repr__(self) -> str:
        return f"Matrix(shape={self.shape}, modulus={self.modulus}, values={self.values()})"
