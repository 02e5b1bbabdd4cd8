"""Tests for ring elements and matrices over Z/qZ."""

import pytest
import numpy as np

from regevpir.exceptions import (
    DimensionMismatch,
    ModulusMismatch,
    OutOfRange,
)
from regevpir.ring import MAX_UINT64, Matrix, RingElement


Q = 101


@pytest.fixture
def rng():
    """Deterministic generator."""
    return np.random.default_rng(1234)


def elem(value, modulus=Q):
    return RingElement.from_int(modulus, value)


class ScriptedGenerator:
    """Stands in for numpy's Generator, replaying fixed 64-bit draws."""

    def __init__(self, draws):
        self.draws = list(draws)

    def integers(self, *args, **kwargs):
        return self.draws.pop(0)


class ScriptedNormal:
    """Stands in for numpy's Generator, replaying fixed normal draws."""

    def __init__(self, draws):
        self.draws = list(draws)

    def normal(self, loc, scale):
        return self.draws.pop(0)


# ============================================================================
# Construction Tests
# ============================================================================

class TestRingElementConstruction:
    """Tests for creating ring elements."""

    def test_zero(self):
        """Test zero element."""
        z = RingElement.zero(Q)
        assert z.value == 0
        assert z.modulus == Q
        assert z.is_zero()

    def test_from_int(self):
        """Test construction from a reduced integer."""
        e = elem(42)
        assert e.value == 42
        assert int(e) == 42
        assert str(e) == "42"

    def test_value_at_modulus_fails(self):
        """Test that value == modulus is rejected."""
        with pytest.raises(OutOfRange):
            RingElement.from_int(Q, Q)

    def test_negative_value_fails(self):
        """Test that negative values are rejected."""
        with pytest.raises(OutOfRange):
            RingElement.from_int(Q, -1)

    def test_modulus_at_maximum_fails(self):
        """Test that the modulus must stay below the 64-bit maximum."""
        with pytest.raises(OutOfRange):
            RingElement.zero(MAX_UINT64)

        # Largest legal modulus
        assert RingElement.zero(MAX_UINT64 - 1).modulus == MAX_UINT64 - 1

    def test_out_of_range_is_value_error(self):
        """Test that typed errors are still ValueErrors."""
        with pytest.raises(ValueError):
            RingElement.from_int(Q, 200)

    def test_non_integer_value_fails(self):
        """Test that fractional values are rejected, not truncated."""
        with pytest.raises(OutOfRange):
            RingElement(5, 2.7)
        with pytest.raises(OutOfRange):
            RingElement.from_int(5, 2.7)
        with pytest.raises(OutOfRange):
            RingElement(5.0, 2)
        with pytest.raises(OutOfRange):
            RingElement(5, True)

    def test_numpy_integers_accepted(self):
        """Test that numpy integer scalars normalise to Python ints."""
        e = RingElement(np.uint64(101), np.int64(7))
        assert e == elem(7)
        assert type(e.value) is int

    def test_immutable(self):
        """Test value semantics."""
        e = elem(5)
        with pytest.raises(AttributeError):
            e.value = 6

    def test_hashable(self):
        """Test that equal elements hash equally."""
        assert len({elem(5), elem(5), elem(6)}) == 2


# ============================================================================
# Arithmetic Tests
# ============================================================================

class TestRingElementArithmetic:
    """Tests for modular arithmetic."""

    def test_add(self):
        assert (elem(0) + elem(1)).value == 1
        assert (elem(1) + elem(1)).value == 2
        assert (elem(100) + elem(5)).value == 4

    def test_sub_wraps(self):
        """Test that a - b with a < b wraps instead of going negative."""
        assert (elem(0) - elem(1)).value == 100
        assert (elem(3) - elem(10)).value == 94
        assert (elem(10) - elem(3)).value == 7

    def test_mul(self):
        assert (elem(0) * elem(2)).value == 0
        assert (elem(3) * elem(5)).value == 15
        assert (elem(100) * elem(2)).value == 99

    def test_neg(self):
        assert (-elem(1)).value == 100
        assert (-elem(0)).value == 0

    def test_operations_return_new_elements(self):
        """Test that operands are left untouched."""
        a = elem(7)
        b = elem(9)
        c = a + b
        assert a.value == 7
        assert b.value == 9
        assert c.value == 16

    def test_modulus_mismatch(self):
        """Test that mixed-modulus arithmetic fails."""
        a = RingElement(101, 3)
        b = RingElement(103, 3)

        with pytest.raises(ModulusMismatch):
            a + b
        with pytest.raises(ModulusMismatch):
            a - b
        with pytest.raises(ModulusMismatch):
            a * b

    def test_non_element_operand(self):
        """Test that plain ints are not silently coerced."""
        with pytest.raises(TypeError):
            elem(3) + 1

    def test_lift(self):
        """Test re-tagging a value into a larger ring."""
        bit = RingElement(2, 1)
        lifted = bit.lift(3329)
        assert lifted.modulus == 3329
        assert lifted.value == 1

        with pytest.raises(OutOfRange):
            RingElement(3329, 100).lift(2)

    def test_centered(self):
        assert elem(3).centered() == 3
        assert elem(100).centered() == -1
        assert elem(50).centered() == 50
        assert elem(51).centered() == -50


# ============================================================================
# Ordering Tests
# ============================================================================

class TestRingElementOrdering:
    """Tests for ordering."""

    def test_same_modulus(self):
        assert elem(3) < elem(5)
        assert elem(5) > elem(3)
        assert elem(5) <= elem(5)
        assert elem(5) >= elem(4)

    def test_partial_cmp(self):
        assert elem(3).partial_cmp(elem(5)) == -1
        assert elem(5).partial_cmp(elem(5)) == 0
        assert elem(6).partial_cmp(elem(5)) == 1

    def test_cross_modulus_has_no_ordering(self):
        """Test that comparing different rings fails loudly."""
        a = RingElement(101, 3)
        b = RingElement(103, 5)

        assert a.partial_cmp(b) is None
        with pytest.raises(ModulusMismatch):
            a < b

    def test_cross_modulus_equality(self):
        """Test that equal values in different rings are not equal."""
        assert RingElement(101, 3) != RingElement(103, 3)


# ============================================================================
# Decomposition Tests
# ============================================================================

class TestDecomposition:
    """Tests for mixed-radix decomposition."""

    def test_decomposed_binary(self):
        assert elem(1).decomposed(2) == [1, 0, 0, 0, 0, 0, 0]
        assert elem(2).decomposed(2) == [0, 1, 0, 0, 0, 0, 0]
        assert elem(3).decomposed(2) == [1, 1, 0, 0, 0, 0, 0]
        assert elem(4).decomposed(2) == [0, 0, 1, 0, 0, 0, 0]
        assert elem(100).decomposed(2) == [0, 0, 1, 0, 0, 1, 1]

    def test_recompose_example(self):
        assert RingElement.recompose(2, Q, [0, 0, 1, 0, 0, 1, 1]) == elem(100)

    @pytest.mark.parametrize("modulus", [1, 2, 9, 16, 101, 3329])
    @pytest.mark.parametrize("radix", [2, 3, 4, 10])
    def test_round_trip(self, modulus, radix):
        """Test recompose(decomposed(v)) == v for every v in the ring."""
        for v in range(modulus):
            e = RingElement(modulus, v)
            digits = e.decomposed(radix)
            assert RingElement.recompose(radix, modulus, digits) == e

    def test_digit_count_is_fixed_per_modulus(self):
        """Test that all elements of a ring decompose to the same length."""
        lengths = {len(RingElement(3329, v).decomposed(4)) for v in range(0, 3329, 97)}
        assert lengths == {6}

    def test_power_of_radix_boundary(self):
        """Test q - 1 equal to a power of the radix still round-trips."""
        e = RingElement(9, 8)
        assert e.decomposed(2) == [0, 0, 0, 1]

    def test_invalid_radix(self):
        with pytest.raises(OutOfRange):
            elem(5).decomposed(1)
        with pytest.raises(OutOfRange):
            RingElement.recompose(1, Q, [0])

    def test_invalid_digit(self):
        with pytest.raises(OutOfRange):
            RingElement.recompose(2, Q, [2, 0])

    def test_recompose_too_large(self):
        with pytest.raises(OutOfRange):
            RingElement.recompose(2, Q, [1, 1, 1, 1, 1, 1, 1])


# ============================================================================
# Sampling Tests
# ============================================================================

class TestSampling:
    """Tests for uniform and Gaussian sampling."""

    def test_uniform_bounds(self, rng):
        """Test that every uniform draw lies in [0, q)."""
        for q in [2, 7, 101, 3329, 2**61 - 1]:
            for _ in range(200):
                e = RingElement.uniform(q, rng)
                assert e.modulus == q
                assert 0 <= e.value < q

    def test_uniform_chi_square(self, rng):
        """Test that uniform draws are statistically uniform."""
        q = 7
        trials = 7000
        counts = np.zeros(q)
        for _ in range(trials):
            counts[RingElement.uniform(q, rng).value] += 1

        expected = trials / q
        chi_square = float(np.sum((counts - expected) ** 2 / expected))
        # df = 6; p = 1e-5 critical value is about 33.1
        assert chi_square < 33.1

    def test_uniform_rejects_biased_draws(self):
        """Test that draws below the bias threshold are rejected."""
        q = 7
        threshold = (MAX_UINT64 - q) % q
        assert threshold == 1

        scripted = ScriptedGenerator([0, 10])
        e = RingElement.uniform(q, scripted)
        assert e.value == 10 % q
        assert scripted.draws == []

    def test_uniform_without_generator(self):
        """Test that sampling works without an explicit generator."""
        e = RingElement.uniform(Q)
        assert 0 <= e.value < Q

    def test_uniform_seeded_is_deterministic(self):
        a = [RingElement.uniform(Q, np.random.default_rng(5)).value for _ in range(3)]
        b = [RingElement.uniform(Q, np.random.default_rng(5)).value for _ in range(3)]
        assert a == b

    def test_gaussian_centered_at_half_modulus(self, rng):
        """Test Gaussian draws cluster around q // 2."""
        q = 3329
        values = [RingElement.gaussian(q, 6.4, rng).value for _ in range(500)]

        assert all(abs(v - q // 2) < 64 for v in values)
        assert abs(np.mean(values) - q // 2) < 2

    def test_gaussian_draw_outside_ring_fails(self):
        """Test that draws below 0 or at/above q raise instead of wrapping."""
        with pytest.raises(OutOfRange):
            RingElement.gaussian(Q, 5.0, ScriptedNormal([-3.0]))
        with pytest.raises(OutOfRange):
            RingElement.gaussian(Q, 5.0, ScriptedNormal([150.0]))

        assert RingElement.gaussian(Q, 5.0, ScriptedNormal([42.9])) == elem(42)

    def test_gaussian_wide_draws_eventually_fail(self, rng):
        """Test that a std_dev close to q produces out-of-range draws."""
        failures = 0
        for _ in range(200):
            try:
                RingElement.gaussian(Q, 100.0, rng)
            except OutOfRange:
                failures += 1
        assert failures > 0

    def test_gaussian_negative_std_dev(self, rng):
        with pytest.raises(OutOfRange):
            RingElement.gaussian(Q, -1.0, rng)

    def test_gaussian_std_dev_too_large(self, rng):
        with pytest.raises(OutOfRange):
            RingElement.gaussian(Q, 101.0, rng)


# ============================================================================
# Matrix Tests
# ============================================================================

class TestMatrix:
    """Tests for matrices over Z/qZ."""

    @pytest.fixture
    def m2x2(self):
        return Matrix([[elem(1), elem(2)], [elem(3), elem(4)]])

    def test_shape(self, m2x2):
        assert m2x2.shape == (2, 2)
        assert m2x2.num_rows == 2
        assert m2x2.num_cols == 2
        assert m2x2.modulus == Q
        assert len(m2x2) == 2

    def test_indexing(self, m2x2):
        assert m2x2[0, 1] == elem(2)
        assert m2x2[1] == [elem(3), elem(4)]
        assert m2x2.row(0) == [elem(1), elem(2)]
        assert m2x2.column_at(1) == [elem(2), elem(4)]
        assert m2x2.values() == [[1, 2], [3, 4]]
        assert [row for row in m2x2] == [m2x2.row(0), m2x2.row(1)]

    def test_ragged_rows_fail(self):
        with pytest.raises(DimensionMismatch):
            Matrix([[elem(1), elem(2)], [elem(3)]])

    def test_add_and_sub(self, m2x2):
        other = Matrix([[elem(100), elem(0)], [elem(1), elem(1)]])

        assert (m2x2 + other).values() == [[0, 2], [4, 5]]
        assert (m2x2 - other).values() == [[2, 2], [2, 3]]

    def test_add_shape_mismatch(self, m2x2):
        with pytest.raises(DimensionMismatch):
            m2x2 + Matrix([[elem(1), elem(2)]])
        with pytest.raises(DimensionMismatch):
            m2x2 - Matrix.zeros(Q, 2, 3)

    def test_add_modulus_mismatch(self, m2x2):
        """Test that modulus consistency is checked through the elements."""
        with pytest.raises(ModulusMismatch):
            m2x2 + Matrix.zeros(103, 2, 2)

    def test_mul_vec(self, m2x2):
        result = m2x2.mul_vec([elem(5), elem(6)])

        assert result.shape == (2, 1)
        assert result.values() == [[17], [39]]

    def test_mul_vec_wraps(self):
        m = Matrix([[elem(50), elem(60)]])
        assert m.mul_vec([elem(1), elem(1)]).values() == [[9]]

    def test_mul_vec_length_mismatch(self, m2x2):
        with pytest.raises(DimensionMismatch):
            m2x2.mul_vec([elem(1)])

    def test_scalar_embedding(self, m2x2):
        """Test broadcasting a 1x1 matrix across every entry."""
        scalar = Matrix.from_single(elem(10))

        assert (m2x2 * scalar).values() == [[10, 20], [30, 40]]
        assert (scalar * m2x2).values() == [[10, 20], [30, 40]]
        assert (m2x2 * elem(2)).values() == [[2, 4], [6, 8]]
        assert (elem(2) * m2x2).values() == [[2, 4], [6, 8]]

    def test_elementwise_mul(self, m2x2):
        assert (m2x2 * m2x2).values() == [[1, 4], [9, 16]]

        with pytest.raises(DimensionMismatch):
            m2x2 * Matrix.zeros(Q, 1, 2)

    def test_equality_and_copy(self, m2x2):
        clone = m2x2.copy()

        assert clone == m2x2
        assert clone is not m2x2
        assert clone + clone != m2x2

    def test_column_and_push_row(self):
        col = Matrix.column([elem(1), elem(2), elem(3)])
        assert col.shape == (3, 1)

        grown = Matrix([[elem(1), elem(2)]]).push_row([elem(3), elem(4)])
        assert grown.values() == [[1, 2], [3, 4]]

    def test_uniform_matrix(self, rng):
        m = Matrix.uniform(3329, 3, 4, rng)

        assert m.shape == (3, 4)
        assert all(0 <= v < 3329 for row in m.values() for v in row)

    def test_gaussian_matrix(self, rng):
        m = Matrix.gaussian(Q, 2.0, 9, 10, rng)

        assert m.num_rows == 9
        assert m.num_cols == 10
