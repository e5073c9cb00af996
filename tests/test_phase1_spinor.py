"""
Tests for QuarkLogic Engine — Phase 1 Spinor & Operator Algebra.

These tests verify that:
1. Rotations are unitary and match their closed forms
2. Projectors renormalize, or report annihilation without dividing by zero
3. The controlled unitary fires on the condition's second basis component
4. Approximate factorization is exact for product states
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quarklogic.spinor import (
    ANNIHILATION_TOLERANCE,
    PAULI_X,
    PAULI_Y,
    PAULI_Z,
    PROJ_DOWN,
    PROJ_UP,
    apply_projector,
    as_spinor,
    controlled_unitary,
    factorize_vec4,
    identity2,
    is_annihilated,
    mat_adjoint,
    mat_det,
    mat_mul,
    mat_trace,
    mat_vec,
    mat4_vec,
    normalize_spinor,
    partial_trace_first,
    projector,
    relative_phase,
    rn,
    rx,
    ry,
    rz,
    spinor_distance,
    spinor_down,
    spinor_norm,
    spinor_up,
    tensor2,
    tensor_mat,
)


def is_unitary(m):
    return np.allclose(mat_mul(mat_adjoint(m), m), identity2())


# =============================================================================
# SPINOR TESTS
# =============================================================================

class TestSpinors:
    """Test basic spinor operations."""

    def test_basis_norms(self):
        """Both basis spinors have unit norm."""
        assert spinor_norm(spinor_up()) == 1.0
        assert spinor_norm(spinor_down()) == 1.0

    def test_normalize(self):
        """Normalization scales to unit norm and keeps ratios."""
        s = normalize_spinor(as_spinor([3, 4j]))
        assert spinor_norm(s) == pytest.approx(1.0)
        assert abs(s[0]) == pytest.approx(0.6)

    def test_zero_stays_zero(self):
        """The zero spinor is returned as is."""
        assert_allclose(normalize_spinor(np.zeros(2)), [0, 0])

    def test_as_spinor_rejects_wrong_length(self):
        """Only length-2 inputs are spinors."""
        with pytest.raises(ValueError):
            as_spinor([1, 0, 0])

    def test_distance(self):
        """Euclidean distance between basis states is √2."""
        assert spinor_distance(spinor_up(), spinor_down()) == pytest.approx(math.sqrt(2))
        assert spinor_distance(spinor_up(), spinor_up()) == 0.0

    def test_relative_phase(self):
        """Relative phase is arg(β) - arg(α)."""
        s = as_spinor([1, 1j]) / math.sqrt(2)
        assert relative_phase(s) == pytest.approx(math.pi / 2)


# =============================================================================
# ROTATION TESTS
# =============================================================================

class TestRotations:
    """Test SU(2) rotation matrices."""

    @pytest.mark.parametrize("theta", [0.0, 0.3, math.pi / 2, math.pi, 2.5])
    def test_rotations_are_unitary(self, theta):
        """Every rotation is unitary with determinant 1."""
        for m in (rx(theta), ry(theta), rz(theta), rn(1, 2, 3, theta)):
            assert is_unitary(m)
            assert mat_det(m) == pytest.approx(1.0)

    def test_rn_matches_closed_form(self):
        """R = cos(θ/2)I - i sin(θ/2)(n·σ)"""
        theta = 1.1
        n = np.array([1.0, -2.0, 0.5])
        n = n / np.linalg.norm(n)
        expected = math.cos(theta / 2) * identity2() - 1j * math.sin(theta / 2) * (
            n[0] * PAULI_X + n[1] * PAULI_Y + n[2] * PAULI_Z
        )
        assert_allclose(rn(1.0, -2.0, 0.5, theta), expected, atol=1e-12)

    def test_rn_axis_agrees_with_rx(self):
        """The arbitrary-axis rotation reduces to rx and ry, normalizing the axis."""
        assert_allclose(rn(1, 0, 0, 0.7), rx(0.7), atol=1e-12)
        assert_allclose(rn(0, 5, 0, 0.7), ry(0.7), atol=1e-12)

    def test_zero_axis_is_identity(self):
        """A zero axis gives the identity."""
        assert_allclose(rn(0, 0, 0, 1.0), identity2())

    def test_rx_pi_flips(self):
        """A half turn about x maps up to down."""
        out = mat_vec(rx(math.pi), spinor_up())
        assert abs(out[1]) ** 2 == pytest.approx(1.0)

    def test_trace(self):
        """The identity rotation has trace 2."""
        assert mat_trace(rz(0.0)) == pytest.approx(2.0)

    def test_pauli_constants_are_read_only(self):
        """Shared constants cannot be mutated in place."""
        with pytest.raises(ValueError):
            PAULI_X[0, 0] = 5


# =============================================================================
# PROJECTOR TESTS
# =============================================================================

class TestProjectors:
    """Test projection and annihilation."""

    def test_project_superposition(self):
        """Projection renormalizes the surviving component."""
        s = as_spinor([1, 1]) / math.sqrt(2)
        out = apply_projector(PROJ_UP, s)
        assert_allclose(out, [1, 0], atol=1e-12)

    def test_annihilation_returns_raw_vector(self):
        """A zero-norm result is not renormalized into garbage."""
        out = apply_projector(PROJ_UP, spinor_down())
        assert is_annihilated(out)
        assert spinor_norm(out) < ANNIHILATION_TOLERANCE

    def test_projector_from_state(self):
        """The projector onto a state is idempotent."""
        p = projector([1, 1])
        assert_allclose(mat_mul(p, p), p, atol=1e-12)
        assert_allclose(p, [[0.5, 0.5], [0.5, 0.5]], atol=1e-12)

    def test_down_projector(self):
        """PROJ_DOWN leaves the down state alone."""
        assert_allclose(apply_projector(PROJ_DOWN, spinor_down()), [0, 1])


# =============================================================================
# TWO-BODY TESTS
# =============================================================================

class TestTwoBody:
    """Test tensor products, controlled unitary and factorization."""

    def test_tensor2_basis_order(self):
        """The joint basis is |TT⟩, |TF⟩, |FT⟩, |FF⟩."""
        assert_allclose(tensor2(spinor_down(), spinor_up()), [0, 0, 1, 0])

    def test_tensor_mat_shape(self):
        """Kronecker product of two 2x2 matrices is 4x4."""
        assert tensor_mat(PAULI_X, PAULI_Z).shape == (4, 4)

    def test_controlled_block_layout(self):
        """U sits in the lower-right block, identity in the upper-left."""
        cu = controlled_unitary(PAULI_X)
        assert_allclose(cu[0:2, 0:2], identity2())
        assert_allclose(cu[2:4, 2:4], PAULI_X)
        assert_allclose(cu[0:2, 2:4], np.zeros((2, 2)))

    def test_controlled_idle_on_first_component(self):
        """A true control leaves the target untouched."""
        joint = tensor2(spinor_up(), spinor_down())
        assert_allclose(mat4_vec(controlled_unitary(rx(math.pi)), joint), joint)

    def test_controlled_fires_on_second_component(self):
        """A false control applies U to the target."""
        joint = tensor2(spinor_down(), spinor_up())
        out = mat4_vec(controlled_unitary(rx(math.pi)), joint)
        assert_allclose(np.abs(out) ** 2, [0, 0, 0, 1], atol=1e-12)

    def test_factorize_product_state(self):
        """A product state factors back into its parts up to phase."""
        a = normalize_spinor(as_spinor([0.6, 0.8]))
        b = normalize_spinor(as_spinor([1, 1j]))
        fa, fb = factorize_vec4(tensor2(a, b))
        assert_allclose(np.abs(fa), np.abs(a), atol=1e-12)
        assert_allclose(np.abs(fb), np.abs(b), atol=1e-12)

    def test_partial_trace_picks_dominant_branch(self):
        """The heavier control branch wins."""
        v = np.array([0.1, 0, 0, math.sqrt(0.99)], dtype=complex)
        assert_allclose(np.abs(partial_trace_first(v)), [0, 1], atol=1e-12)

    def test_partial_trace_tie_goes_to_first(self):
        """A tie keeps the first branch."""
        v = np.array([1, 0, 0, 1], dtype=complex) / math.sqrt(2)
        assert_allclose(np.abs(partial_trace_first(v)), [1, 0], atol=1e-12)
