"""
Tests for QuarkLogic Engine — Phase 5 Inference & Metrics.

These tests verify that:
1. Chains record a glimpse per step and replay deterministically
2. Unitary averaging re-projects onto normalized columns
3. Gap inference reads back sibling rotations and quantizes the angle
4. Metrics and the safety check follow their fixed thresholds
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quarklogic.domain import ConstructionError, all_flavors_pattern, first_gen_pattern
from quarklogic.gates.tokens import GateKind, negate_gate, rotate_gate
from quarklogic.hadrons import proton
from quarklogic.inference.averaging import (
    InferenceContext,
    average_unitaries,
    extract_rotation_params,
    glimpse_similarity,
    infer_missing_gate,
    normalize_to_unitary,
    quantize_angle,
)
from quarklogic.inference.chains import (
    ReasoningChain,
    add_to_chain,
    create_chain,
    simulate_up_to,
)
from quarklogic.inference.metrics import (
    KCBS_CLASSICAL_BOUND,
    Trend,
    assess_inference_safety,
    check_kcbs_violation,
    classify_trend,
    compute_metrics,
    compute_spatial_metrics,
    compute_temporal_metrics,
    compute_world_metrics,
)
from quarklogic.proposition import (
    prop_false,
    prop_true,
    prop_uncertain,
    prop_with_probability,
)
from quarklogic.spinor import identity2, mat_adjoint, mat_mul, rx, ry, rz
from quarklogic.world import (
    Glimpse,
    add_propositions,
    create_world,
    probability_true,
)


SQRT_HALF = math.sqrt(0.5)


def make_world(*props, **kwargs):
    return add_propositions(create_world(**kwargs), props)


def make_glimpse(**p_true):
    return Glimpse(probabilities={k: (v, 1 - v) for k, v in p_true.items()})


def make_chain(*p_values, prop_id="rain"):
    """Chain whose glimpses carry the given P(true) sequence."""
    glimpses = [make_glimpse(**{prop_id: p}) for p in p_values]
    return ReasoningChain(
        chain_id="c",
        initial=create_world(),
        gates=[None] * max(0, len(glimpses) - 1),
        glimpses=glimpses,
    )


# =============================================================================
# CHAIN TESTS
# =============================================================================

class TestChains:
    """Test chain construction and replay."""

    def test_create_chain_captures_initial(self):
        """A new chain holds no gates and one glimpse of the initial world."""
        chain = create_chain("a", make_world(prop_true("rain", proton())))
        assert len(chain) == 0
        assert chain.glimpses[0].p_true("rain") == 1.0

    def test_add_to_chain_is_pure(self):
        """Appending returns a new chain and records a None gate as a gap."""
        w = make_world(prop_true("rain", proton()))
        c0 = create_chain("a", w)
        c1 = add_to_chain(c0, None, w)
        assert len(c0) == 0
        assert len(c1) == 1
        assert len(c1.glimpses) == 2
        assert c1.gap_indices == [0]

    def test_glimpse_at_falls_back_to_last(self):
        """Indices past the end read the last glimpse."""
        chain = make_chain(0.1, 0.2)
        assert chain.glimpse_at(9).p_true("rain") == pytest.approx(0.2)

    def test_simulate_up_to_applies_gates(self):
        """Replay applies each known gate as one reasoning step."""
        w = make_world(prop_true("rain", proton()), max_iterations=1)
        chain = add_to_chain(create_chain("a", w), negate_gate("rain"), w)
        out = simulate_up_to(chain, 0)
        assert probability_true(out, "rain") == pytest.approx(0.0)
        assert out.logical_time == 1

    def test_simulate_skips_gaps(self):
        """Gaps are skipped during replay without advancing time."""
        w = make_world(prop_true("rain", proton()), max_iterations=1)
        chain = add_to_chain(create_chain("a", w), None, w)
        chain = add_to_chain(chain, negate_gate("rain"), w)
        assert simulate_up_to(chain, 0) is w
        assert simulate_up_to(chain, 1).logical_time == 1


# =============================================================================
# UNITARY AVERAGING TESTS
# =============================================================================

class TestUnitaryAveraging:
    """Test weighted averaging and re-projection."""

    def test_empty_is_identity(self):
        """Averaging nothing gives the identity."""
        assert_allclose(average_unitaries([]), identity2())

    def test_single_is_returned(self):
        """A single matrix is returned unchanged."""
        assert_allclose(average_unitaries([rx(0.4)]), rx(0.4))

    def test_identical_inputs(self):
        """Averaging copies of one rotation returns that rotation."""
        assert_allclose(average_unitaries([ry(1.0), ry(1.0)], [0.2, 0.9]), ry(1.0), atol=1e-12)

    def test_real_first_column_stays_unitary(self):
        """Averaging y rotations keeps the result unitary."""
        u = average_unitaries([ry(0.3), ry(1.2)], [0.5, 0.3])
        assert_allclose(mat_mul(mat_adjoint(u), u), identity2(), atol=1e-12)

    def test_columns_have_unit_norm(self):
        """Both columns of a mixed average are normalized."""
        u = average_unitaries([rx(0.3), ry(1.2), rz(2.0)], [0.5, 0.3, 0.2])
        assert_allclose(np.linalg.norm(u, axis=0), [1.0, 1.0], atol=1e-12)

    def test_projection_subtracts_along_real_part(self):
        """Only Re(u0) is used when removing the first column's component."""
        u = normalize_to_unitary(np.array([[1j, 1], [0, 0]]))
        assert_allclose(u, [[1j, 1], [0, 0]], atol=1e-12)

    def test_zero_weights_fall_back_to_uniform(self):
        """All-zero weights average uniformly."""
        u = average_unitaries([rx(0.5), rx(0.5)], [0.0, 0.0])
        assert_allclose(u, rx(0.5), atol=1e-12)

    def test_zero_matrix_projects_to_identity(self):
        """A vanishing first column projects to the identity."""
        assert_allclose(normalize_to_unitary(np.zeros((2, 2))), identity2())

    def test_parallel_columns_completed(self):
        """A second column parallel to the first is replaced by its complement."""
        u = normalize_to_unitary(np.array([[1, 1], [0, 0]]))
        assert_allclose(u, identity2(), atol=1e-12)


# =============================================================================
# ROTATION PARAMETER TESTS
# =============================================================================

class TestRotationParams:
    """Test axis/angle extraction and quantization."""

    def test_identity(self):
        """The identity reads back as angle 0 about z."""
        axis, angle = extract_rotation_params(identity2())
        assert angle == 0.0
        assert axis == (0.0, 0.0, 1.0)

    @pytest.mark.parametrize("matrix,expected_axis,expected_angle", [
        (rx(math.pi), (SQRT_HALF, SQRT_HALF, 0), math.pi),
        (rx(math.pi / 2), (SQRT_HALF, SQRT_HALF, 0), math.pi / 2),
        (ry(math.pi / 2), (0, 0, 1), math.pi / 2),
        (rz(math.pi / 4), (0, 0, 1), math.pi / 4),
    ])
    def test_principal_axes(self, matrix, expected_axis, expected_angle):
        """x rotations read back on (1, 1, 0)/√2 and y rotations on z."""
        axis, angle = extract_rotation_params(matrix)
        assert_allclose(axis, expected_axis, atol=1e-9)
        assert angle == pytest.approx(expected_angle)

    def test_returns_plain_floats(self):
        """Axis components and angle are Python floats, not numpy scalars."""
        axis, angle = extract_rotation_params(rx(math.pi / 2))
        assert all(type(a) is float for a in axis)
        assert type(angle) is float

    def test_quantize(self):
        """Angles round to the nearest multiple of π/4."""
        assert quantize_angle(0.8) == pytest.approx(math.pi / 4)
        assert quantize_angle(3 * math.pi / 8) == pytest.approx(math.pi / 2)
        assert quantize_angle(0.1) == 0.0


# =============================================================================
# GAP INFERENCE TESTS
# =============================================================================

class TestGapInference:
    """Test cross-chain gap inference."""

    def build_context(self, sibling_gates, patterns=None):
        w = make_world(prop_with_probability("rain", proton(), 0.5))
        gap_chain = add_to_chain(create_chain("gap", w), None, w)
        chains = [gap_chain]
        for i, gate in enumerate(sibling_gates):
            chains.append(add_to_chain(create_chain(f"s{i}", w), gate, w))
        return InferenceContext(chains=chains, flavor_patterns=patterns or [])

    def test_glimpse_similarity(self):
        """Similarity is exp(-mean |Δ P(true)|) over shared propositions."""
        assert glimpse_similarity(make_glimpse(a=0.3), make_glimpse(a=0.3)) == 1.0
        assert glimpse_similarity(make_glimpse(a=0.0), make_glimpse(a=1.0)) == pytest.approx(math.exp(-1))
        assert glimpse_similarity(make_glimpse(a=0.3), make_glimpse(b=0.3)) == 0.0

    def test_infers_sibling_negate(self):
        """Two sibling negations infer a half-turn rotation."""
        ctx = self.build_context([negate_gate("rain"), negate_gate("rain")])
        gate = infer_missing_gate(ctx, 0, 0, "rain")
        assert gate.kind == GateKind.ROTATE
        assert gate.target == "rain"
        assert_allclose(gate.axis, (SQRT_HALF, SQRT_HALF, 0), atol=1e-9)
        assert gate.angle == pytest.approx(math.pi)

    def test_angle_quantized(self):
        """The inferred angle is quantized to π/4."""
        ctx = self.build_context([rotate_gate("rain", (0, 1, 0), 0.7)])
        gate = infer_missing_gate(ctx, 0, 0, "rain")
        assert gate.angle == pytest.approx(math.pi / 4)

    def test_first_flavor_pattern_used(self):
        """The inferred gate takes the first supplied flavor pattern."""
        ctx = self.build_context([negate_gate("rain")], patterns=[first_gen_pattern()])
        assert infer_missing_gate(ctx, 0, 0, "rain").flavor_pattern == first_gen_pattern()

    def test_default_pattern_is_all_flavors(self):
        """Without patterns the inferred gate accepts every flavor."""
        ctx = self.build_context([negate_gate("rain")])
        assert infer_missing_gate(ctx, 0, 0, "rain").flavor_pattern == all_flavors_pattern()

    def test_no_candidates(self):
        """No sibling gate on the target gives None."""
        ctx = self.build_context([negate_gate("sun")])
        assert infer_missing_gate(ctx, 0, 0, "rain") is None

    def test_step_out_of_range(self):
        """A step past every sibling's gates gives None."""
        ctx = self.build_context([negate_gate("rain")])
        assert infer_missing_gate(ctx, 0, 5, "rain") is None

    def test_chain_index_out_of_range(self):
        """An unknown chain index gives None."""
        ctx = self.build_context([negate_gate("rain")])
        assert infer_missing_gate(ctx, 9, 0, "rain") is None


# =============================================================================
# METRICS TESTS
# =============================================================================

class TestMetrics:
    """Test proposition, temporal and spatial metrics."""

    def test_proposition_metrics(self):
        """Intensities, belief strength and phase of one proposition."""
        m = compute_metrics(prop_with_probability("rain", proton(), 0.75))
        assert m.intensity_true == pytest.approx(0.75)
        assert m.belief_strength == pytest.approx(0.5)
        assert m.phase == pytest.approx(0.0)

    def test_world_metrics(self):
        """World metrics carry one entry per proposition."""
        w = make_world(prop_true("a", proton()), prop_false("b", proton()))
        assert set(compute_world_metrics(w)) == {"a", "b"}

    def test_temporal_single_glimpse(self):
        """One glimpse has zero frequency and a stable trend."""
        t = compute_temporal_metrics([make_glimpse(rain=0.4)], "rain")
        assert t.frequency == 0.0
        assert t.trend == Trend.STABLE

    def test_temporal_increasing(self):
        """A rising sequence is classified as increasing."""
        glimpses = [make_glimpse(rain=p) for p in (0.0, 0.5, 1.0)]
        t = compute_temporal_metrics(glimpses, "rain")
        assert t.frequency == pytest.approx(0.5)
        assert t.stability == pytest.approx(0.5)
        assert t.trend == Trend.INCREASING

    def test_trend_ratio(self):
        """Trend needs one direction to outnumber the other by 1.5x."""
        assert classify_trend(2, 1) == Trend.INCREASING
        assert classify_trend(1, 1) == Trend.STABLE
        assert classify_trend(3, 2) == Trend.STABLE
        assert classify_trend(0, 1) == Trend.DECREASING

    def test_spatial_empty(self):
        """An empty world is fully coherent at intensity 0.5."""
        s = compute_spatial_metrics(create_world())
        assert s.coherence == 1.0
        assert s.avg_intensity_true == 0.5

    def test_spatial_disagreement(self):
        """Opposite beliefs have maximal variance and no coherence."""
        s = compute_spatial_metrics(make_world(prop_true("a", proton()), prop_false("b", proton())))
        assert s.variance == pytest.approx(0.25)
        assert s.coherence == pytest.approx(0.0)

    def test_spatial_agreement(self):
        """Matching beliefs are fully coherent."""
        s = compute_spatial_metrics(make_world(prop_true("a", proton()), prop_true("b", proton())))
        assert s.coherence == pytest.approx(1.0)


# =============================================================================
# KCBS & SAFETY TESTS
# =============================================================================

class TestKCBSAndSafety:
    """Test the contextuality witness and inference safety."""

    CYCLE = ["a", "b", "c", "d", "e"]

    def test_all_true_exceeds_bound(self):
        """Certain propositions on every vertex exceed the classical bound."""
        w = make_world(*(prop_true(i, proton()) for i in self.CYCLE))
        result = check_kcbs_violation(w, self.CYCLE)
        assert result.total == pytest.approx(5.0)
        assert result.violation == pytest.approx(5.0 - KCBS_CLASSICAL_BOUND)
        assert result.violates

    def test_uncertain_below_bound(self):
        """Uncertain propositions stay below the classical bound."""
        w = make_world(*(prop_uncertain(i, proton()) for i in self.CYCLE))
        result = check_kcbs_violation(w, self.CYCLE)
        assert result.total == pytest.approx(1.25)
        assert not result.violates

    def test_missing_propositions_skip_edges(self):
        """Edges touching a missing proposition are not evaluated."""
        w = make_world(*(prop_true(i, proton()) for i in self.CYCLE[:4]))
        result = check_kcbs_violation(w, self.CYCLE)
        assert result.edges_evaluated == 3

    def test_cycle_length_enforced(self):
        """The witness needs a 5-cycle."""
        with pytest.raises(ConstructionError):
            check_kcbs_violation(create_world(), ["a", "b"])

    def test_stable_region_is_safe(self):
        """A flat neighbourhood is safe with full confidence."""
        result = assess_inference_safety(make_chain(0.5, 0.5, 0.5, 0.5), 1)
        assert result.safe
        assert result.confidence == pytest.approx(1.0)

    def test_volatile_region_is_unsafe(self):
        """An oscillating neighbourhood is unsafe."""
        result = assess_inference_safety(make_chain(0.0, 1.0, 0.0, 1.0), 1)
        assert not result.safe
        assert "High temporal frequency" in result.reason

    def test_threshold_itself_is_unsafe(self):
        """Frequency exactly at 0.3 is already unsafe."""
        result = assess_inference_safety(make_chain(0.0, 0.3), 0)
        assert not result.safe

    def test_insufficient_context(self):
        """A chain with one glimpse cannot be assessed."""
        result = assess_inference_safety(make_chain(0.5), 0)
        assert not result.safe
        assert result.reason == "Insufficient context"
