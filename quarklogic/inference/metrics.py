"""
Belief Metrics for QuarkLogic Engine.

Every metric is a pure function of propositions or glimpses:
    - Proposition: intensities, belief strength, relative phase
    - Temporal: mean step-to-step change in P(true) along a chain, plus trend
    - Spatial: spread of P(true) across a world, plus coherence
    - KCBS witness: sum of neighbour products around a 5-cycle
    - Inference safety: whether a gap sits in a stable region

The KCBS witness multiplies independent marginals. It is not a joint
distribution and not a rigorous contextuality test.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..domain import ConstructionError, ConstructionRule
from ..proposition import Proposition, belief_strength
from ..spinor import relative_phase
from ..world import Glimpse, WorldState
from .chains import ReasoningChain

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

TREND_RATIO = 1.5
SAFETY_FREQUENCY_THRESHOLD = 0.3
SAFETY_WINDOW = 2
KCBS_CLASSICAL_BOUND = 2.0
KCBS_CYCLE_LENGTH = 5


# =============================================================================
# PROPOSITION METRICS
# =============================================================================

@dataclass(frozen=True)
class PropositionMetrics:
    prop_id: str
    intensity_true: float
    intensity_false: float
    belief_strength: float
    phase: float


def compute_metrics(prop: Proposition) -> PropositionMetrics:
    return PropositionMetrics(
        prop_id=prop.id,
        intensity_true=prop.p_true,
        intensity_false=prop.p_false,
        belief_strength=belief_strength(prop),
        phase=relative_phase(prop.amplitude),
    )


def compute_world_metrics(world: WorldState) -> dict[str, PropositionMetrics]:
    return {pid: compute_metrics(p) for pid, p in world.propositions.items()}


# =============================================================================
# TEMPORAL METRICS
# =============================================================================

class Trend(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class TemporalMetrics:
    """Rate of change of one proposition along a glimpse sequence."""
    prop_id: str
    frequency: float
    stability: float
    trend: Trend


def classify_trend(increases: int, decreases: int, ratio: float = TREND_RATIO) -> Trend:
    """Increasing/decreasing only when one count exceeds ratio × the other."""
    if increases > decreases * ratio:
        return Trend.INCREASING
    if decreases > increases * ratio:
        return Trend.DECREASING
    return Trend.STABLE


def compute_temporal_metrics(glimpses: Sequence[Glimpse], prop_id: str) -> TemporalMetrics:
    """
    Mean absolute step-to-step change in P(true).

    The total change is divided by (number of glimpses - 1) even when the
    proposition is missing from some glimpses.
    """
    if len(glimpses) < 2:
        return TemporalMetrics(prop_id=prop_id, frequency=0.0, stability=1.0, trend=Trend.STABLE)

    total_change = 0.0
    last = None
    increases = 0
    decreases = 0

    for g in glimpses:
        p = g.p_true(prop_id)
        if p is None:
            continue
        if last is not None:
            total_change += abs(p - last)
            if p > last:
                increases += 1
            elif p < last:
                decreases += 1
        last = p

    frequency = total_change / (len(glimpses) - 1)
    return TemporalMetrics(
        prop_id=prop_id,
        frequency=frequency,
        stability=1 - min(1.0, frequency),
        trend=classify_trend(increases, decreases),
    )


# =============================================================================
# SPATIAL METRICS
# =============================================================================

@dataclass(frozen=True)
class SpatialMetrics:
    """Spread of P(true) across every proposition in a world."""
    avg_intensity_true: float
    avg_intensity_false: float
    variance: float
    coherence: float


def compute_spatial_metrics(world: WorldState) -> SpatialMetrics:
    props = list(world.propositions.values())
    if not props:
        return SpatialMetrics(
            avg_intensity_true=0.5, avg_intensity_false=0.5, variance=0.0, coherence=1.0
        )

    n = len(props)
    avg_true = sum(p.p_true for p in props) / n
    avg_false = sum(p.p_false for p in props) / n
    variance = sum((p.p_true - avg_true) ** 2 for p in props) / n

    return SpatialMetrics(
        avg_intensity_true=avg_true,
        avg_intensity_false=avg_false,
        variance=variance,
        coherence=max(0.0, 1 - 2 * math.sqrt(variance)),
    )


# =============================================================================
# KCBS WITNESS
# =============================================================================

@dataclass(frozen=True)
class KCBSResult:
    """
    Witness over a 5-cycle of propositions.

    total is Σ P(true)_i · P(true)_{i+1} over the edges whose endpoints both
    exist; violation = total - bound, positive above the classical bound.
    """
    cycle: tuple[str, ...]
    total: float
    violation: float
    edges_evaluated: int
    bound: float = KCBS_CLASSICAL_BOUND

    @property
    def violates(self) -> bool:
        return self.violation > 0


def check_kcbs_violation(
    world: WorldState,
    prop_ids: Sequence[str],
    bound: float = KCBS_CLASSICAL_BOUND,
) -> KCBSResult:
    """
    Evaluate the witness over prop_ids taken as a cycle.

    Raises:
        ConstructionError: If prop_ids does not name exactly five propositions
    """
    cycle = tuple(prop_ids)
    if len(cycle) != KCBS_CYCLE_LENGTH:
        raise ConstructionError(
            ConstructionRule.INVALID_PARAMETER,
            f"KCBS cycle needs {KCBS_CYCLE_LENGTH} propositions, got {len(cycle)}",
        )

    total = 0.0
    edges = 0
    for i in range(KCBS_CYCLE_LENGTH):
        p1 = world.propositions.get(cycle[i])
        p2 = world.propositions.get(cycle[(i + 1) % KCBS_CYCLE_LENGTH])
        if p1 is not None and p2 is not None:
            total += p1.p_true * p2.p_true
            edges += 1

    return KCBSResult(
        cycle=cycle,
        total=total,
        violation=total - bound,
        edges_evaluated=edges,
        bound=bound,
    )


# =============================================================================
# INFERENCE SAFETY
# =============================================================================

@dataclass(frozen=True)
class SafetyAssessment:
    safe: bool
    confidence: float
    reason: str
    max_frequency: float = 0.0


def assess_inference_safety(
    chain: ReasoningChain,
    gate_index: int,
    window: int = SAFETY_WINDOW,
    threshold: float = SAFETY_FREQUENCY_THRESHOLD,
) -> SafetyAssessment:
    """
    A gap is safe to fill only if every proposition is temporally stable in
    the ±window glimpses around it (max frequency below threshold).
    """
    start = max(0, gate_index - window)
    end = min(len(chain.glimpses) - 1, gate_index + window)
    relevant = list(chain.glimpses[start:end + 1])

    if len(relevant) < 2:
        return SafetyAssessment(safe=False, confidence=0.0, reason="Insufficient context")

    max_freq = 0.0
    for prop_id in relevant[0].probabilities:
        freq = compute_temporal_metrics(relevant, prop_id).frequency
        if freq > max_freq:
            max_freq = freq

    if max_freq >= threshold:
        logger.debug(
            "chain %s step %d unsafe: frequency %.3f", chain.chain_id, gate_index, max_freq
        )
        return SafetyAssessment(
            safe=False,
            confidence=1 - max_freq,
            reason=f"High temporal frequency ({max_freq:.3f})",
            max_frequency=max_freq,
        )

    return SafetyAssessment(
        safe=True,
        confidence=1 - max_freq,
        reason="Stable context",
        max_frequency=max_freq,
    )
