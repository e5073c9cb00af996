"""
World State and Reasoning Engine for QuarkLogic.

The World is the sole owner of every Proposition. Gates and constraints
reference propositions by id only.

Copy-on-write: WorldState is frozen and every operation in this module
returns a NEW WorldState. No caller can observe a partially-updated World.

Reasoning step (Idle → FixedPointIterating → Converged | IterationLimitReached
→ Committed):
    1. STEP_START
    2. Fixed-point loop, each iteration:
         a. renormalize every proposition
         b. apply standing constraints in list order
         c. apply every gate except RECORD_OBSERVATION and CONSTRAIN
         d. stop when max spinor distance < epsilon, or at max_iterations
    3. FIXED_POINT_COMPLETE (exactly one per step)
    4. Commit: evaluate RECORD_OBSERVATION gates, no mutation
    5. STEP_END
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import numpy as np

from .domain import ConstructionError, ConstructionRule
from .gates.apply import apply_gate, apply_record_observation
from .gates.tokens import GateKind, GateToken, get_projector
from .hadrons import Composite
from .history import (
    HistoryEntry,
    HistoryKind,
    contradiction_entry,
    count_by_kind,
    create_entry,
    filter_history,
    gate_error_entry,
)
from .proposition import Proposition
from .spinor import apply_projector, frozen, is_annihilated, spinor_distance, spinor_norm

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

DEFAULT_EPSILON = 1e-6
DEFAULT_MAX_ITERATIONS = 100


# =============================================================================
# CONSTRAINT
# =============================================================================

def create_constraint_id() -> str:
    """Generate a unique constraint ID."""
    return f"cst_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True, eq=False)
class Constraint:
    """
    A standing projector on one proposition.

    Reapplied every fixed-point iteration until removed from the World.
    """
    constraint_id: str
    target: str
    projector: np.ndarray
    label: Optional[str] = None

    def __post_init__(self):
        if not self.constraint_id:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                "constraint_id is required",
            )
        if not self.target:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                "constraint target is required",
            )
        if np.shape(self.projector) != (2, 2):
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"constraint projector must be 2x2, got shape {np.shape(self.projector)}",
                self.target,
            )
        object.__setattr__(self, "projector", frozen(self.projector))


def create_constraint(
    target: str,
    projector: np.ndarray,
    label: Optional[str] = None,
    constraint_id: Optional[str] = None,
) -> Constraint:
    """Factory for a standing constraint."""
    return Constraint(
        constraint_id=constraint_id or create_constraint_id(),
        target=target,
        projector=projector,
        label=label,
    )


def constraint_from_gate(gate: GateToken) -> Constraint:
    """Promote a CONSTRAIN gate into a standing constraint."""
    if gate.kind != GateKind.CONSTRAIN:
        raise ConstructionError(
            ConstructionRule.INVALID_PARAMETER,
            f"only constrain gates can become constraints, got {gate.kind.value}",
            gate.target,
        )
    return create_constraint(gate.target, get_projector(gate), label=gate.label)


# =============================================================================
# WORLD STATE
# =============================================================================

@dataclass(frozen=True)
class WorldState:
    """
    Immutable world value.

    propositions and composites are read-only mappings; constraints, gates
    and history are tuples. Use the module functions to derive new worlds.
    """
    propositions: Mapping[str, Proposition] = field(default_factory=dict)
    composites: Mapping[str, Composite] = field(default_factory=dict)
    constraints: tuple[Constraint, ...] = ()
    gates: tuple[GateToken, ...] = ()
    history: tuple[HistoryEntry, ...] = ()
    logical_time: int = 0
    epsilon: float = DEFAULT_EPSILON
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    def __post_init__(self):
        if self.epsilon < 0:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"epsilon must be >= 0, got {self.epsilon}",
            )
        if self.max_iterations < 1:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"max_iterations must be >= 1, got {self.max_iterations}",
            )
        object.__setattr__(self, "propositions", MappingProxyType(dict(self.propositions)))
        object.__setattr__(self, "composites", MappingProxyType(dict(self.composites)))
        object.__setattr__(self, "constraints", tuple(self.constraints))
        object.__setattr__(self, "gates", tuple(self.gates))
        object.__setattr__(self, "history", tuple(self.history))

    def get(self, prop_id: str) -> Optional[Proposition]:
        return self.propositions.get(prop_id)

    def __contains__(self, prop_id: object) -> bool:
        return prop_id in self.propositions


def create_world(
    epsilon: float = DEFAULT_EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> WorldState:
    """Empty world with the given convergence settings."""
    return WorldState(epsilon=epsilon, max_iterations=max_iterations)


def _append_history(world: WorldState, *entries: HistoryEntry) -> WorldState:
    stamped = tuple(e.at_time(world.logical_time) for e in entries)
    return replace(world, history=world.history + stamped)


# =============================================================================
# MUTATION SURFACE (pure)
# =============================================================================

def add_proposition(world: WorldState, prop: Proposition) -> WorldState:
    """Add or replace a proposition, indexing its composite."""
    props = dict(world.propositions)
    specs = dict(world.composites)
    props[prop.id] = prop
    specs[prop.id] = prop.composite
    return replace(world, propositions=props, composites=specs)


def add_propositions(world: WorldState, props: Iterable[Proposition]) -> WorldState:
    w = world
    for p in props:
        w = add_proposition(w, p)
    return w


def remove_proposition(world: WorldState, prop_id: str) -> WorldState:
    """Drop a proposition. Gates still naming it will report gate errors."""
    props = dict(world.propositions)
    specs = dict(world.composites)
    props.pop(prop_id, None)
    specs.pop(prop_id, None)
    return replace(world, propositions=props, composites=specs)


def add_constraint(world: WorldState, constraint: Constraint) -> WorldState:
    return replace(world, constraints=world.constraints + (constraint,))


def remove_constraint(world: WorldState, constraint_id: str) -> WorldState:
    return replace(
        world,
        constraints=tuple(c for c in world.constraints if c.constraint_id != constraint_id),
    )


def add_gate(world: WorldState, gate: GateToken) -> WorldState:
    return replace(world, gates=world.gates + (gate,))


def add_gates(world: WorldState, gates: Iterable[GateToken]) -> WorldState:
    return replace(world, gates=world.gates + tuple(gates))


def clear_gates(world: WorldState) -> WorldState:
    return replace(world, gates=())


# =============================================================================
# QUERY SURFACE
# =============================================================================

def get_proposition(world: WorldState, prop_id: str) -> Optional[Proposition]:
    return world.propositions.get(prop_id)


def proposition_ids(world: WorldState) -> list[str]:
    return list(world.propositions.keys())


def probability_true(world: WorldState, prop_id: str) -> Optional[float]:
    prop = world.propositions.get(prop_id)
    return prop.p_true if prop else None


def probability_false(world: WorldState, prop_id: str) -> Optional[float]:
    prop = world.propositions.get(prop_id)
    return prop.p_false if prop else None


def history_of(world: WorldState, kind: Optional[HistoryKind] = None) -> list[HistoryEntry]:
    """Full history, optionally filtered by entry kind."""
    return filter_history(world.history, kind=kind)


def observations(world: WorldState) -> list[tuple[str, float, float]]:
    """(proposition, p_true, p_false) for every recorded observation."""
    return [
        (h.proposition, h.data["p_true"], h.data["p_false"])
        for h in world.history
        if h.kind == HistoryKind.OBSERVATION
    ]


def world_summary(world: WorldState) -> str:
    lines = [
        f"=== World State (t={world.logical_time}) ===",
        f"Propositions: {len(world.propositions)}",
        f"Gates: {len(world.gates)}",
        f"Constraints: {len(world.constraints)}",
        "",
        "Propositions:",
    ]
    for prop_id, prop in world.propositions.items():
        lines.append(
            f"  {prop_id}: TRUE={prop.p_true * 100:.1f}%, FALSE={prop.p_false * 100:.1f}%"
        )
    return "\n".join(lines)


def history_summary(world: WorldState) -> str:
    lines = [f"History ({len(world.history)} entries):"]
    for kind, count in count_by_kind(world.history).items():
        lines.append(f"  {kind.value}: {count}")
    return "\n".join(lines)


# =============================================================================
# NORMALIZATION & CONSTRAINTS
# =============================================================================

def normalize_world(world: WorldState) -> WorldState:
    """Renormalize every proposition's amplitude."""
    props = {pid: p.normalized() for pid, p in world.propositions.items()}
    return replace(world, propositions=props)


def apply_constraint(world: WorldState, constraint: Constraint) -> WorldState:
    """
    Apply one standing constraint.

    A missing target is skipped here; validate_world() reports it. On
    annihilation a CONTRADICTION entry is logged and the proposition keeps
    its prior amplitude.
    """
    prop = world.propositions.get(constraint.target)
    if prop is None:
        return world

    projected = apply_projector(constraint.projector, prop.amplitude)

    if is_annihilated(projected):
        logger.debug(
            "constraint %s annihilated %s", constraint.constraint_id, constraint.target
        )
        return _append_history(
            world,
            contradiction_entry(
                constraint.target,
                source="constraint",
                constraint_id=constraint.constraint_id,
                label=constraint.label,
                norm=spinor_norm(projected),
            ),
        )

    props = dict(world.propositions)
    props[constraint.target] = prop.with_amplitude(projected)
    return replace(world, propositions=props)


def apply_constraints(world: WorldState) -> WorldState:
    w = world
    for c in world.constraints:
        w = apply_constraint(w, c)
    return w


# =============================================================================
# GATE SWEEP
# =============================================================================

def sweep_gates(world: WorldState) -> WorldState:
    """
    Apply every gate except RECORD_OBSERVATION (commit phase) and
    CONSTRAIN (handled through standing constraints), in list order.
    """
    props: Mapping[str, Proposition] = world.propositions
    entries: list[HistoryEntry] = []

    for gate in world.gates:
        if gate.kind in (GateKind.RECORD_OBSERVATION, GateKind.CONSTRAIN):
            continue

        result = apply_gate(props, gate)
        if result.success:
            props = result.propositions
            if result.history_entry is not None:
                entries.append(result.history_entry)
        else:
            entries.append(
                gate_error_entry(
                    error=result.error or "unknown error",
                    gate_kind=gate.kind.value,
                    proposition=gate.target,
                )
            )

    return _append_history(replace(world, propositions=props), *entries)


# =============================================================================
# FIXED-POINT LOOP
# =============================================================================

def max_spinor_diff(old: WorldState, new: WorldState) -> float:
    """Largest per-proposition amplitude distance between two worlds."""
    max_diff = 0.0
    for prop_id, old_prop in old.propositions.items():
        new_prop = new.propositions.get(prop_id)
        if new_prop is not None:
            diff = spinor_distance(old_prop.amplitude, new_prop.amplitude)
            if diff > max_diff:
                max_diff = diff
    return max_diff


def fixed_point(world: WorldState) -> WorldState:
    """
    Iterate normalize → constrain → sweep until convergence.

    The `iterations` recorded counts passes that did not converge, so an
    iteration-limit exit records exactly max_iterations. Hitting the limit
    is logged, not raised.
    """
    w = world
    iterations = 0
    converged = False
    delta = 0.0

    while iterations < world.max_iterations:
        snapshot = w

        w = normalize_world(w)
        w = apply_constraints(w)
        w = sweep_gates(w)

        delta = max_spinor_diff(snapshot, w)
        logger.debug("t=%d iteration %d: delta=%.3e", w.logical_time, iterations, delta)
        if delta < world.epsilon:
            converged = True
            break

        iterations += 1

    if not converged:
        logger.warning(
            "t=%d: fixed point not reached after %d iterations (delta=%.3e, epsilon=%.3e)",
            w.logical_time, iterations, delta, world.epsilon,
        )

    return _append_history(
        w,
        create_entry(
            HistoryKind.FIXED_POINT_COMPLETE,
            data={"iterations": iterations, "converged": converged, "delta": delta},
        ),
    )


# =============================================================================
# COMMIT PHASE
# =============================================================================

def commit(world: WorldState) -> WorldState:
    """Evaluate RECORD_OBSERVATION gates. Read-only on propositions."""
    entries: list[HistoryEntry] = []
    for gate in world.gates:
        if gate.kind != GateKind.RECORD_OBSERVATION:
            continue
        result = apply_record_observation(world.propositions, gate)
        if result.success and result.history_entry is not None:
            entries.append(result.history_entry)
        elif not result.success:
            entries.append(
                gate_error_entry(
                    error=result.error or "unknown error",
                    gate_kind=gate.kind.value,
                    proposition=gate.target,
                )
            )
    return _append_history(world, *entries)


# =============================================================================
# TOP-LEVEL REASONING
# =============================================================================

def reasoning_step(world: WorldState) -> WorldState:
    """One full Idle → Committed transition."""
    w = replace(world, logical_time=world.logical_time + 1)
    start = len(w.history)

    w = _append_history(
        w, create_entry(HistoryKind.STEP_START, data={"logical_time": w.logical_time})
    )
    w = fixed_point(w)
    w = commit(w)
    w = _append_history(
        w, create_entry(HistoryKind.STEP_END, data={"logical_time": w.logical_time})
    )

    step_counts = count_by_kind(w.history[start:])
    contradictions = step_counts.get(HistoryKind.CONTRADICTION, 0)
    gate_errors = step_counts.get(HistoryKind.GATE_ERROR, 0)
    if contradictions:
        logger.warning("t=%d: %d contradiction(s) logged", w.logical_time, contradictions)
    if gate_errors:
        logger.warning("t=%d: %d gate error(s) logged", w.logical_time, gate_errors)
    logger.info(
        "t=%d: reasoning step complete (%d propositions, %d gates)",
        w.logical_time, len(w.propositions), len(w.gates),
    )
    return w


def run_reasoning(world: WorldState, steps: int = 1) -> WorldState:
    """Run N reasoning steps."""
    w = world
    for _ in range(steps):
        w = reasoning_step(w)
    return w


# =============================================================================
# GLIMPSES
# =============================================================================

@dataclass(frozen=True)
class Glimpse:
    """Snapshot of every proposition's (p_true, p_false) at one point."""
    probabilities: Mapping[str, tuple[float, float]]
    gates: tuple[GateToken, ...] = ()
    logical_time: int = 0

    def __post_init__(self):
        object.__setattr__(self, "probabilities", MappingProxyType(dict(self.probabilities)))
        object.__setattr__(self, "gates", tuple(self.gates))

    def p_true(self, prop_id: str) -> Optional[float]:
        entry = self.probabilities.get(prop_id)
        return entry[0] if entry else None


def capture_glimpse(world: WorldState) -> Glimpse:
    return Glimpse(
        probabilities={
            pid: (p.p_true, p.p_false) for pid, p in world.propositions.items()
        },
        gates=world.gates,
        logical_time=world.logical_time,
    )
