# QuarkLogic Engine
# Symbolic reasoning over spinor-valued propositions

"""
Core invariant: every proposition is carried by a color-singlet composite
and holds a unit-norm spinor [amplitude_true, amplitude_false].

Propositions evolve toward a fixed point under typed gates and standing
constraints. Every failure mode is a distinguishable history entry:
construction errors raise, gate errors and contradictions are logged,
non-convergence is flagged.
"""

from .domain import (
    Color,
    ConstructionError,
    ConstructionRule,
    Flavor,
    FlavorPattern,
    QuarkMode,
    Spin,
    all_flavors_pattern,
    antiquark_mode,
    down_type_pattern,
    first_gen_pattern,
    flavors_match_pattern,
    generation_pattern,
    levi_civita,
    light_quark_pattern,
    quark_mode,
    up_type_pattern,
)
from .hadrons import (
    Baryon,
    Composite,
    FockOccupation,
    HadronType,
    Meson,
    baryon_from_quarks,
    create_baryon,
    create_meson,
    is_color_singlet,
    kaon_plus,
    meson_from_quarks,
    neutron,
    pion_minus,
    pion_plus,
    proton,
)
from .proposition import (
    Proposition,
    interpretation,
    prop_false,
    prop_superposition,
    prop_true,
    prop_uncertain,
    prop_with_probability,
)
from .gates.tokens import (
    GateKind,
    GateToken,
    ProjectorType,
    conditional_rotate_gate,
    constrain_gate,
    negate_gate,
    phase_gate,
    record_observation_gate,
    rotate_gate,
    store_alternative_gate,
)
from .gates.apply import GateResult, apply_gate
from .history import HistoryEntry, HistoryKind
from .world import (
    Constraint,
    Glimpse,
    WorldState,
    add_constraint,
    add_gate,
    add_gates,
    add_proposition,
    add_propositions,
    capture_glimpse,
    create_constraint,
    create_world,
    get_proposition,
    history_of,
    probability_false,
    probability_true,
    reasoning_step,
    run_reasoning,
)
from .validation import ValidationResult, validate_world

__version__ = "0.1.0"
