"""
Reasoning Chains for QuarkLogic Engine.

A chain is an initial world plus an ordered list of gate-or-gap entries,
with the glimpse captured after each entry. Glimpse 0 is the initial
world, so glimpses[i + 1] follows gates[i].

A gap (None) marks a step whose gate is unknown and may be inferred from
sibling chains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..gates.tokens import GateToken
from ..world import Glimpse, WorldState, capture_glimpse, run_reasoning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReasoningChain:
    """Immutable chain of gate-or-gap steps."""
    chain_id: str
    initial: WorldState
    gates: tuple[Optional[GateToken], ...] = ()
    glimpses: tuple[Glimpse, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "gates", tuple(self.gates))
        object.__setattr__(self, "glimpses", tuple(self.glimpses))

    def __len__(self) -> int:
        return len(self.gates)

    @property
    def gap_indices(self) -> list[int]:
        return [i for i, g in enumerate(self.gates) if g is None]

    def glimpse_at(self, index: int) -> Glimpse:
        """Glimpse at index, falling back to the last one captured."""
        if 0 <= index < len(self.glimpses):
            return self.glimpses[index]
        return self.glimpses[-1]


def create_chain(chain_id: str, initial: WorldState) -> ReasoningChain:
    """New chain holding only the initial glimpse."""
    return ReasoningChain(
        chain_id=chain_id,
        initial=initial,
        gates=(),
        glimpses=(capture_glimpse(initial),),
    )


def add_to_chain(
    chain: ReasoningChain,
    gate: Optional[GateToken],
    world: WorldState,
) -> ReasoningChain:
    """Append a gate (None for a gap) and the glimpse of the resulting world."""
    return replace(
        chain,
        gates=chain.gates + (gate,),
        glimpses=chain.glimpses + (capture_glimpse(world),),
    )


def simulate_up_to(chain: ReasoningChain, gate_index: int) -> WorldState:
    """
    Replay the chain from its initial world through gates[0..gate_index].

    Each non-gap gate runs as the world's only gate for one reasoning step.
    Gaps are skipped.
    """
    world = chain.initial
    for i, gate in enumerate(chain.gates):
        if i > gate_index:
            break
        if gate is None:
            logger.debug("chain %s: skipping gap at %d", chain.chain_id, i)
            continue
        world = run_reasoning(replace(world, gates=(gate,)), 1)
    return world
