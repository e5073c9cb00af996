"""
History Ledger — the append-only record of everything the engine did.

LEDGER INVARIANT:
    Entries are immutable and only ever appended. A World value carries its
    history as a tuple; producing a new entry produces a new World.

Entry kinds:
    ROTATION             — a rotate/negate/phase/conditional gate was applied
    PROJECTION           — a constrain gate projected its target
    CONTRADICTION        — a projector annihilated a proposition
    GATE_ERROR           — a gate was rejected (missing id, flavor mismatch)
    FIXED_POINT_COMPLETE — the fixed-point loop exited
    STEP_START/STEP_END  — reasoning step boundaries
    OBSERVATION          — a record-observation gate logged probabilities
    ALTERNATIVE          — a store-alternative gate logged an uncommitted state
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional


class HistoryKind(Enum):
    """Typed history entry kinds."""
    ROTATION = "rotation"
    PROJECTION = "projection"
    CONTRADICTION = "contradiction"
    GATE_ERROR = "gate_error"
    FIXED_POINT_COMPLETE = "fixed_point_complete"
    STEP_START = "step_start"
    STEP_END = "step_end"
    OBSERVATION = "observation"
    ALTERNATIVE = "alternative"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """
    A single ledger entry.

    logical_time is the reasoning step the entry was produced in and is
    fully deterministic; timestamp is wall-clock and for display only.
    """
    kind: HistoryKind
    proposition: Optional[str] = None
    condition: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=dict)
    logical_time: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not isinstance(self.kind, HistoryKind):
            raise TypeError(f"kind must be HistoryKind, got {type(self.kind)}")
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def at_time(self, logical_time: int) -> HistoryEntry:
        """Copy of this entry stamped with a logical time."""
        return HistoryEntry(
            kind=self.kind,
            proposition=self.proposition,
            condition=self.condition,
            data=dict(self.data),
            logical_time=logical_time,
            timestamp=self.timestamp,
        )

    def describe(self) -> str:
        parts = [self.kind.value]
        if self.condition:
            parts.append(f"cond={self.condition}")
        if self.proposition:
            parts.append(f"prop={self.proposition}")
        if self.data:
            parts.append(", ".join(f"{k}={v}" for k, v in self.data.items()))
        return f"[t={self.logical_time}] " + " ".join(parts)


# =============================================================================
# ENTRY FACTORIES
# =============================================================================

def create_entry(
    kind: HistoryKind,
    proposition: Optional[str] = None,
    condition: Optional[str] = None,
    data: Optional[Mapping[str, Any]] = None,
    logical_time: int = 0,
) -> HistoryEntry:
    """Factory for a history entry."""
    return HistoryEntry(
        kind=kind,
        proposition=proposition,
        condition=condition,
        data=dict(data or {}),
        logical_time=logical_time,
    )


def gate_error_entry(
    error: str,
    gate_kind: str,
    proposition: Optional[str] = None,
    logical_time: int = 0,
) -> HistoryEntry:
    return create_entry(
        HistoryKind.GATE_ERROR,
        proposition=proposition,
        data={"error": error, "gate_kind": gate_kind},
        logical_time=logical_time,
    )


def contradiction_entry(
    proposition: str,
    source: str,
    logical_time: int = 0,
    **data: Any,
) -> HistoryEntry:
    return create_entry(
        HistoryKind.CONTRADICTION,
        proposition=proposition,
        data={"source": source, **data},
        logical_time=logical_time,
    )


# =============================================================================
# LEDGER QUERIES
# =============================================================================

def filter_history(
    history: Iterable[HistoryEntry],
    kind: Optional[HistoryKind] = None,
    proposition: Optional[str] = None,
) -> list[HistoryEntry]:
    """Entries matching an optional kind and proposition id, in order."""
    return [
        h for h in history
        if (kind is None or h.kind == kind)
        and (proposition is None or h.proposition == proposition)
    ]


def count_by_kind(history: Iterable[HistoryEntry]) -> dict[HistoryKind, int]:
    """Entry counts keyed by kind, in first-seen order."""
    return dict(Counter(h.kind for h in history))
