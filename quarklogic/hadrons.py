"""
Composite (Hadron) Domain for QuarkLogic Engine.

Propositions are carried by color-singlet composites:
    Baryon — three quarks, one of each color
    Meson  — a quark and an antiquark with matching color/anticolor

Composites are immutable. A composite that violates its invariant fails
at construction time and is never silently repaired.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .domain import (
    Color,
    ConstructionError,
    ConstructionRule,
    Flavor,
    FLAVOR_SYMBOLS,
    QuarkMode,
    Spin,
    levi_civita,
    same_mode,
)


class HadronType(Enum):
    """Discriminant for the two composite kinds."""
    BARYON = "baryon"  # qqq
    MESON = "meson"    # q q̄


# =============================================================================
# BARYON
# =============================================================================

def _check_pauli_exclusion(q1: QuarkMode, q2: QuarkMode, q3: QuarkMode) -> None:
    if same_mode(q1, q2) or same_mode(q2, q3) or same_mode(q1, q3):
        raise ConstructionError(
            ConstructionRule.PAULI_EXCLUSION,
            "cannot have two quarks in the same mode",
        )


@dataclass(frozen=True)
class Baryon:
    """
    Three-quark color singlet.

    Invariants enforced at construction:
    1. No two quarks occupy the same mode
    2. The three colors are a permutation of (R, G, B)

    Exclusion is checked first: identical modes always share a color, so
    the singlet check would otherwise mask every exclusion violation.
    """
    q1: QuarkMode
    q2: QuarkMode
    q3: QuarkMode
    kind: HadronType = field(default=HadronType.BARYON, init=False)

    def __post_init__(self):
        _check_pauli_exclusion(self.q1, self.q2, self.q3)
        if len({self.q1.color, self.q2.color, self.q3.color}) != 3:
            raise ConstructionError(
                ConstructionRule.NOT_COLOR_SINGLET,
                "baryon must have all three colors for a color singlet",
            )

    @property
    def quarks(self) -> tuple[QuarkMode, QuarkMode, QuarkMode]:
        return (self.q1, self.q2, self.q3)

    @property
    def flavors(self) -> list[Flavor]:
        return [self.q1.flavor, self.q2.flavor, self.q3.flavor]

    @property
    def color_sign(self) -> int:
        """Levi-Civita sign of this baryon's color ordering."""
        return levi_civita(self.q1.color, self.q2.color, self.q3.color)

    def is_color_singlet(self) -> bool:
        return len({self.q1.color, self.q2.color, self.q3.color}) == 3

    def label(self) -> str:
        return "B(" + "".join(FLAVOR_SYMBOLS[f] for f in self.flavors) + ")"

    def description(self) -> str:
        return (
            "Baryon[\n"
            f"  {self.q1.label()}\n"
            f"  {self.q2.label()}\n"
            f"  {self.q3.label()}\n"
            "]"
        )


def create_baryon(
    x1: int, s1: Spin, f1: Flavor,
    x2: int, s2: Spin, f2: Flavor,
    x3: int, s3: Spin, f3: Flavor,
) -> Baryon:
    """
    Create a baryon from three (position, spin, flavor) triples.

    Colors are assigned R, G, B in order, so the duplicate-mode check that
    follows can never fire through this path. Use baryon_from_quarks() to
    build from explicit modes when exclusion must actually be tested.
    """
    q1 = QuarkMode(x1, s1, f1, Color.R)
    q2 = QuarkMode(x2, s2, f2, Color.G)
    q3 = QuarkMode(x3, s3, f3, Color.B)

    _check_pauli_exclusion(q1, q2, q3)

    return Baryon(q1, q2, q3)


def baryon_from_quarks(q1: QuarkMode, q2: QuarkMode, q3: QuarkMode) -> Baryon:
    """Create a baryon from explicit modes, validating all four fields."""
    return Baryon(q1, q2, q3)


# =============================================================================
# MESON
# =============================================================================

@dataclass(frozen=True)
class Meson:
    """
    Quark/antiquark color singlet.

    The antiquark's color index represents the anticolor of the pair, so the
    singlet condition is that both indices match.
    """
    quark: QuarkMode
    antiquark: QuarkMode
    kind: HadronType = field(default=HadronType.MESON, init=False)

    def __post_init__(self):
        if self.quark.color != self.antiquark.color:
            raise ConstructionError(
                ConstructionRule.NOT_COLOR_SINGLET,
                "meson quark color must match antiquark anticolor "
                f"(got {self.quark.color.name} and {self.antiquark.color.name})",
            )

    @property
    def flavors(self) -> list[Flavor]:
        return [self.quark.flavor, self.antiquark.flavor]

    def is_color_singlet(self) -> bool:
        return self.quark.color == self.antiquark.color

    def label(self) -> str:
        fq = FLAVOR_SYMBOLS[self.quark.flavor]
        fa = FLAVOR_SYMBOLS[self.antiquark.flavor]
        return f"M({fq}{fa}̄)"

    def description(self) -> str:
        return (
            "Meson[\n"
            f"  q: {self.quark.label()}\n"
            f"  q̄: {self.antiquark.antiquark_label()}\n"
            "]"
        )


def create_meson(
    x_q: int, s_q: Spin, f_q: Flavor,
    x_qbar: int, s_qbar: Spin, f_qbar: Flavor,
    color: Color = Color.R,
) -> Meson:
    """Create a meson whose quark and antiquark share the given color index."""
    quark = QuarkMode(x_q, s_q, f_q, color)
    antiquark = QuarkMode(x_qbar, s_qbar, f_qbar, color)
    return Meson(quark, antiquark)


def meson_from_quarks(quark: QuarkMode, antiquark: QuarkMode) -> Meson:
    """Create a meson from explicit modes, validating the color pairing."""
    return Meson(quark, antiquark)


# =============================================================================
# COMPOSITE UNION
# =============================================================================

Composite = Union[Baryon, Meson]


def is_baryon(h: Composite) -> bool:
    return isinstance(h, Baryon)


def is_meson(h: Composite) -> bool:
    return isinstance(h, Meson)


def composite_flavors(h: Composite) -> list[Flavor]:
    return h.flavors


def is_color_singlet(h: Composite) -> bool:
    """Check the singlet condition for either composite kind."""
    if isinstance(h, (Baryon, Meson)):
        return h.is_color_singlet()
    return False


def composite_label(h: Composite) -> str:
    return h.label()


def composite_description(h: Composite) -> str:
    return h.description()


def baryon_color_sign(b: Baryon) -> int:
    return b.color_sign


def quark_label(q: QuarkMode, antiquark: bool = False) -> str:
    """Ket label for a single mode, barred when it is an antiquark."""
    return q.antiquark_label() if antiquark else q.label()


# =============================================================================
# NAMED PRESETS
# =============================================================================

def proton(x: int = 0) -> Baryon:
    """Proton: uud."""
    return create_baryon(
        x, Spin.UP, Flavor.U,
        x, Spin.DOWN, Flavor.U,
        x, Spin.UP, Flavor.D,
    )


def neutron(x: int = 0) -> Baryon:
    """Neutron: udd."""
    return create_baryon(
        x, Spin.UP, Flavor.U,
        x, Spin.DOWN, Flavor.D,
        x, Spin.UP, Flavor.D,
    )


def pion_plus(x: int = 0) -> Meson:
    """π+: u d̄."""
    return create_meson(x, Spin.UP, Flavor.U, x, Spin.DOWN, Flavor.D)


def pion_minus(x: int = 0) -> Meson:
    """π-: d ū."""
    return create_meson(x, Spin.UP, Flavor.D, x, Spin.DOWN, Flavor.U)


def kaon_plus(x: int = 0) -> Meson:
    """K+: u s̄."""
    return create_meson(x, Spin.UP, Flavor.U, x, Spin.DOWN, Flavor.S)


# =============================================================================
# FOCK OCCUPATION
# =============================================================================

@dataclass
class FockOccupation:
    """
    Occupation tracking for quark and antiquark modes.

    Creation and annihilation return the fermionic sign (+1 or -1) picked up
    by anticommuting past every occupied mode that sorts before the target,
    or 0 when the operation is blocked (mode already occupied on creation,
    empty on annihilation).
    """
    quark_occupied: dict[str, bool] = field(default_factory=dict)
    antiquark_occupied: dict[str, bool] = field(default_factory=dict)

    @staticmethod
    def _ordering_sign(occupied: dict[str, bool], key: str) -> int:
        sign = 1
        for k, is_occupied in occupied.items():
            if is_occupied and k < key:
                sign = -sign
        return sign

    def _create(self, occupied: dict[str, bool], mode: QuarkMode) -> int:
        key = mode.key
        if occupied.get(key):
            return 0
        sign = self._ordering_sign(occupied, key)
        occupied[key] = True
        return sign

    def _annihilate(self, occupied: dict[str, bool], mode: QuarkMode) -> int:
        key = mode.key
        if not occupied.get(key):
            return 0
        sign = self._ordering_sign(occupied, key)
        occupied[key] = False
        return sign

    def create_quark(self, mode: QuarkMode) -> int:
        return self._create(self.quark_occupied, mode)

    def annihilate_quark(self, mode: QuarkMode) -> int:
        return self._annihilate(self.quark_occupied, mode)

    def create_antiquark(self, mode: QuarkMode) -> int:
        return self._create(self.antiquark_occupied, mode)

    def annihilate_antiquark(self, mode: QuarkMode) -> int:
        return self._annihilate(self.antiquark_occupied, mode)

    def is_occupied(self, mode: QuarkMode) -> bool:
        return bool(self.quark_occupied.get(mode.key))

    def occupation_count(self) -> int:
        return sum(1 for v in self.quark_occupied.values() if v) + sum(
            1 for v in self.antiquark_occupied.values() if v
        )
