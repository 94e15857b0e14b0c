"""Combination counts and costs for straight, box, key and wheel bets.

    straight  1
    box       P(n, k)
    key       P(n-1, k-1)      n counts the key horse
    wheel     m x P(n-m, k-1)  n is the field size, m key horses

A structure that cannot fill its k distinct finishing positions has zero
combinations and must not be offered at all (see ``can_offer``).
"""

import logging
import math
from enum import Enum

logger = logging.getLogger(__name__)

# Finishing positions each pool pays on
POSITIONS = {
    "win": 1,
    "place": 1,
    "show": 1,
    "quinella": 2,
    "exacta": 2,
    "trifecta": 3,
    "superfecta": 4,
}

# Default unit stake per combination, by pool
UNIT_STAKES = {
    "win": 2.0,
    "place": 2.0,
    "show": 2.0,
    "quinella": 2.0,
    "exacta": 2.0,
    "trifecta": 1.0,
    "superfecta": 0.10,
}


class BetKind(Enum):
    """Bet type as (pool, structure)."""

    WIN = ("win", "straight")
    PLACE = ("place", "straight")
    SHOW = ("show", "straight")
    QUINELLA = ("quinella", "straight")
    EXACTA = ("exacta", "straight")
    EXACTA_BOX = ("exacta", "box")
    EXACTA_KEY = ("exacta", "key")
    EXACTA_KEY_UNDER = ("exacta", "key_under")
    EXACTA_WHEEL = ("exacta", "wheel")
    TRIFECTA = ("trifecta", "straight")
    TRIFECTA_BOX = ("trifecta", "box")
    TRIFECTA_KEY = ("trifecta", "key")
    TRIFECTA_WHEEL = ("trifecta", "wheel")
    SUPERFECTA = ("superfecta", "straight")
    SUPERFECTA_BOX = ("superfecta", "box")
    SUPERFECTA_KEY = ("superfecta", "key")
    SUPERFECTA_WHEEL = ("superfecta", "wheel")

    @property
    def family(self) -> str:
        return self.value[0]

    @property
    def structure(self) -> str:
        return self.value[1]

    @property
    def positions(self) -> int:
        return POSITIONS[self.family]

    @property
    def is_single(self) -> bool:
        return self.family in ("win", "place", "show")

    @property
    def is_keyed(self) -> bool:
        return self.structure in ("key", "key_under")

    @property
    def default_unit_stake(self) -> float:
        return UNIT_STAKES[self.family]

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


def permutations(n: int, r: int) -> int:
    """P(n, r) = n! / (n-r)!, zero when r > n."""
    if n < 0 or r < 0 or r > n:
        return 0
    return math.perm(n, r)


def combinations(kind: BetKind, field_depth: int, keys: int = 1) -> int:
    """Number of tickets a bet structure covers.

    ``field_depth`` is the number of selected horses, except for wheels
    where it is the field size that "ALL" stands in for. ``keys`` is the
    number of key horses on top of a wheel; each key runs with every
    ordering of the rest of the field.
    """
    k = kind.positions
    n = int(field_depth)
    if n < k:
        return 0
    structure = kind.structure
    if structure == "straight":
        return 1
    if structure == "box":
        return permutations(n, k)
    if structure in ("key", "key_under"):
        return permutations(n - 1, k - 1)
    if structure == "wheel":
        if keys < 1:
            return 0
        return keys * permutations(n - keys, k - 1)
    return 0


def cost(kind: BetKind, field_depth: int, unit_stake: float | None = None, keys: int = 1) -> float:
    """Total outlay: combinations x unit stake, in cents precision."""
    unit = kind.default_unit_stake if unit_stake is None else unit_stake
    if unit <= 0:
        return 0.0
    return round(combinations(kind, field_depth, keys) * unit, 2)


def selection_depth(kind: BetKind, selection_size: int, field_size: int) -> int:
    """The depth ``combinations`` expects for a concrete selection."""
    return field_size if kind.structure == "wheel" else selection_size


def selection_keys(kind: BetKind, selection_size: int) -> int:
    """Key horses in a selection: all of them for a wheel, otherwise 1."""
    return selection_size if kind.structure == "wheel" else 1


def can_offer(kind: BetKind, selection_size: int, starters: int) -> bool:
    """Field-size guard: may this structure be generated at all?

    Needs at least k non-scratched starters, a selection that fits the
    structure, and a non-zero combination count. A wheel's selection is
    its key horses, and the field must still fill the open positions
    under them.
    """
    k = kind.positions
    if starters < k:
        return False
    if kind.structure == "wheel":
        if selection_size < 1 or selection_size >= starters:
            return False
    elif kind.structure == "straight":
        if selection_size != k:
            return False
    elif selection_size < k or selection_size > starters:
        return False
    depth = selection_depth(kind, selection_size, starters)
    return combinations(kind, depth, selection_keys(kind, selection_size)) > 0


def max_box_size(kind: BetKind, budget: float, unit_stake: float | None = None, limit: int = 12) -> int:
    """Largest box that fits inside ``budget`` (0 if even the smallest doesn't)."""
    if kind.structure != "box":
        return 0
    best = 0
    for n in range(kind.positions, limit + 1):
        if cost(kind, n, unit_stake) <= budget:
            best = n
        else:
            break
    return best
