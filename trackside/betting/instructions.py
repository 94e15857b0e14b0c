"""Window instructions: what to say to the teller, verbatim.

The phrasing is copied as-is by users, so the formats below are stable:

    $2 to WIN on number 5
    $2 QUINELLA 3, 7
    $2 EXACTA 3 OVER 7
    $1 EXACTA BOX 3, 5, 7
    $1 EXACTA KEY 3 WITH 5, 7
    $1 EXACTA 5, 7 WITH 3              (key underneath)
    $1 TRIFECTA WHEEL 3 WITH ALL WITH ALL
    $1 EXACTA WHEEL 3, 5 WITH ALL      (two key horses)
    10 cent SUPERFECTA BOX 1, 2, 3, 4

An optional "Race N, " prefix leads. ``parse_instruction`` inverts
``render_instruction``.
"""

import logging
import re
from dataclasses import dataclass

from trackside.betting.combinatorics import BetKind

logger = logging.getLogger(__name__)

_NUMS = r"\d+(?:, \d+)*"
_POOL = r"(EXACTA|TRIFECTA|SUPERFECTA)"

_PREFIX_RE = re.compile(r"^(?:Race (\d+), )?(\$\d+(?:\.\d{1,2})?|\d+ cent) (.+)$")
_SINGLE_RE = re.compile(r"^to (WIN|PLACE|SHOW) on number (\d+)$")
_QUINELLA_RE = re.compile(rf"^QUINELLA ({_NUMS})$")
_BOX_RE = re.compile(rf"^{_POOL} BOX ({_NUMS})$")
_KEY_RE = re.compile(rf"^{_POOL} KEY (\d+) WITH ({_NUMS})$")
_WHEEL_RE = re.compile(rf"^{_POOL} WHEEL ({_NUMS})((?: WITH ALL)+)$")
_KEY_UNDER_RE = re.compile(rf"^EXACTA ({_NUMS}) WITH (\d+)$")
_STRAIGHT_RE = re.compile(rf"^{_POOL} (\d+(?: OVER \d+)+)$")


@dataclass(frozen=True)
class ParsedInstruction:
    kind: BetKind
    stake: float
    horses: tuple[int, ...]
    race_number: int | None = None


def format_amount(amount: float) -> str:
    """$2, $2.50, or "50 cent" for sub-dollar stakes (after rounding to cents)."""
    cents = int(round(amount * 100))
    if 0 < cents < 100:
        return f"{cents} cent"
    if cents % 100 == 0:
        return f"${cents // 100}"
    return f"${cents / 100:.2f}"


def _join(numbers) -> str:
    return ", ".join(str(n) for n in numbers)


def render_instruction(
    kind: BetKind,
    horses,
    stake: float,
    race_number: int | None = None,
) -> str:
    """Render the exact words to say at the window.

    ``horses`` is in role order: key horse first for key and key-under
    bets, every key horse for wheels, finishing order for straight exotics.
    """
    horses = [int(h) for h in horses]
    pool = kind.family.upper()
    amount = format_amount(stake)
    structure = kind.structure

    if kind.is_single:
        body = f"to {pool} on number {horses[0]}"
    elif kind is BetKind.QUINELLA:
        body = f"QUINELLA {_join(horses)}"
    elif structure == "straight":
        body = f"{pool} " + " OVER ".join(str(h) for h in horses)
    elif structure == "box":
        body = f"{pool} BOX {_join(horses)}"
    elif structure == "key":
        body = f"{pool} KEY {horses[0]} WITH {_join(horses[1:])}"
    elif structure == "key_under":
        body = f"{pool} {_join(horses[1:])} WITH {horses[0]}"
    else:
        body = f"{pool} WHEEL {_join(horses)}" + " WITH ALL" * (kind.positions - 1)

    prefix = f"Race {race_number}, " if race_number is not None else ""
    return f"{prefix}{amount} {body}"


def _parse_amount(token: str) -> float:
    if token.endswith(" cent"):
        return int(token.split()[0]) / 100.0
    return float(token.lstrip("$"))


def _numbers(text: str) -> tuple[int, ...]:
    return tuple(int(n) for n in re.findall(r"\d+", text))


# (pattern, match -> (kind, horses in role order)); order matters, the
# straight-exotic pattern is the loosest so it goes last
_PATTERNS = [
    (_SINGLE_RE, lambda m: (BetKind[m.group(1)], (int(m.group(2)),))),
    (_QUINELLA_RE, lambda m: (BetKind.QUINELLA, _numbers(m.group(1)))),
    (_BOX_RE, lambda m: (BetKind[f"{m.group(1)}_BOX"], _numbers(m.group(2)))),
    (_KEY_RE, lambda m: (BetKind[f"{m.group(1)}_KEY"], (int(m.group(2)),) + _numbers(m.group(3)))),
    (_WHEEL_RE, lambda m: (BetKind[f"{m.group(1)}_WHEEL"], _numbers(m.group(2)))),
    (_KEY_UNDER_RE, lambda m: (BetKind.EXACTA_KEY_UNDER, (int(m.group(2)),) + _numbers(m.group(1)))),
    (_STRAIGHT_RE, lambda m: (BetKind[m.group(1)], _numbers(m.group(2)))),
]


def parse_instruction(text: str) -> ParsedInstruction | None:
    """Recover bet kind, stake and horses from a rendered instruction."""
    m = _PREFIX_RE.match(text.strip())
    if not m:
        logger.debug(f"Not a window instruction: {text!r}")
        return None
    race = int(m.group(1)) if m.group(1) else None
    stake = _parse_amount(m.group(2))
    body = m.group(3)

    for pattern, build in _PATTERNS:
        mm = pattern.match(body)
        if mm:
            kind, horses = build(mm)
            return ParsedInstruction(kind=kind, stake=stake, horses=horses, race_number=race)

    logger.debug(f"Unrecognised bet phrasing: {body!r}")
    return None


def parse_instruction_numbers(text: str) -> tuple[int, ...]:
    """Just the program numbers, in role order (empty if unrecognised)."""
    parsed = parse_instruction(text)
    return parsed.horses if parsed else ()


def render_sequence_script(
    bet_label: str,
    race_numbers,
    legs,
    stake: float,
) -> str:
    """Multi-line script for a multi-race ticket.

    ``legs`` is a sequence of horse-number collections, one per race;
    ``stake`` is the per-combination denomination called at the window.
    """
    races = list(race_numbers)
    lines = [f"{format_amount(stake)} {bet_label}, races {races[0]} through {races[-1]}:"]
    for i, horses in enumerate(legs, 1):
        numbers = sorted(int(h) for h in horses)
        noun = "number" if len(numbers) == 1 else "numbers"
        lines.append(f" Leg {i}: {noun} {_join(numbers)}")
    return "\n".join(lines)
