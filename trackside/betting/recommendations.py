"""Tiered single-race bet recommendations.

Each tier gets a fixed menu of bet shapes, parameterised by the tier's
base stake:

    Tier 1  WIN (2x) / PLACE / EXACTA BOX top 2-3 / EXACTA KEY over 4 /
            TRIFECTA BOX top 3
    Tier 2  WIN / EXACTA KEY over chalk / EXACTA under chalk / QUINELLA /
            TRIFECTA BOX with chalk / PLACE when overlay > 20%
    Tier 3  WIN / PLACE (2x) / EXACTA KEY over 5 / TRIFECTA WHEEL /
            SUPERFECTA BOX 10c

Exotics pass the field-size guard or are recorded as suppressed. WIN
stakes are Kelly-sized when the bankroll has Kelly switched on. Extreme
overlays are flagged as special bets ("nuclear", "diamond") and kept out
of the tier buckets.

Potential returns are estimates from ``trackside.betting.returns``.
"""

import logging
from dataclasses import dataclass

from trackside.betting.combinatorics import (
    BetKind,
    can_offer,
    combinations,
    cost,
    selection_depth,
    selection_keys,
)
from trackside.betting.instructions import render_instruction
from trackside.betting.kelly import KellyResult, format_kelly_result, size_for_bankroll
from trackside.betting.returns import ReturnRange, estimate_return
from trackside.betting.tiers import TIER_PROFILES, TierProfile, group_by_tier
from trackside.config import Settings, get_settings
from trackside.models import BankrollState, HorseCandidate
from trackside.odds import overlay_percent

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

TRIFECTA_UNIT = 1.0
TRIFECTA_WHEEL_UNIT = 0.50
SUPERFECTA_UNIT = 0.10
EXACTA_BOX_MAX = 3            # tier-1 horses in the exacta box
TIER1_KEY_WIDTH = 4           # horses under the tier-1 exacta key
TIER3_KEY_WIDTH = 5           # horses under the value-bomb exacta key
TIER2_PLACE_MIN_OVERLAY = 20.0

# Special categories
NUCLEAR = "nuclear"
DIAMOND = "diamond"
NUCLEAR_MIN_ODDS = 20.0       # odds-to-1
NUCLEAR_MIN_OVERLAY = 50.0
NUCLEAR_STAKE = 5.0
DIAMOND_MIN_OVERLAY = 150.0
DIAMOND_STAKE = 4.0
DIAMOND_LOW_STAKE = 3.0       # when the model gives it under 15%
DIAMOND_LOW_PROBABILITY = 0.15


# ──────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class BetCandidate:
    """A proposed wager, ready to read out at the window."""

    kind: BetKind
    horses: tuple[int, ...]          # program numbers in role order
    unit_stake: float
    combinations: int
    total_cost: float
    potential_return: ReturnRange    # estimate, not a guaranteed payout
    confidence: int                  # 0-100
    edge_percent: float              # of the lead horse
    overlay_percent: float           # of the lead horse
    instruction: str
    description: str = ""
    tier: int | None = None
    special_category: str | None = None
    kelly: KellyResult | None = None


@dataclass(frozen=True)
class SuppressedBet:
    kind: BetKind
    horses: tuple[int, ...]
    reason: str


@dataclass(frozen=True)
class TierRecommendation:
    tier: int
    name: str
    description: str
    expected_hit_rate: float
    bets: tuple[BetCandidate, ...]
    total_investment: float
    potential_return: ReturnRange    # summed estimates of the tier's bets


@dataclass(frozen=True)
class RecommendationSet:
    race_number: int | None
    tiers: tuple[TierRecommendation, ...] = ()
    special: tuple[BetCandidate, ...] = ()
    suppressed: tuple[SuppressedBet, ...] = ()
    total_investment: float = 0.0
    warnings: tuple[str, ...] = ()

    @property
    def all_bets(self) -> list[BetCandidate]:
        bets = [b for t in self.tiers for b in t.bets]
        return bets + list(self.special)

    def tier(self, number: int) -> TierRecommendation | None:
        for t in self.tiers:
            if t.tier == number:
                return t
        return None


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _edge_and_overlay(horse: HorseCandidate) -> tuple[float, float]:
    """(edge %, overlay %) of a horse at its posted odds; zeros if unpriced."""
    odds = horse.effective_odds
    if not odds:
        return 0.0, 0.0
    p = horse.probability
    b = odds - 1.0
    return (b * p - (1 - p)) * 100.0, overlay_percent(p, odds)


def _confidence(profile: TierProfile, lead: HorseCandidate) -> int:
    blended = profile.confidence * 0.5 + lead.probability * 100.0 * 0.5
    return int(round(max(0.0, min(100.0, blended))))


class _RaceBets:
    """Accumulates candidates and suppressions for one race."""

    def __init__(
        self,
        starters: list[HorseCandidate],
        race_number: int | None,
        bankroll: BankrollState | None,
        settings: Settings,
    ):
        self.starters = starters
        self.race_number = race_number
        self.bankroll = bankroll
        self.settings = settings
        self.suppressed: list[SuppressedBet] = []

    @property
    def field_size(self) -> int:
        return len(self.starters)

    def make(
        self,
        kind: BetKind,
        horses: list[HorseCandidate],
        unit_stake: float,
        profile: TierProfile | None,
        description: str,
        special: str | None = None,
        kelly_result: KellyResult | None = None,
        confidence: int | None = None,
    ) -> BetCandidate | None:
        numbers = tuple(h.program_number for h in horses)
        if not can_offer(kind, len(horses), self.field_size):
            reason = f"Field too small: {self.field_size} starters for {kind.label} of {len(horses)}"
            logger.debug(f"R{self.race_number} suppressed {kind.label} {numbers}: {reason}")
            self.suppressed.append(SuppressedBet(kind, numbers, reason))
            return None

        depth = selection_depth(kind, len(horses), self.field_size)
        keys = selection_keys(kind, len(horses))
        count = combinations(kind, depth, keys)
        total = cost(kind, depth, unit_stake, keys)
        lead = horses[0]
        edge, overlay = _edge_and_overlay(lead)
        if confidence is None:
            confidence = _confidence(profile, lead) if profile else 50
        return BetCandidate(
            kind=kind,
            horses=numbers,
            unit_stake=unit_stake,
            combinations=count,
            total_cost=total,
            potential_return=estimate_return(kind, total, [h.odds_to_one for h in horses]),
            confidence=confidence,
            edge_percent=round(edge, 1),
            overlay_percent=round(overlay, 1),
            instruction=render_instruction(kind, numbers, unit_stake, self.race_number),
            description=description,
            tier=profile.tier if profile else None,
            special_category=special,
            kelly=kelly_result,
        )

    def win(self, lead: HorseCandidate, stake: float, profile: TierProfile, description: str) -> BetCandidate | None:
        """WIN bet, Kelly-sized when the bankroll asks for it."""
        if self.bankroll is None or not self.bankroll.kelly.enabled:
            return self.make(BetKind.WIN, [lead], stake, profile, description)

        result = size_for_bankroll(
            lead.probability,
            lead.effective_odds,
            self.bankroll,
            settings=self.settings,
        )
        if not result.should_bet:
            logger.debug(f"R{self.race_number} Kelly passed on #{lead.program_number}: {result.reason}")
            self.suppressed.append(
                SuppressedBet(BetKind.WIN, (lead.program_number,), f"Kelly: {result.reason}")
            )
            return None
        return self.make(
            BetKind.WIN, [lead], result.optimal_bet_size, profile,
            f"{description} ({format_kelly_result(result)})",
            kelly_result=result,
        )


# ──────────────────────────────────────────────
# Tier menus
# ──────────────────────────────────────────────

def _tier1_bets(rb: _RaceBets, tier1: list[HorseCandidate], contenders: list[HorseCandidate]) -> list:
    profile = TIER_PROFILES[1]
    base = profile.base_stake
    lead = tier1[0]
    others = [h for h in contenders if h.program_number != lead.program_number]
    name = f"#{lead.program_number} {lead.name}"

    bets = [
        rb.win(lead, base * 2, profile, f"{name} to win; top-rated"),
        rb.make(BetKind.PLACE, [lead], base, profile, f"{name} to place; safety net"),
    ]
    if len(tier1) >= 2:
        box = tier1[:EXACTA_BOX_MAX]
        bets.append(rb.make(BetKind.EXACTA_BOX, box, base / 2, profile, "Box the top tier-1 horses"))
    if others:
        bets.append(rb.make(
            BetKind.EXACTA_KEY, [lead] + others[:TIER1_KEY_WIDTH], base / 2, profile,
            f"{name} on top of the main contenders",
        ))
    bets.append(rb.make(
        BetKind.TRIFECTA_BOX, contenders[:3], TRIFECTA_UNIT, profile, "Top three in any order",
    ))
    return bets


def _tier2_bets(
    rb: _RaceBets,
    tier2: list[HorseCandidate],
    tier1: list[HorseCandidate],
    contenders: list[HorseCandidate],
) -> list:
    profile = TIER_PROFILES[2]
    base = profile.base_stake
    lead = tier2[0]
    chalk = tier1[:2]
    name = f"#{lead.program_number} {lead.name}"

    bets = [rb.win(lead, base, profile, f"{name} to win; upset price")]
    if chalk:
        bets.append(rb.make(
            BetKind.EXACTA_KEY, [lead] + chalk, base / 2, profile,
            f"{name} beats the favourites",
        ))
        bets.append(rb.make(
            BetKind.EXACTA_KEY_UNDER, [lead] + chalk, base / 2, profile,
            f"{name} runs second to the favourites",
        ))
        bets.append(rb.make(
            BetKind.QUINELLA, [lead, chalk[0]], base, profile,
            f"{name} and #{chalk[0].program_number} fill the top two",
        ))

    box = [lead] + chalk
    for h in contenders:
        if len(box) >= 3:
            break
        if h not in box:
            box.append(h)
    bets.append(rb.make(BetKind.TRIFECTA_BOX, box, TRIFECTA_UNIT, profile, f"{name} mixed in with the chalk"))

    _, overlay = _edge_and_overlay(lead)
    if overlay > TIER2_PLACE_MIN_OVERLAY:
        bets.append(rb.make(BetKind.PLACE, [lead], base, profile, f"{name} to place; {overlay:.0f}% overlay"))
    return bets


def _tier3_bets(
    rb: _RaceBets,
    tier3: list[HorseCandidate],
    contenders: list[HorseCandidate],
) -> list:
    profile = TIER_PROFILES[3]
    base = profile.base_stake
    bomb = None
    for h in tier3:
        _, overlay = _edge_and_overlay(h)
        if overlay >= rb.settings.tier3_min_overlay:
            bomb = h
            break
    if bomb is None:
        return []

    others = [h for h in contenders if h.program_number != bomb.program_number]
    name = f"#{bomb.program_number} {bomb.name}"
    bets = [
        rb.win(bomb, base, profile, f"{name} to win; value bomb"),
        rb.make(BetKind.PLACE, [bomb], base * 2, profile, f"{name} to place"),
    ]
    if others:
        bets.append(rb.make(
            BetKind.EXACTA_KEY, [bomb] + others[:TIER3_KEY_WIDTH], 1.0, profile,
            f"{name} on top of the contenders",
        ))
    bets.append(rb.make(BetKind.TRIFECTA_WHEEL, [bomb], TRIFECTA_WHEEL_UNIT, profile, f"{name} on top with all"))
    bets.append(rb.make(
        BetKind.SUPERFECTA_BOX, [bomb] + others[:3], SUPERFECTA_UNIT, profile,
        f"{name} boxed with the top three",
    ))
    return bets


def _special_bets(rb: _RaceBets) -> list[BetCandidate]:
    """Nuclear longshots and diamond overlays, outside the tier buckets."""
    bets = []
    for h in rb.starters:
        _, overlay = _edge_and_overlay(h)
        if h.odds_to_one >= NUCLEAR_MIN_ODDS and overlay >= NUCLEAR_MIN_OVERLAY:
            bets.append(rb.make(
                BetKind.WIN, [h], NUCLEAR_STAKE, None,
                f"Nuclear longshot #{h.program_number} {h.name} ({overlay:.0f}% overlay)",
                special=NUCLEAR, confidence=_confidence(TIER_PROFILES[3], h),
            ))
        elif overlay >= DIAMOND_MIN_OVERLAY:
            stake = DIAMOND_LOW_STAKE if h.probability < DIAMOND_LOW_PROBABILITY else DIAMOND_STAKE
            conf = _confidence(TIER_PROFILES[2], h)
            bets.append(rb.make(
                BetKind.WIN, [h], stake, None,
                f"Diamond overlay #{h.program_number} {h.name} ({overlay:.0f}%)",
                special=DIAMOND, confidence=conf,
            ))
            bets.append(rb.make(
                BetKind.PLACE, [h], stake, None,
                f"Place saver on #{h.program_number}",
                special=DIAMOND, confidence=conf,
            ))
    return [b for b in bets if b is not None]


def _tier_summary(profile: TierProfile, bets: list) -> TierRecommendation:
    kept = tuple(b for b in bets if b is not None)
    total = round(sum(b.total_cost for b in kept), 2)
    potential = ReturnRange()
    for b in kept:
        potential = potential + b.potential_return
    return TierRecommendation(
        tier=profile.tier,
        name=profile.name,
        description=profile.description,
        expected_hit_rate=profile.expected_hit_rate,
        bets=kept,
        total_investment=total,
        potential_return=potential,
    )


# ──────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────

def build_candidate(
    kind: BetKind,
    horses,
    unit_stake: float,
    field,
    race_number: int | None = None,
    tier: int | None = None,
    settings: Settings | None = None,
) -> BetCandidate | None:
    """Cost and render one bet shape over ``horses`` (role order).

    ``field`` is the race's HorseCandidate list; scratched horses don't
    count as starters. Returns None when the field-size guard refuses it.
    """
    starters = [h for h in field if not h.scratched]
    rb = _RaceBets(starters, race_number, None, settings or get_settings())
    profile = TIER_PROFILES.get(tier) if tier else None
    return rb.make(kind, list(horses), unit_stake, profile, kind.label)


def generate_recommendations(
    horses,
    bankroll: BankrollState | None = None,
    race_number: int | None = None,
    settings: Settings | None = None,
) -> RecommendationSet:
    """Build the tiered bet menu for one race.

    Args:
        horses: HorseCandidate list for the race (scratched ones are ignored).
        bankroll: Optional bankroll state; enables Kelly WIN sizing and the
            remaining-budget check.
        race_number: Prefixes instructions with "Race N, " when given.

    Returns:
        RecommendationSet with one bucket per non-empty tier.
    """
    cfg = settings or get_settings()
    starters = [h for h in horses if not h.scratched]
    if not starters:
        return RecommendationSet(race_number=race_number, warnings=("No non-scratched starters",))

    contenders = sorted(starters, key=lambda h: (-h.score, h.program_number))
    groups = group_by_tier(starters, cfg)
    rb = _RaceBets(contenders, race_number, bankroll, cfg)

    tiers = []
    if groups[1]:
        tiers.append(_tier_summary(TIER_PROFILES[1], _tier1_bets(rb, groups[1], contenders)))
    if groups[2]:
        tiers.append(_tier_summary(TIER_PROFILES[2], _tier2_bets(rb, groups[2], groups[1], contenders)))
    if groups[3]:
        tier3 = _tier_summary(TIER_PROFILES[3], _tier3_bets(rb, groups[3], contenders))
        if tier3.bets:
            tiers.append(tier3)
    tiers = [t for t in tiers if t.bets]
    special = _special_bets(rb)

    total = round(sum(t.total_investment for t in tiers) + sum(b.total_cost for b in special), 2)
    warnings = []
    if bankroll is not None and total > bankroll.remaining_budget:
        warnings.append(
            f"Full menu costs ${total:.2f}, more than the ${bankroll.remaining_budget:.2f} left today"
        )
    if not tiers and not special:
        warnings.append("No bets passed the menu rules")

    logger.info(
        f"R{race_number}: {sum(len(t.bets) for t in tiers)} tier bets, "
        f"{len(special)} special, {len(rb.suppressed)} suppressed, ${total:.2f}"
    )
    return RecommendationSet(
        race_number=race_number,
        tiers=tuple(tiers),
        special=tuple(special),
        suppressed=tuple(rb.suppressed),
        total_investment=total,
        warnings=tuple(warnings),
    )
