"""Multi-race ticket construction and budget fitting.

A ticket is built leg by leg from an opportunity:

  - SINGLE the leg's value play when it clears the single threshold and
    the risk style allows singles.
  - Otherwise SPREAD: value-play horse first, then the next-best ranked
    contenders (top 6), bounded by the risk style's min/max.

Leg horses are kept in selection-priority order, so the last horse of a
leg is always its weakest pick. Budget fitting trims those from the
widest SPREAD leg until the ticket fits; SINGLE legs are never touched.
"""

import logging
from dataclasses import replace

from trackside.config import Settings, get_settings
from trackside.models import BankrollState, HorseCandidate, RaceAnalysis
from trackside.multirace.opportunities import is_singleable
from trackside.multirace.payouts import estimate_payout
from trackside.multirace.types import (
    RISK_STYLE_RULES,
    LegStrategy,
    MultiRaceLeg,
    MultiRaceOpportunity,
    MultiRaceTicket,
    PayoutRange,
    RiskStyle,
)

logger = logging.getLogger(__name__)

MAX_HORSE_RANK = 6                # contenders are drawn from the top 6
HIGH_CONFIDENCE_MAX_COMBOS = 50   # with 2+ value plays
MEDIUM_CONFIDENCE_MAX_COMBOS = 30


# ──────────────────────────────────────────────
# Leg selection
# ──────────────────────────────────────────────

def _horse_odds(horse: HorseCandidate, race: RaceAnalysis) -> float:
    odds = horse.odds_to_one
    vp = race.value.primary_value_play
    if not odds and vp is not None and vp.program_number == horse.program_number:
        odds = vp.odds_to_one
    return odds


def _value_horse(race: RaceAnalysis) -> HorseCandidate | None:
    """The race's value-play horse if it is still a starter."""
    vp = race.value.primary_value_play
    if not race.value.has_value_play or vp is None:
        return None
    for h in race.starters:
        if h.program_number == vp.program_number:
            return h
    logger.debug(f"R{race.race_number}: value play #{vp.program_number} not among starters")
    return None


def _leg_reasoning(strategy: LegStrategy, race: RaceAnalysis, value: HorseCandidate | None, count: int) -> str:
    vp = race.value.primary_value_play
    if strategy is LegStrategy.SINGLE and value is not None and vp is not None:
        return f"{value.name} is a strong value play at +{vp.edge_percent:.0f}% edge. Singling for max payout."
    if value is not None:
        others = count - 1
        return f"Value play + {others} contender{'s' if others != 1 else ''} for safety."
    if count == 2:
        return "Using top 2 contenders."
    return f"Competitive race, spreading to {count} contenders."


def build_leg(
    race: RaceAnalysis,
    risk_style: RiskStyle | str,
    settings: Settings | None = None,
) -> MultiRaceLeg | None:
    """Pick the horses for one race; None if the race has no starters or the style is unknown."""
    cfg = settings or get_settings()
    try:
        rules = RISK_STYLE_RULES[RiskStyle(risk_style)]
    except ValueError:
        logger.warning(f"R{race.race_number}: unknown risk style {risk_style!r}")
        return None
    ranked = race.ranked_starters()
    if not ranked:
        return None

    value = _value_horse(race)
    single = rules.allow_singles and is_singleable(race, cfg)

    if single:
        pick = value or ranked[0]
        picks = [pick]
        strategy = LegStrategy.SINGLE
    else:
        strategy = LegStrategy.SPREAD
        picks = [value] if value else []
        contenders = ranked[:MAX_HORSE_RANK]
        for h in contenders:
            if len(picks) >= rules.max_horses:
                break
            if h not in picks:
                picks.append(h)
        # Reach the style minimum from deeper in the field if needed
        for h in ranked[MAX_HORSE_RANK:]:
            if len(picks) >= rules.min_horses:
                break
            if h not in picks:
                picks.append(h)

    return MultiRaceLeg(
        race_number=race.race_number,
        horses=tuple(h.program_number for h in picks),
        strategy=strategy,
        has_value_play=value is not None and value in picks,
        value_play_number=value.program_number if value else None,
        odds=tuple(_horse_odds(h, race) for h in picks),
        reasoning=_leg_reasoning(strategy, race, value if value in picks else None, len(picks)),
    )


# ──────────────────────────────────────────────
# Ticket-level helpers
# ──────────────────────────────────────────────

def _value_play_count(legs) -> int:
    return sum(1 for leg in legs if leg.has_value_play and leg.value_play_number in leg.horses)


def ticket_confidence(value_plays: int, combinations: int) -> str:
    if value_plays >= 2 and combinations <= HIGH_CONFIDENCE_MAX_COMBOS:
        return "HIGH"
    if value_plays >= 1 or combinations <= MEDIUM_CONFIDENCE_MAX_COMBOS:
        return "MEDIUM"
    return "LOW"


def _explanation(ticket: MultiRaceTicket) -> str:
    label = ticket.config.label
    combos = ticket.combinations
    if ticket.value_play_count >= 2:
        return (
            f"This {label} has {ticket.value_play_count} value plays in the sequence. "
            f"Strong opportunity with {combos} combinations."
        )
    if ticket.value_play_count == 1:
        leg = next(lg for lg in ticket.legs if lg.has_value_play)
        return f"Value play in Race {leg.race_number}. {combos} combinations across {len(ticket.legs)} races."
    return f"{combos} combinations. Spreading multiple races for coverage."


def _refresh(ticket: MultiRaceTicket) -> MultiRaceTicket:
    """Recompute the derived estimates after the legs changed."""
    if not ticket.legs:
        return ticket
    plays = _value_play_count(ticket.legs)
    refreshed = replace(
        ticket,
        value_play_count=plays,
        confidence=ticket_confidence(plays, ticket.combinations),
        potential_payout=estimate_payout(ticket.bet_type, ticket.legs),
    )
    return replace(refreshed, explanation=_explanation(refreshed))


def _invalid(opportunity: MultiRaceOpportunity, risk_style: RiskStyle | None, warning: str) -> MultiRaceTicket:
    logger.warning(f"{opportunity.bet_type.value} R{opportunity.start_race}-{opportunity.end_race}: {warning}")
    return MultiRaceTicket(
        bet_type=opportunity.bet_type,
        legs=(),
        cost_per_combination=opportunity.config.cost_per_combination,
        potential_payout=PayoutRange(0.0, 0.0),
        confidence="LOW",
        quality=opportunity.quality,
        value_play_count=0,
        risk_style=risk_style,
        is_valid=False,
        warnings=(warning,),
    )


# ──────────────────────────────────────────────
# Budget fitting
# ──────────────────────────────────────────────

def _drop_last(leg: MultiRaceLeg) -> MultiRaceLeg:
    return replace(
        leg,
        horses=leg.horses[:-1],
        odds=leg.odds[:-1] if leg.odds else (),
    )


def fit_to_budget(ticket: MultiRaceTicket, budget: float) -> MultiRaceTicket:
    """Trim the widest SPREAD legs until the ticket costs no more than ``budget``.

    Each step drops the lowest-priority horse of the SPREAD leg with the
    most horses (earliest race on ties). SINGLE legs are never trimmed.
    Bounded by the total number of horses on the ticket. A ticket that
    still doesn't fit comes back with ``is_valid=False`` and a warning.
    """
    if budget is None:
        return ticket
    if not isinstance(budget, (int, float)) or budget != budget or budget < 0:
        return replace(ticket, is_valid=False, warnings=ticket.warnings + (f"Invalid budget {budget!r}",))
    if not ticket.legs or ticket.total_cost <= budget:
        return ticket

    legs = list(ticket.legs)
    max_steps = sum(leg.size for leg in legs)
    steps = 0
    trimmed = ticket
    while steps < max_steps and trimmed.total_cost > budget:
        spreads = [
            i for i, leg in enumerate(legs)
            if leg.strategy is LegStrategy.SPREAD and leg.size > 1
        ]
        if not spreads:
            break
        widest = max(spreads, key=lambda i: (legs[i].size, -i))
        legs[widest] = _drop_last(legs[widest])
        steps += 1
        trimmed = replace(ticket, legs=tuple(legs))

    result = _refresh(replace(trimmed, was_trimmed=ticket.was_trimmed or steps > 0))
    logger.debug(
        f"{ticket.bet_type.value}: trimmed {steps} horses, ${ticket.total_cost:.2f} -> ${result.total_cost:.2f}"
    )
    if result.total_cost > budget:
        warning = (
            f"Ticket costs ${result.total_cost:.2f} even at minimum spread; "
            f"budget is ${budget:.2f}"
        )
        logger.warning(f"{ticket.bet_type.value} R{ticket.race_numbers[0]}: {warning}")
        return replace(result, is_valid=False, warnings=result.warnings + (warning,))
    return result


# ──────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────

def build_ticket(
    opportunity: MultiRaceOpportunity,
    races,
    risk_style: RiskStyle | str = RiskStyle.BALANCED,
    budget: float | None = None,
    bankroll: BankrollState | None = None,
    settings: Settings | None = None,
) -> MultiRaceTicket:
    """Build a costed ticket for an opportunity.

    Args:
        opportunity: Window found by ``find_opportunities``.
        races: RaceAnalysis list covering (at least) the window's races.
        risk_style: safe / balanced / aggressive.
        budget: Spend cap; defaults to the bankroll's remaining budget when
            a bankroll is given, otherwise no cap.

    Returns:
        MultiRaceTicket; ``is_valid=False`` with warnings when the risk style
        is unknown, a race is missing or the budget can't be met.
    """
    cfg = settings or get_settings()
    try:
        style = RiskStyle(risk_style)
    except ValueError:
        return _invalid(opportunity, None, f"Unknown risk style {risk_style!r}")
    race_map = {r.race_number: r for r in races}

    legs = []
    for rn in opportunity.race_numbers:
        race = race_map.get(rn)
        if race is None:
            return _invalid(opportunity, style, f"Missing race data for R{rn}")
        leg = build_leg(race, style, cfg)
        if leg is None:
            return _invalid(opportunity, style, f"No starters left in R{rn}")
        legs.append(leg)

    ticket = _refresh(MultiRaceTicket(
        bet_type=opportunity.bet_type,
        legs=tuple(legs),
        cost_per_combination=opportunity.config.cost_per_combination,
        potential_payout=PayoutRange(0.0, 0.0),
        confidence="LOW",
        quality=opportunity.quality,
        value_play_count=0,
        risk_style=style,
    ))

    if budget is None and bankroll is not None:
        budget = bankroll.remaining_budget
    ticket = fit_to_budget(ticket, budget)
    logger.info(
        f"{ticket.config.label} R{opportunity.start_race}-{opportunity.end_race} ({style.value}): "
        f"{ticket.combination_math}, ${ticket.total_cost:.2f}, {ticket.confidence}"
    )
    return ticket


def build_all_tickets(
    opportunities,
    races,
    risk_style: RiskStyle | str = RiskStyle.BALANCED,
    budget: float | None = None,
    bankroll: BankrollState | None = None,
    settings: Settings | None = None,
) -> list[MultiRaceTicket]:
    """One ticket per opportunity, each fitted to the same budget."""
    return [
        build_ticket(opp, races, risk_style, budget=budget, bankroll=bankroll, settings=settings)
        for opp in opportunities
    ]


def replace_leg(
    ticket: MultiRaceTicket,
    race_number: int,
    horses,
    race: RaceAnalysis | None = None,
) -> MultiRaceTicket:
    """New ticket with one leg's horses swapped out.

    One horse makes the leg a SINGLE, more makes it a SPREAD. Pass the
    race to carry prices for the payout estimate; without it the new
    horses are priced as unknown. An empty selection or unknown race
    number returns the ticket unchanged with a warning.
    """
    numbers = tuple(int(h) for h in horses)
    index = next((i for i, leg in enumerate(ticket.legs) if leg.race_number == race_number), None)
    if index is None:
        return replace(ticket, warnings=ticket.warnings + (f"R{race_number} is not on this ticket",))
    if not numbers:
        return replace(ticket, warnings=ticket.warnings + (f"R{race_number} needs at least one horse",))

    old = ticket.legs[index]
    prices = {}
    if race is not None:
        prices = {h.program_number: _horse_odds(h, race) for h in race.horses}
    odds = tuple(prices.get(n, old.odds_of(n) or 0.0) for n in numbers)
    leg = MultiRaceLeg(
        race_number=race_number,
        horses=numbers,
        strategy=LegStrategy.SINGLE if len(numbers) == 1 else LegStrategy.SPREAD,
        has_value_play=old.value_play_number in numbers,
        value_play_number=old.value_play_number,
        odds=odds,
        reasoning="Edited selection.",
    )
    legs = list(ticket.legs)
    legs[index] = leg
    return _refresh(replace(ticket, legs=tuple(legs)))
