"""Multi-race sequences: opportunity scanning, ticket building, payout estimates."""

from trackside.multirace.opportunities import best_opportunity, find_opportunities, has_opportunities
from trackside.multirace.payouts import estimate_payout
from trackside.multirace.tickets import build_all_tickets, build_ticket, fit_to_budget, replace_leg
from trackside.multirace.types import (
    ExperienceLevel,
    LegStrategy,
    MultiRaceBetType,
    MultiRaceLeg,
    MultiRaceOpportunity,
    MultiRaceTicket,
    Quality,
    RiskStyle,
)

__all__ = [
    "best_opportunity",
    "find_opportunities",
    "has_opportunities",
    "estimate_payout",
    "build_all_tickets",
    "build_ticket",
    "fit_to_budget",
    "replace_leg",
    "ExperienceLevel",
    "LegStrategy",
    "MultiRaceBetType",
    "MultiRaceLeg",
    "MultiRaceOpportunity",
    "MultiRaceTicket",
    "Quality",
    "RiskStyle",
]
