"""Dry-run the wagering engine over a JSON race card.

Usage:
    python scripts/plan_card.py data/card.json
    python scripts/plan_card.py data/card.json --risk-style safe --experience expert --budget 40

Card shape:
    {
      "bankroll": {"current_bankroll": 500, "daily_budget": 100,
                   "kelly": {"enabled": true, "fraction": "quarter"}},
      "races": [
        {"race_number": 1,
         "horses": [{"program_number": 1, "name": "...", "odds": "5-1",
                     "score": 182, "win_probability": 0.24, "rank": 1}, ...],
         "value": {"has_value_play": true, "verdict": "BET",
                   "primary_value_play": {"program_number": 4, "name": "...",
                                          "edge_percent": 120, "odds": "8-1"}}},
        ...
      ]
    }

Prints the tiered menu for every race, then the best multi-race ticket.
Nothing is placed or stored.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from trackside.betting.recommendations import generate_recommendations
from trackside.config import settings
from trackside.models import bankroll_from_dict, race_from_dict
from trackside.multirace.opportunities import find_opportunities
from trackside.multirace.payouts import format_payout_range
from trackside.multirace.tickets import build_ticket

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def print_race(rec) -> None:
    print(f"\n=== Race {rec.race_number} (${rec.total_investment:.2f}) ===")
    for tier in rec.tiers:
        print(f"  Tier {tier.tier} - {tier.name}: ${tier.total_investment:.2f} "
              f"(est. return ${tier.potential_return.min:.0f}-${tier.potential_return.max:.0f})")
        for bet in tier.bets:
            print(f"    {bet.instruction:<50} ${bet.total_cost:>7.2f}  {bet.description}")
    for bet in rec.special:
        print(f"  [{bet.special_category}] {bet.instruction}  ${bet.total_cost:.2f}")
    for s in rec.suppressed:
        print(f"  (skipped {s.kind.label} {list(s.horses)}: {s.reason})")
    for w in rec.warnings:
        print(f"  ! {w}")


def main():
    parser = argparse.ArgumentParser(description="Plan bets for a race card (dry run)")
    parser.add_argument("card", help="Path to a JSON race card")
    parser.add_argument("--risk-style", default="balanced", choices=["safe", "balanced", "aggressive"])
    parser.add_argument("--experience", default="standard", choices=["beginner", "standard", "expert"])
    parser.add_argument("--budget", type=float, default=None, help="Cap for the sequence ticket")
    args = parser.parse_args()

    path = Path(args.card)
    if not path.exists():
        logger.error(f"Card not found: {path}")
        sys.exit(1)
    card = json.loads(path.read_text())

    bankroll = bankroll_from_dict(card["bankroll"]) if card.get("bankroll") else None
    races = [race_from_dict(r) for r in card.get("races", [])]
    logger.info(f"Loaded {len(races)} races from {path}")

    for race in races:
        print_race(generate_recommendations(race.horses, bankroll, race_number=race.race_number))

    opportunities = find_opportunities(races, args.experience)
    if not opportunities:
        print("\nNo multi-race opportunities.")
        return

    print("\n=== Multi-race ===")
    for opp in opportunities:
        print(f"  {opp.quality.value:<8} {opp.config.label} R{opp.start_race}-{opp.end_race}: {opp.reasoning}")

    ticket = build_ticket(opportunities[0], races, args.risk_style, budget=args.budget, bankroll=bankroll)
    print(f"\nBest ticket: {ticket.combination_math} x ${ticket.cost_per_combination} = ${ticket.total_cost:.2f}")
    print(f"Estimated payout: {format_payout_range(ticket.potential_payout)} ({ticket.confidence})")
    print(ticket.what_to_say)
    for w in ticket.warnings:
        print(f"  ! {w}")


if __name__ == "__main__":
    main()
