"""Kelly criterion bet sizing.

    f* = (b*p - q) / b

where b is net odds (decimal - 1), p the estimated win probability and
q = 1 - p. A fractional multiplier (quarter Kelly by default) trades growth
for variance. The result is then capped at a share of bankroll, floored at
the minimum tote bet and rounded to whole dollars.

Invalid input never raises: it comes back as a zero-size result with
``should_bet=False`` and a reason the caller can show.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from trackside.config import Settings, get_settings
from trackside.models import BankrollState, KellySettings
from trackside.odds import clamp_probability

logger = logging.getLogger(__name__)

MIN_DECIMAL_ODDS = 1.01


class KellyFraction(Enum):
    """Safety multipliers applied to the full-Kelly fraction."""

    FULL = 1.0
    HALF = 0.5
    QUARTER = 0.25
    EIGHTH = 0.125

    @property
    def label(self) -> str:
        return f"{self.name.lower()} Kelly"

    @classmethod
    def parse(cls, value: "KellyFraction | str | None", default: "KellyFraction | None" = None) -> "KellyFraction":
        """Accept the enum itself or its name ("quarter", "HALF")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                logger.debug(f"Unknown Kelly fraction {value!r}")
        return default if default is not None else cls.QUARTER


# Risk tolerance presets: (fraction, max bet % of bankroll, min edge)
RISK_PRESETS = {
    "conservative": (KellyFraction.QUARTER, 0.05, 0.15),
    "moderate": (KellyFraction.HALF, 0.10, 0.10),
    "aggressive": (KellyFraction.FULL, 0.15, 0.05),
}

# Bounds for user-supplied settings
MAX_BET_PERCENT_RANGE = (0.01, 0.20)
MIN_EDGE_RANGE = (0.0, 0.50)


@dataclass(frozen=True)
class KellyWarning:
    kind: str          # aggressive / marginal / capped / low_bankroll
    message: str
    severity: str = "info"   # info / caution


@dataclass(frozen=True)
class KellyInput:
    """Everything needed to size one bet."""

    probability: float
    decimal_odds: float
    bankroll: float
    fraction: KellyFraction = KellyFraction.QUARTER
    max_bet_percent: float = 0.10
    min_edge_required: float = 0.10


@dataclass(frozen=True)
class KellyResult:
    """Outcome of sizing one bet. Sizes are whole dollars."""

    full_kelly_fraction: float = 0.0
    adjusted_fraction: float = 0.0     # fraction of bankroll actually staked
    optimal_bet_size: float = 0.0
    edge_percent: float = 0.0          # (b*p - q) * 100
    overlay_percent: float = 0.0
    implied_probability: float = 0.0
    expected_growth_rate: float = 0.0  # diagnostics only
    was_capped: bool = False
    should_bet: bool = False
    reason: str = ""
    fraction: KellyFraction = KellyFraction.QUARTER
    warnings: tuple[KellyWarning, ...] = ()

    @property
    def edge(self) -> float:
        return self.edge_percent / 100.0


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _round_half_up(amount: float) -> float:
    return float(math.floor(amount + 0.5))


def _growth_rate(p: float, b: float, f: float) -> float:
    """Expected log growth per bet, p*ln(1+b*f) + q*ln(1-f)."""
    if f <= 0 or f >= 1:
        return 0.0
    return p * math.log(1 + b * f) + (1 - p) * math.log(1 - f)


def _refuse(reason: str, **values) -> KellyResult:
    return KellyResult(should_bet=False, reason=reason, **values)


def size(
    probability: float,
    decimal_odds: float,
    bankroll: float,
    fraction: KellyFraction | str | None = None,
    max_bet_percent: float | None = None,
    min_edge_required: float | None = None,
    settings: Settings | None = None,
) -> KellyResult:
    """Size a single win bet with fractional Kelly.

    Args:
        probability: Estimated win probability (0-1, or 0-100 as a percentage).
        decimal_odds: Payout multiplier including stake (6.0 for 5-1).
        bankroll: Money available to this bet.
        fraction: Safety multiplier; defaults to the configured fraction.
        max_bet_percent: Cap as a share of bankroll (0.10 = 10%).
        min_edge_required: Minimum b*p - q before a bet is recommended.

    Returns:
        KellyResult. Never raises for bad input.
    """
    cfg = settings or get_settings()
    frac = KellyFraction.parse(fraction, KellyFraction.parse(cfg.default_kelly_fraction))
    cap_pct = cfg.default_max_bet_percent if max_bet_percent is None else max_bet_percent
    min_edge = cfg.default_min_edge if min_edge_required is None else min_edge_required

    p = clamp_probability(probability)
    if p is None:
        logger.warning(f"Kelly refused: invalid probability {probability!r}")
        return _refuse("Invalid probability", fraction=frac)
    if not _finite(decimal_odds) or decimal_odds <= 1.0:
        logger.warning(f"Kelly refused: invalid odds {decimal_odds!r}")
        return _refuse("Invalid odds: decimal odds must be greater than 1.0", fraction=frac)
    if not _finite(bankroll) or bankroll < 0:
        return _refuse("Invalid bankroll", fraction=frac)
    if not _finite(cap_pct) or not 0 < cap_pct <= 1:
        return _refuse("Invalid max bet percent", fraction=frac)
    if not _finite(min_edge) or min_edge < 0:
        return _refuse("Invalid minimum edge", fraction=frac)

    odds = max(MIN_DECIMAL_ODDS, float(decimal_odds))
    b = odds - 1.0
    q = 1.0 - p
    raw_edge = b * p - q
    full_kelly = raw_edge / b
    implied = 1.0 / odds
    overlay = (p - implied) / implied * 100.0
    base = dict(
        full_kelly_fraction=full_kelly,
        edge_percent=raw_edge * 100.0,
        overlay_percent=overlay,
        implied_probability=implied,
        fraction=frac,
    )

    if full_kelly <= 0:
        return _refuse("Negative edge / underlay", **base)

    warnings: list[KellyWarning] = []
    if full_kelly > cfg.kelly_aggressive_threshold:
        warnings.append(KellyWarning(
            "aggressive",
            f"Full Kelly suggests {full_kelly:.0%} of bankroll; estimate may be overconfident",
            "caution",
        ))
    if 0 < raw_edge < cfg.kelly_marginal_edge:
        warnings.append(KellyWarning(
            "marginal",
            f"Edge of {raw_edge:.1%} is marginal",
        ))

    if raw_edge < min_edge:
        return _refuse(
            f"Edge too small ({raw_edge:.1%} < {min_edge:.1%})",
            warnings=tuple(warnings),
            **base,
        )

    min_bet = cfg.min_bet_amount
    cap = cap_pct * bankroll
    if bankroll < min_bet or cap < min_bet:
        return _refuse(
            f"Bankroll too small for the ${min_bet:.0f} minimum bet",
            warnings=tuple(warnings),
            **base,
        )

    adjusted = full_kelly * frac.value
    bet = adjusted * bankroll
    was_capped = False
    if bet > cap:
        bet = cap
        was_capped = True
        warnings.append(KellyWarning(
            "capped",
            f"Capped at {cap_pct:.0%} of bankroll (${cap:.0f})",
            "caution",
        ))
    bet = max(bet, min_bet)
    bet = min(_round_half_up(bet), float(math.floor(cap)))

    if bankroll < min_bet * cfg.low_bankroll_multiple:
        warnings.append(KellyWarning(
            "low_bankroll",
            f"Bankroll under ${min_bet * cfg.low_bankroll_multiple:.0f}; bet sizes are coarse",
        ))

    staked = bet / bankroll if bankroll > 0 else 0.0
    return KellyResult(
        adjusted_fraction=staked,
        optimal_bet_size=bet,
        expected_growth_rate=_growth_rate(p, b, staked),
        was_capped=was_capped,
        should_bet=True,
        reason=f"{raw_edge:.1%} edge, {frac.label}",
        warnings=tuple(warnings),
        **base,
    )


def size_input(kelly_input: KellyInput, settings: Settings | None = None) -> KellyResult:
    """Size from a KellyInput value."""
    return size(
        kelly_input.probability,
        kelly_input.decimal_odds,
        kelly_input.bankroll,
        fraction=kelly_input.fraction,
        max_bet_percent=kelly_input.max_bet_percent,
        min_edge_required=kelly_input.min_edge_required,
        settings=settings,
    )


def size_for_bankroll(
    probability: float,
    decimal_odds: float,
    bankroll: BankrollState,
    settings: Settings | None = None,
) -> KellyResult:
    """Size against a bankroll state's remaining budget and Kelly preferences."""
    ks = bankroll.kelly
    return size(
        probability,
        decimal_odds,
        bankroll.remaining_budget,
        fraction=ks.fraction,
        max_bet_percent=ks.max_bet_percent,
        min_edge_required=ks.min_edge_required,
        settings=settings,
    )


# ──────────────────────────────────────────────
# Batch sizing
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class BatchCandidate:
    id: str
    probability: float
    decimal_odds: float


@dataclass(frozen=True)
class BatchKellyResult:
    results: dict[str, KellyResult] = field(default_factory=dict)
    total_investment: float = 0.0
    accepted_count: int = 0
    rejected_count: int = 0
    combined_growth_rate: float = 0.0   # plain sum, bets treated as independent
    duplicate_ids: tuple[str, ...] = ()  # repeats of an id already sized, left out


def size_batch(
    candidates: Iterable[BatchCandidate],
    bankroll: float,
    kelly_settings: KellySettings | None = None,
    settings: Settings | None = None,
) -> BatchKellyResult:
    """Size each candidate independently against the same bankroll.

    No covariance accounting: the accepted sizes are simply summed. Only
    the first candidate with a given id is sized; later ones are reported
    in ``duplicate_ids`` and counted nowhere else.
    """
    ks = kelly_settings or KellySettings()
    results: dict[str, KellyResult] = {}
    duplicates: list[str] = []
    total = 0.0
    growth = 0.0
    accepted = 0
    for c in candidates:
        if c.id in results:
            logger.warning(f"Batch Kelly skipped duplicate candidate id {c.id!r}")
            duplicates.append(c.id)
            continue
        r = size(
            c.probability,
            c.decimal_odds,
            bankroll,
            fraction=ks.fraction,
            max_bet_percent=ks.max_bet_percent,
            min_edge_required=ks.min_edge_required,
            settings=settings,
        )
        results[c.id] = r
        if r.should_bet:
            accepted += 1
            total += r.optimal_bet_size
            growth += r.expected_growth_rate

    if bankroll and total > bankroll:
        logger.warning(f"Batch Kelly total ${total:.0f} exceeds bankroll ${bankroll:.0f}")
    return BatchKellyResult(
        results=results,
        total_investment=total,
        accepted_count=accepted,
        rejected_count=len(results) - accepted,
        combined_growth_rate=growth,
        duplicate_ids=tuple(duplicates),
    )


# ──────────────────────────────────────────────
# Settings presets and validation
# ──────────────────────────────────────────────

def preset_for(risk_tolerance: str, enabled: bool = True) -> KellySettings:
    """Kelly settings matching a risk tolerance (moderate if unknown)."""
    fraction, cap, min_edge = RISK_PRESETS.get(
        (risk_tolerance or "").lower(), RISK_PRESETS["moderate"]
    )
    return KellySettings(
        enabled=enabled,
        fraction=fraction.name.lower(),
        max_bet_percent=cap,
        min_edge_required=min_edge,
    )


def validate_settings(ks: KellySettings) -> tuple[str, ...]:
    """Return human-readable problems with user Kelly settings (empty if fine)."""
    problems = []
    if ks.fraction.strip().upper() not in KellyFraction.__members__:
        problems.append(f"Unknown Kelly fraction '{ks.fraction}'")
    lo, hi = MAX_BET_PERCENT_RANGE
    if not lo <= ks.max_bet_percent <= hi:
        problems.append(f"Max bet must be between {lo:.0%} and {hi:.0%} of bankroll")
    lo, hi = MIN_EDGE_RANGE
    if not lo <= ks.min_edge_required <= hi:
        problems.append(f"Minimum edge must be between {lo:.0%} and {hi:.0%}")
    return tuple(problems)


def format_kelly_result(result: KellyResult) -> str:
    """One-line summary, e.g. "$25 (2.5% of bankroll, quarter Kelly)"."""
    if not result.should_bet:
        return f"No bet: {result.reason}"
    text = (
        f"${result.optimal_bet_size:.0f} "
        f"({result.adjusted_fraction:.1%} of bankroll, {result.fraction.label})"
    )
    if result.was_capped:
        text += " [capped]"
    return text
