"""Stock compensation calculations: AMT-safe ISO exercise and vest withholding gaps.

Equity events layer income on top of a base tax snapshot one at a time, in
date order, so each event sees the brackets already consumed by earlier ones.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from calc.threshold_solver import DEFAULT_TOLERANCE, solve
from model.Bracket import PhaseOutTier
from model.LiabilityResult import WithholdingGap
from model.RegimeTables import RegimeTables
from model.TaxRegimeInput import TaxRegimeInput
from model.errors import InvalidInput, require_finite
from tax.LiabilityComposer import (
    SLICE_ORDINARY,
    SLICE_PREFERENCE,
    compute_liability,
    incremental_tax,
    withholding_gap,
)
from tax.BracketStack import tier_lookup

RSU = 'RSU'
NSO = 'NSO'
ISO = 'ISO'
ESPP = 'ESPP'
EVENT_KINDS = (RSU, NSO, ISO, ESPP)

# Search ceiling for the ISO spread; callers with very high incomes should pass a larger bound
DEFAULT_SPREAD_CEILING = 1_000_000.0
DEFAULT_ESPP_DISCOUNT = 0.15

TARGET_CONCENTRATION_PERCENT = 10.0
# share of net worth in one stock (percent) -> months to diversify down to the target
CONCENTRATION_TIERS = (
    PhaseOutTier(TARGET_CONCENTRATION_PERCENT, 0),
    PhaseOutTier(20.0, 18),
    PhaseOutTier(35.0, 9),
    PhaseOutTier(math.inf, 6),
)
RISK_LEVELS = ('low', 'medium', 'high', 'extreme')


@dataclass(frozen=True)
class EquityEvent:
    kind: str
    date: str  # ISO format, e.g. "2026-03-15"
    shares: float
    grant_price: float = 0.0
    vest_price: float = 0.0
    current_price: float = 0.0
    espp_discount: float = DEFAULT_ESPP_DISCOUNT

    @property
    def slice_kind(self) -> str:
        # ISO spread is AMT preference income, everything else is ordinary wages
        return SLICE_PREFERENCE if self.kind == ISO else SLICE_ORDINARY

    def event_income(self) -> float:
        """Income the event adds: wages for RSU/NSO/ESPP, AMT preference for ISO."""
        if self.kind not in EVENT_KINDS:
            raise InvalidInput(f"unknown equity event kind {self.kind!r}; expected one of {EVENT_KINDS}")
        shares = require_finite('shares', self.shares)
        if self.kind == RSU:
            return shares * require_finite('vest_price', self.vest_price)
        if self.kind == NSO:
            spread = require_finite('vest_price', self.vest_price) - require_finite('grant_price', self.grant_price)
            return shares * max(0.0, spread)
        if self.kind == ISO:
            spread = require_finite('current_price', self.current_price) - require_finite('grant_price', self.grant_price)
            return shares * max(0.0, spread)
        return shares * require_finite('vest_price', self.vest_price) * require_finite('espp_discount', self.espp_discount)


@dataclass(frozen=True)
class EventProjection:
    event: EquityEvent
    income: float
    withholding: WithholdingGap


def amt_applies_at(base: TaxRegimeInput, spread: float, tables: RegimeTables) -> bool:
    return compute_liability(base.with_additional(preference=spread), tables).amt_applies


def amt_safe_spread(base: TaxRegimeInput,
                    tables: RegimeTables,
                    upper_bound: float = DEFAULT_SPREAD_CEILING,
                    tolerance: float = DEFAULT_TOLERANCE) -> float:
    """Largest ISO spread that can be exercised before AMT applies.

    Returns 0 when AMT already applies with no additional spread. Raises
    NoCrossingFound when AMT never applies below ``upper_bound``.
    """
    if amt_applies_at(base, 0.0, tables):
        return 0.0
    return solve(lambda spread: amt_applies_at(base, spread, tables), 0.0, upper_bound, tolerance)


def project_vest_events(base: TaxRegimeInput,
                        events: Sequence[EquityEvent],
                        tables: RegimeTables,
                        withholding_rate: float) -> List[EventProjection]:
    """Walk equity events in date order and report each event's withholding gap.

    Args:
        base: Tax snapshot before any of the events.
        events: Vests, exercises and purchases in any order.
        tables: Tables for the tax year of the events.
        withholding_rate: Flat supplemental withholding rate (e.g. 0.22).

    Returns:
        One EventProjection per event, sorted by date.
    """
    ordered = sorted(events, key=lambda e: date.fromisoformat(e.date))
    cumulative = base
    projections = []
    for event in ordered:
        income = event.event_income()
        gap = withholding_gap(cumulative, income, withholding_rate, tables, event.slice_kind)
        projections.append(EventProjection(event=event, income=income, withholding=gap))
        if event.slice_kind == SLICE_PREFERENCE:
            cumulative = cumulative.with_additional(preference=income)
        else:
            cumulative = cumulative.with_additional(ordinary=income)
    return projections


def total_set_aside(projections: Sequence[EventProjection]) -> float:
    return sum(p.withholding.set_aside for p in projections)


def events_from_spec(raw_events: Optional[Sequence[dict]]) -> List[EquityEvent]:
    """Build EquityEvents from spec.json style dictionaries."""
    events = []
    for e in raw_events or []:
        events.append(EquityEvent(
            kind=e.get('type', RSU),
            date=e['date'],
            shares=e.get('shares', 0),
            grant_price=e.get('grantPrice', 0.0),
            vest_price=e.get('vestPrice', 0.0),
            current_price=e.get('currentPrice', 0.0),
            espp_discount=e.get('esppDiscount', DEFAULT_ESPP_DISCOUNT),
        ))
    return events


@dataclass(frozen=True)
class IsoNsoComparison:
    iso_shares: float
    iso_spread: float
    iso_additional_tax: float  # AMT the spread triggers; nothing is due under regular tax
    iso_amt_applies: bool
    nso_shares: float
    nso_spread: float
    nso_tax_at_exercise: float


def compare_iso_nso(base: TaxRegimeInput, events: Sequence[EquityEvent], tables: RegimeTables) -> IsoNsoComparison:
    """Tax cost of exercising every ISO and every NSO in ``events`` on top of ``base``.

    ISO spread only counts toward AMT income, so its cost is whatever AMT it
    adds. NSO spread is wages and is taxed at exercise.
    """
    iso = [e for e in events if e.kind == ISO]
    nso = [e for e in events if e.kind == NSO]
    iso_spread = sum(e.event_income() for e in iso)
    nso_spread = sum(e.event_income() for e in nso)
    with_iso = compute_liability(base.with_additional(preference=iso_spread), tables)
    return IsoNsoComparison(
        iso_shares=sum(e.shares for e in iso),
        iso_spread=iso_spread,
        iso_additional_tax=incremental_tax(base, iso_spread, tables, SLICE_PREFERENCE),
        iso_amt_applies=with_iso.amt_applies,
        nso_shares=sum(e.shares for e in nso),
        nso_spread=nso_spread,
        nso_tax_at_exercise=incremental_tax(base, nso_spread, tables, SLICE_ORDINARY),
    )


@dataclass(frozen=True)
class ConcentrationRisk:
    concentration_percent: float
    risk_level: str
    diversification_months: int
    target_value: float
    excess_value: float  # company stock held above the target share of net worth


def concentration_risk(company_stock_value: float, total_net_worth: float) -> ConcentrationRisk:
    company_stock_value = require_finite('company_stock_value', company_stock_value)
    total_net_worth = require_finite('total_net_worth', total_net_worth)
    percent = company_stock_value * 100 / total_net_worth if total_net_worth > 0 else 0.0
    match = tier_lookup(percent, CONCENTRATION_TIERS)
    target_value = total_net_worth * TARGET_CONCENTRATION_PERCENT / 100
    return ConcentrationRisk(
        concentration_percent=percent,
        risk_level=RISK_LEVELS[match.index],
        diversification_months=int(match.tier.value),
        target_value=target_value,
        excess_value=max(0.0, company_stock_value - target_value),
    )
