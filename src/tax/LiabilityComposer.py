"""Composed federal liability: ordinary tax, AMT, LTCG stacking and NIIT.

Each step is a separate function so it can be checked on its own; the
composition in compute_liability only adds them up. All tables arrive
through a RegimeTables argument, never from module state.
"""

from model.LiabilityResult import LiabilityResult, WithholdingGap
from model.RegimeTables import RegimeTables
from model.TaxRegimeInput import TaxRegimeInput
from model.errors import InvalidInput, require_finite
from tax.BracketStack import phase_out, stack, validate_brackets

# Extra cushion recommended on top of a positive withholding gap
SET_ASIDE_BUFFER = 1.1

SLICE_ORDINARY = 'ordinary'
SLICE_PREFERENCE = 'preference'
SLICE_CAPITAL_GAINS = 'capital_gains'
SLICE_KINDS = (SLICE_ORDINARY, SLICE_PREFERENCE, SLICE_CAPITAL_GAINS)


def validate_input(tax_input: TaxRegimeInput) -> None:
    """Reject non-finite or negative figures in a liability snapshot."""
    require_finite('ordinary_income', tax_input.ordinary_income)
    require_finite('preference_income', tax_input.preference_income)
    require_finite('capital_gains', tax_input.capital_gains)
    require_finite('standard_deduction', tax_input.standard_deduction)
    if tax_input.investment_income is not None:
        require_finite('investment_income', tax_input.investment_income)


def ordinary_taxable_income(tax_input: TaxRegimeInput) -> float:
    return max(0.0, tax_input.ordinary_income - tax_input.standard_deduction)


def regular_tax(tax_input: TaxRegimeInput, tables: RegimeTables) -> float:
    """Ordinary-income tax on income after the standard deduction."""
    validate_input(tax_input)
    return stack(ordinary_taxable_income(tax_input), tables.ordinary_brackets)


def tentative_minimum_tax(tax_input: TaxRegimeInput, tables: RegimeTables) -> tuple:
    """Return (tentative minimum tax, AMT income).

    AMT income adds preference income (e.g. ISO spread) to ordinary income.
    The exemption phases out against AMT income and the remaining base is
    stacked on the AMT brackets (26% then 28%).
    """
    validate_input(tax_input)
    amt_income = tax_input.ordinary_income + tax_input.preference_income
    exemption = phase_out(amt_income, tables.amt_exemption)
    amt_base = max(0.0, amt_income - exemption)
    return stack(amt_base, tables.amt_brackets), amt_income


def alternative_tax(tax_input: TaxRegimeInput, tables: RegimeTables) -> float:
    """AMT owed: only the excess of the tentative minimum tax over regular tax."""
    tmt, _ = tentative_minimum_tax(tax_input, tables)
    return max(0.0, tmt - regular_tax(tax_input, tables))


def ltcg_tax(tax_input: TaxRegimeInput, tables: RegimeTables) -> float:
    """Tax long-term gains stacked on top of ordinary taxable income.

    Ordinary income fills the LTCG brackets from the bottom first, so the
    gains only get whatever room is left in each bracket.
    """
    validate_input(tax_input)
    brackets = tables.ltcg_brackets
    validate_brackets(brackets)
    remaining = tax_input.capital_gains
    if remaining <= 0:
        return 0.0

    cumulative_income = ordinary_taxable_income(tax_input)
    tax = 0.0
    for b in brackets:
        room = max(0.0, b.upper_bound - cumulative_income)
        taxed_here = min(remaining, room)
        if taxed_here > 0:
            tax += taxed_here * b.rate
            remaining -= taxed_here
            cumulative_income += taxed_here
        if remaining <= 0:
            break

    if remaining > 0:
        tax += remaining * brackets[-1].rate
    return tax


def niit(tax_input: TaxRegimeInput, tables: RegimeTables) -> float:
    """Net investment income surtax on the lesser of investment income or income above the threshold."""
    validate_input(tax_input)
    threshold = require_finite('niit_threshold', tables.niit_threshold)
    rate = require_finite('niit_rate', tables.niit_rate)
    excess = max(0.0, tax_input.total_income - threshold)
    return min(tax_input.net_investment_income, excess) * rate


def compute_liability(tax_input: TaxRegimeInput, tables: RegimeTables) -> LiabilityResult:
    """Compose every regime into one liability figure.

    Args:
        tax_input: Snapshot of incomes, filing status and deduction.
        tables: Bracket and threshold tables for the year and filing status.

    Returns:
        LiabilityResult with each component, the total and the effective rate.
    """
    validate_input(tax_input)
    regular = regular_tax(tax_input, tables)
    tmt, amt_income = tentative_minimum_tax(tax_input, tables)
    amt = max(0.0, tmt - regular)
    gains_tax = ltcg_tax(tax_input, tables)
    surtax = niit(tax_input, tables)

    total_tax = regular + amt + gains_tax + surtax
    total_income = tax_input.total_income
    effective_rate = total_tax / total_income if total_income > 0 else 0.0

    return LiabilityResult(
        regular_tax=regular,
        alternative_tax=amt,
        ltcg_tax=gains_tax,
        niit=surtax,
        total_tax=total_tax,
        effective_rate=effective_rate,
        amt_applies=amt > 0,
        tentative_minimum_tax=tmt,
        amt_income=amt_income,
    )


def incremental_tax(base: TaxRegimeInput, slice_amount: float, tables: RegimeTables,
                    slice_kind: str = SLICE_ORDINARY) -> float:
    """Extra total liability caused by layering ``slice_amount`` on top of ``base``."""
    slice_amount = require_finite('slice_amount', slice_amount)
    if slice_kind == SLICE_ORDINARY:
        with_slice = base.with_additional(ordinary=slice_amount)
    elif slice_kind == SLICE_PREFERENCE:
        with_slice = base.with_additional(preference=slice_amount)
    elif slice_kind == SLICE_CAPITAL_GAINS:
        with_slice = base.with_additional(capital_gains=slice_amount)
    else:
        raise InvalidInput(f"unknown income slice kind {slice_kind!r}; expected one of {SLICE_KINDS}")
    return compute_liability(with_slice, tables).total_tax - compute_liability(base, tables).total_tax


def withholding_gap(base: TaxRegimeInput, slice_amount: float, withholding_rate: float,
                    tables: RegimeTables, slice_kind: str = SLICE_ORDINARY) -> WithholdingGap:
    """Compare the true tax on an income slice with a flat statutory withholding.

    The true tax is the difference between two full liability runs, since the
    slice usually straddles several marginal brackets. Only ordinary slices
    (RSU vests, NSO spreads) are withheld on; ISO spread and gains are not.
    """
    withholding_rate = require_finite('withholding_rate', withholding_rate)
    extra = incremental_tax(base, slice_amount, tables, slice_kind)
    withheld = slice_amount * withholding_rate if slice_kind == SLICE_ORDINARY else 0.0
    gap = extra - withheld
    return WithholdingGap(
        slice_amount=slice_amount,
        incremental_tax=extra,
        withheld=withheld,
        gap=gap,
        set_aside=max(0.0, gap) * SET_ASIDE_BUFFER,
    )
