import copy
import json
import math
import os
from typing import Dict, List, Optional, Tuple

from model.Bracket import Bracket, PhaseOutRule, PhaseOutTier
from model.RegimeTables import RegimeTables
from model.TaxRegimeInput import TaxRegimeInput
from model.errors import InvalidInput

DEFAULT_REFERENCE_PATH = os.path.normpath(
	os.path.join(os.path.dirname(__file__), '../../reference/federal-details.json'))


def _as_rate(rate: float) -> float:
	# reference files may list rates either as fractions or as whole percents
	return rate / 100.0 if rate > 1 else rate


def _as_bound(bound: Optional[float]) -> float:
	return math.inf if bound is None else float(bound)


class FederalDetails:
	def __init__(self, inflation_rate: float = 0.0, final_year: Optional[int] = None,
				 reference_path: Optional[str] = None):
		"""
		inflation_rate: e.g., 0.03 for 3% growth of indexed thresholds
		final_year: last year to generate tables for (inclusive); defaults to the last specified year
		reference_path: alternate federal-details.json (tests use this)
		"""
		self.inflation_rate = inflation_rate or 0.0
		self.final_year = final_year
		self.reference_path = reference_path or DEFAULT_REFERENCE_PATH
		self.tables_by_year: Dict[int, dict] = {}
		self.pmi_tiers_data: List[dict] = []
		self._load_and_build_tables()

	def _load_and_build_tables(self):
		with open(self.reference_path, 'r') as f:
			data = json.load(f)

		tax_years = data.get("taxYears", [])
		if not tax_years:
			raise ValueError("federal-details.json must contain a 'taxYears' array with at least one entry")

		self.pmi_tiers_data = [
			{"threshold": _as_bound(t.get("maxLoanToValue")), "rate": t["annualRate"]}
			for t in data.get("pmiTiers", [])
		]

		# Sort tax years to ensure they're in order
		tax_years = sorted(tax_years, key=lambda x: x["year"])

		# Validate that years are sequential
		for i in range(1, len(tax_years)):
			if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
				raise ValueError(f"Tax years must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")

		for year_data in tax_years:
			self.tables_by_year[year_data["year"]] = self._parse_year(year_data)

		last_specified_year = tax_years[-1]["year"]
		if self.final_year is None:
			self.final_year = last_specified_year

		# Build inflated tables for years after the last specified year
		year = last_specified_year + 1
		tables = self.tables_by_year[last_specified_year]
		while year <= self.final_year:
			tables = self._inflate(tables)
			self.tables_by_year[year] = tables
			year += 1

	def _parse_year(self, year_data: dict) -> dict:
		statuses = {}
		for status, s in year_data.get("filingStatus", {}).items():
			amt = s.get("amt", {})
			roth = s.get("rothPhaseOut", {})
			statuses[status] = {
				"standardDeduction": s.get("standardDeduction", 0),
				"brackets": [
					{"maxIncome": _as_bound(b["maxIncome"]), "rate": _as_rate(b["rate"])}
					for b in s.get("brackets", [])
				],
				"ltcgBrackets": [
					{"maxIncome": _as_bound(b["maxIncome"]), "rate": _as_rate(b["rate"])}
					for b in s.get("ltcgBrackets", [])
				],
				"amt": {
					"exemption": amt.get("exemption", 0),
					"phaseOutStart": amt.get("phaseOutStart", 0),
					"phaseOutRate": amt.get("phaseOutRate", 0.25),
					"rate28Threshold": amt.get("rate28Threshold", 0),
				},
				"niitThreshold": s.get("niitThreshold", 0),
				"irmaaTiers": [
					{"maxIncome": _as_bound(t["maxIncome"]), "surcharge": t["surcharge"]}
					for t in s.get("irmaaTiers", [])
				],
				"rothPhaseOut": {"start": roth.get("start", 0), "end": roth.get("end", 0)},
			}
		return {
			"niitRate": year_data.get("niitRate", 0.038),
			"supplementalWithholdingRate": year_data.get("supplementalWithholdingRate", 0.22),
			"partBPremium": year_data.get("partBPremium", 0),
			"iraContribution": year_data.get("iraContribution", 0),
			"hsaLimits": dict(year_data.get("hsaLimits", {})),
			"filingStatus": statuses,
		}

	def _inflate(self, tables: dict) -> dict:
		"""Project one year forward: indexed thresholds grow, rates and statutory NIIT thresholds do not."""
		factor = 1 + self.inflation_rate
		projected = copy.deepcopy(tables)
		projected["iraContribution"] = tables["iraContribution"] * factor
		projected["hsaLimits"] = {k: v * factor for k, v in tables["hsaLimits"].items()}
		for s in projected["filingStatus"].values():
			s["standardDeduction"] *= factor
			for b in s["brackets"] + s["ltcgBrackets"] + s["irmaaTiers"]:
				b["maxIncome"] *= factor  # inf stays inf
			s["amt"]["exemption"] *= factor
			s["amt"]["phaseOutStart"] *= factor
			s["amt"]["rate28Threshold"] *= factor
			s["rothPhaseOut"]["start"] *= factor
			s["rothPhaseOut"]["end"] *= factor
		return projected

	@property
	def years(self) -> List[int]:
		return sorted(self.tables_by_year)

	def _year(self, year: int) -> dict:
		if year not in self.tables_by_year:
			raise ValueError(f"No tax tables available for year {year}")
		return self.tables_by_year[year]

	def _status(self, year: int, filing_status: str) -> dict:
		statuses = self._year(year)["filingStatus"]
		if filing_status not in statuses:
			raise InvalidInput(f"Unknown filing status {filing_status!r} for {year}; expected one of {sorted(statuses)}")
		return statuses[filing_status]

	def filing_statuses(self, year: int) -> List[str]:
		return sorted(self._year(year)["filingStatus"])

	def regime_tables(self, year: int, filing_status: str) -> RegimeTables:
		"""Return the tables one liability calculation needs for a year and filing status."""
		s = self._status(year, filing_status)
		amt = s["amt"]
		return RegimeTables(
			ordinary_brackets=tuple(Bracket(b["maxIncome"], b["rate"]) for b in s["brackets"]),
			ltcg_brackets=tuple(Bracket(b["maxIncome"], b["rate"]) for b in s["ltcgBrackets"]),
			amt_brackets=(Bracket(amt["rate28Threshold"], 0.26), Bracket(math.inf, 0.28)),
			amt_exemption=PhaseOutRule.from_rate(amt["phaseOutStart"], amt["exemption"], amt["phaseOutRate"]),
			niit_threshold=s["niitThreshold"],
			niit_rate=self._year(year)["niitRate"],
			standard_deduction=s["standardDeduction"],
		)

	def standard_deduction(self, year: int, filing_status: str) -> float:
		return self._status(year, filing_status)["standardDeduction"]

	def tax_input(self, year: int, filing_status: str, ordinary_income: float,
				  preference_income: float = 0.0, capital_gains: float = 0.0,
				  investment_income: Optional[float] = None) -> TaxRegimeInput:
		"""Build a TaxRegimeInput with the year's standard deduction filled in."""
		return TaxRegimeInput(
			ordinary_income=ordinary_income,
			preference_income=preference_income,
			capital_gains=capital_gains,
			filing_status=filing_status,
			standard_deduction=self.standard_deduction(year, filing_status),
			investment_income=investment_income,
		)

	def irmaa_tiers(self, year: int, filing_status: str) -> Tuple[PhaseOutTier, ...]:
		return tuple(PhaseOutTier(t["maxIncome"], t["surcharge"]) for t in self._status(year, filing_status)["irmaaTiers"])

	def part_b_premium(self, year: int) -> float:
		return self._year(year)["partBPremium"]

	def ira_contribution_limit(self, year: int) -> float:
		return self._year(year)["iraContribution"]

	def roth_phase_out(self, year: int, filing_status: str, contribution_limit: Optional[float] = None) -> PhaseOutRule:
		"""Direct Roth IRA contribution phase-out; the base defaults to the year's IRA limit."""
		roth = self._status(year, filing_status)["rothPhaseOut"]
		base = self.ira_contribution_limit(year) if contribution_limit is None else contribution_limit
		return PhaseOutRule(roth["start"], roth["end"], base)

	def hsa_limits(self, year: int) -> dict:
		return dict(self._year(year)["hsaLimits"])

	def supplemental_withholding_rate(self, year: int) -> float:
		return self._year(year)["supplementalWithholdingRate"]

	def pmi_tiers(self) -> Tuple[PhaseOutTier, ...]:
		"""PMI annual rate (percent of loan) keyed by loan-to-value percent."""
		return tuple(PhaseOutTier(t["threshold"], t["rate"]) for t in self.pmi_tiers_data)
